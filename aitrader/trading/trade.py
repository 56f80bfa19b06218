from dataclasses import dataclass
from typing import Optional

from ..constants import Action

@dataclass(frozen=True)
class TradeSignal:
    action: Action
    confidence: float              # percent, 0-100
    stop_loss: float
    take_profit: float
    lot_size: float
    reasoning: str

    @classmethod
    def hold(cls, reasoning: str) -> "TradeSignal":
        return cls(Action.HOLD, 0.0, 0.0, 0.0, 0.0, reasoning)


@dataclass(frozen=True)
class TradeHistoryRecord:
    id: int                        # position ticket
    timestamp: float
    symbol: str
    action: str                    # "BUY" / "SELL" / "CLOSE"
    price: float
    volume: float
    reasoning: str
    profit: Optional[float] = None  # only set on CLOSE
