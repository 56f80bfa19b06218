from enum import Enum

class Action(Enum):
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"

    @property
    def opposite(self) -> "Action":
        """BUY <-> SELL; HOLD has no opposite and maps to itself."""
        if self is Action.BUY:
            return Action.SELL
        if self is Action.SELL:
            return Action.BUY
        return Action.HOLD

class BotStatus(Enum):
    IDLE = "idle"
    CONNECTED = "connected"
    RUNNING = "running"
    PAUSED = "paused"
    ERROR = "error"

# Model output column order
CLASS_ORDER = (Action.BUY, Action.SELL, Action.HOLD)

CONTRACT_SIZE = 100_000          # units per standard lot
MIN_ANALYSIS_CANDLES = 50        # below this analysis short-circuits to HOLD
