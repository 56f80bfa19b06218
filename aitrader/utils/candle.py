from dataclasses import dataclass

@dataclass(frozen=True)
class Candle:
    timestamp: float               # bar open time, epoch seconds
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0
