"""Observer bus for bot lifecycle events.

Delivery is synchronous and in emission order. A late subscriber sees only
events emitted after it subscribed; nothing is buffered or replayed.
"""

from typing import Callable, Generic, List, TypeVar

from ..constants import BotStatus
from ..trading.trade import TradeHistoryRecord, TradeSignal
from .logger import log

E = TypeVar("E")


class _Channel(Generic[E]):
    def __init__(self, name: str):
        self.name = name
        self._handlers: List[Callable[[E], None]] = []

    def subscribe(self, handler: Callable[[E], None]) -> Callable[[], None]:
        self._handlers.append(handler)

        def unsubscribe():
            if handler in self._handlers:
                self._handlers.remove(handler)
        return unsubscribe

    def emit(self, event: E):
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception:
                log.exception("%s handler %r failed", self.name, handler)


class EventBus:
    """status / trade / analysis channels published by the bot."""

    def __init__(self):
        self._status: _Channel[BotStatus] = _Channel("status")
        self._trade: _Channel[TradeHistoryRecord] = _Channel("trade")
        self._analysis: _Channel[TradeSignal] = _Channel("analysis")

    # Subscription helpers
    def on_status(self, handler: Callable[[BotStatus], None]) -> Callable[[], None]:
        return self._status.subscribe(handler)

    def on_trade(self, handler: Callable[[TradeHistoryRecord], None]) -> Callable[[], None]:
        return self._trade.subscribe(handler)

    def on_analysis(self, handler: Callable[[TradeSignal], None]) -> Callable[[], None]:
        return self._analysis.subscribe(handler)

    # Emitters
    def emit_status(self, status: BotStatus):
        self._status.emit(status)

    def emit_trade(self, record: TradeHistoryRecord):
        self._trade.emit(record)

    def emit_analysis(self, signal: TradeSignal):
        self._analysis.emit(signal)
