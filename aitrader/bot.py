import asyncio
import time
from typing import Optional, Sequence

import numpy as np

from .config import BotConfig, Credentials
from .constants import Action, BotStatus
from .core.feature_engine import FeatureEngine
from .core.models import DecisionModel
from .errors import FeatureError, NotConnectedError, TradingBotError
from .market.simulator import AccountInfo, MarketSimulator, Position
from .trading.journal import TradeJournal
from .trading.performance import PerformanceTracker
from .trading.risk import RiskManager
from .trading.signal import SignalComposer
from .trading.trade import TradeHistoryRecord, TradeSignal
from .utils.candle import Candle
from .utils.events import EventBus
from .utils.logger import log
from .utils.scheduler import TickerHandle, start_interval


class AITradingBot:
    """
    idle -> connected -> running <-> paused, error on a failed connect.

    While running, every `analysis_interval_ms` one full cycle runs: fetch
    bars, compose a signal, maybe open a position, then reconcile the open
    set against what the market reports and learn from every position that
    disappeared.
    """

    def __init__(self, cfg: BotConfig, market: Optional[MarketSimulator] = None,
                 model: Optional[DecisionModel] = None,
                 events: Optional[EventBus] = None):
        self.cfg = cfg
        self.market = market if market is not None else MarketSimulator()
        self.model = model if model is not None else DecisionModel()
        self.features_engine = FeatureEngine()
        self.composer = SignalComposer(self.model, self.features_engine, RiskManager())
        self.events = events if events is not None else EventBus()
        self.perf = PerformanceTracker()
        self.journal = TradeJournal(cfg.db_path) if cfg.db_path else None

        self._status = BotStatus.IDLE
        self._history: list[TradeHistoryRecord] = []
        self._ticker: Optional[TickerHandle] = None
        self._known: dict[int, Position] = {}             # last snapshot of each open ticket
        self._entry_features: dict[int, np.ndarray] = {}  # features behind each bot-opened ticket
        self._book_lock = asyncio.Lock()   # one cycle or close-all touches the book at a time

        if cfg.brain_path:
            self.model.load_brain(cfg.brain_path)
        if self.journal is not None:
            self._history = self.journal.load_history()
            if self._history:
                log.info("📒 Journal: %d past records loaded (%d trades opened)",
                         len(self._history), self.journal.total_trades())

    # ------------------------------------------------------------------
    @property
    def status(self) -> BotStatus:
        return self._status

    def _set_status(self, status: BotStatus):
        if status == self._status:
            return
        log.info("Status: %s → %s", self._status.value, status.value)
        self._status = status
        self.events.emit_status(status)

    # ------------------------------------------------------------------
    async def connect(self, credentials: Credentials):
        try:
            await self.market.connect(credentials, self.cfg.symbol)
        except Exception:
            self._set_status(BotStatus.ERROR)
            raise
        if self.journal is None and self.cfg.db_path:
            self.journal = TradeJournal(self.cfg.db_path)
        self._set_status(BotStatus.CONNECTED)

    def disconnect(self):
        self.stop()
        self.market.disconnect()
        if self.journal is not None:
            self.journal.close()
            self.journal = None
        self._set_status(BotStatus.IDLE)

    async def start(self):
        if not self.market.is_connected():
            raise NotConnectedError()
        if self._status == BotStatus.RUNNING:
            return
        if self._status not in (BotStatus.CONNECTED, BotStatus.PAUSED):
            raise TradingBotError(f"Cannot start from state '{self._status.value}'")

        log.info("═" * 60)
        log.info("  🤖 AI TRADING BOT — %s", self.cfg.symbol)
        log.info("  Interval: %dms  |  Min conf: %.0f%%  |  Max positions: %d",
                 self.cfg.analysis_interval_ms, self.cfg.min_confidence, self.cfg.max_positions)
        log.info("═" * 60)

        self._set_status(BotStatus.RUNNING)
        await self._tick()   # first cycle runs immediately

        if self._status == BotStatus.RUNNING and self._ticker is None:
            self._ticker = start_interval(self._tick, self.cfg.analysis_interval_ms / 1000.0)

    def stop(self):
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None
        if self._status == BotStatus.RUNNING:
            self._set_status(BotStatus.PAUSED)
            self._save_brain()

    def pause(self):
        self.stop()

    async def resume(self):
        if self._status == BotStatus.PAUSED:
            await self.start()

    async def wait_stopped(self):
        """Return once the current periodic tick has been cancelled."""
        if self._ticker is not None:
            await self._ticker.wait()

    # ------------------------------------------------------------------
    async def _tick(self):
        """One analysis cycle. Never raises: errors end the cycle early."""
        if self._status != BotStatus.RUNNING:
            return
        async with self._book_lock:
            await self._cycle()

    async def _cycle(self):
        if self._status != BotStatus.RUNNING:
            return

        try:
            candles = await self.market.get_market_data(self.cfg.symbol, self.cfg.market_bars)

            signal, features = self.composer.analyze_with_features(candles)
            self.events.emit_analysis(signal)
            log.debug("Signal: %s", signal.reasoning)

            if signal.confidence >= self.cfg.min_confidence:
                await self._execute_trade(signal, features)
            else:
                log.debug("⏸ Low confidence: %.1f%% (need %.1f%%)",
                          signal.confidence, self.cfg.min_confidence)

            positions = await self.market.get_positions()
            await self._reconcile(positions, candles)
        except Exception as e:
            log.error("Analysis error: %s", e, exc_info=True)

    async def _execute_trade(self, signal: TradeSignal, features: Optional[np.ndarray]):
        if signal.action == Action.HOLD:
            return

        positions = await self.market.get_positions()
        if len(positions) >= self.cfg.max_positions:
            log.debug("⏸ Max positions open (%d/%d)", len(positions), self.cfg.max_positions)
            return

        if any(p.symbol == self.cfg.symbol and p.side == signal.action for p in positions):
            log.debug("⏸ Already holding a %s on %s", signal.action.value, self.cfg.symbol)
            return

        pos = await self.market.open_position(
            self.cfg.symbol, signal.action, signal.lot_size,
            signal.stop_loss, signal.take_profit,
        )
        self._known[pos.ticket] = pos
        if features is not None:
            self._entry_features[pos.ticket] = features

        log.info("▶ TRADE  %s  %.2f lots @ %.5f  conf=%.1f%%  #%d",
                 signal.action.value, signal.lot_size, pos.open_price,
                 signal.confidence, pos.ticket)
        self._record(TradeHistoryRecord(
            id=pos.ticket,
            timestamp=time.time(),
            symbol=self.cfg.symbol,
            action=signal.action.value,
            price=pos.open_price,
            volume=signal.lot_size,
            reasoning=signal.reasoning,
        ))

    async def _reconcile(self, positions: Sequence[Position],
                         candles: Optional[Sequence[Candle]] = None):
        """Diff the reported open set against the last known one. Every ticket
        that vanished gets a CLOSE record and one learning step."""
        current = {p.ticket: p for p in positions}

        for ticket in [t for t in self._known if t not in current]:
            last = self._known.pop(ticket)
            closed = self.market.get_closed_position(ticket) or last
            outcome = "Profit" if closed.profit > 0 else "Loss"
            self._record_close(closed, f"Position closed: {outcome} of ${closed.profit:.2f}")
            await self._learn(closed, candles)

        self._known = current

    async def _learn(self, pos: Position, candles: Optional[Sequence[Candle]]):
        features = self._entry_features.pop(pos.ticket, None)
        if features is None and candles is not None:
            try:
                features = self.features_engine.compute(candles)
            except FeatureError as e:
                log.warning("Cannot learn from #%d: %s", pos.ticket, e)
        if features is None:
            return
        await self.model.learn_from_trade(features, pos.side, pos.profit)

    def _record_close(self, pos: Position, reasoning: str):
        self.perf.record(pos.profit)
        icon = "✅" if pos.profit > 0 else "❌"
        log.info("%s  CLOSE #%d  %s  $%+.2f  |  %s",
                 icon, pos.ticket, pos.side.value, pos.profit, self.perf.summary())
        self._record(TradeHistoryRecord(
            id=pos.ticket,
            timestamp=time.time(),
            symbol=pos.symbol,
            action="CLOSE",
            price=pos.current_price,
            volume=pos.volume,
            profit=pos.profit,
            reasoning=reasoning,
        ))

    def _record(self, record: TradeHistoryRecord):
        self._history.append(record)
        if self.journal is not None:
            self.journal.append(record)
        self.events.emit_trade(record)

    # ------------------------------------------------------------------
    async def close_all_positions(self):
        """Close everything the market reports open, whatever the bot state.
        Waits for an in-flight analysis cycle to finish first."""
        async with self._book_lock:
            await self._close_all()

    async def _close_all(self):
        positions = await self.market.get_positions()
        await self._reconcile(positions)

        for pos in positions:
            await self.market.close_position(pos.ticket)
            self._known.pop(pos.ticket, None)
            self._entry_features.pop(pos.ticket, None)
            closed = self.market.get_closed_position(pos.ticket) or pos
            self._record_close(closed, "Manually closed")

    # ------------------------------------------------------------------
    async def get_positions(self) -> list[Position]:
        if not self.market.is_connected():
            return []
        return await self.market.get_positions()

    async def get_account_info(self) -> Optional[AccountInfo]:
        if not self.market.is_connected():
            return None
        return await self.market.get_account_info()

    def get_trade_history(self) -> list[TradeHistoryRecord]:
        return list(self._history)

    def get_current_price(self) -> float:
        if not self.market.is_connected():
            return 0.0
        return self.market.get_current_price(self.cfg.symbol)

    def _save_brain(self):
        if not self.cfg.brain_path:
            return
        try:
            self.model.save_brain(self.cfg.brain_path)
        except OSError as e:
            log.warning("Failed to save brain: %s", e)
