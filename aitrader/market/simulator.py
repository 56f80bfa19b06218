"""
Simulated MT5-style market bridge.

Owns everything a broker would: per-symbol candle history (random-walk
generated), the open-position book, fills, mark-to-market, stop-loss /
take-profit enforcement and account arithmetic. Callers only ever receive
copies of positions and account info.
"""

import asyncio
import time
from collections import OrderedDict, deque
from dataclasses import dataclass, replace
from typing import Optional

import numpy as np

from ..config import Credentials, SimulatorConfig
from ..constants import CONTRACT_SIZE, Action
from ..errors import AuthError, NotConnectedError, PositionNotFoundError
from ..utils.candle import Candle
from ..utils.logger import log


@dataclass
class Position:
    ticket: int
    symbol: str
    side: Action                   # BUY or SELL
    volume: float                  # lots
    open_price: float
    current_price: float
    profit: float
    stop_loss: float               # 0 = not set
    take_profit: float             # 0 = not set
    open_time: float

    def mark(self, price: float):
        self.current_price = price
        diff = price - self.open_price if self.side == Action.BUY else self.open_price - price
        self.profit = diff * self.volume * CONTRACT_SIZE

    def exit_triggered(self) -> bool:
        p = self.current_price
        sl, tp = self.stop_loss, self.take_profit
        if self.side == Action.BUY:
            return (sl > 0 and p <= sl) or (tp > 0 and p >= tp)
        return (sl > 0 and p >= sl) or (tp > 0 and p <= tp)


@dataclass
class AccountInfo:
    balance: float
    equity: float
    margin: float
    free_margin: float
    profit: float
    leverage: int


class MarketSimulator:
    CLOSED_RETENTION = 500         # closed-position snapshots kept for lookups

    def __init__(self, cfg: SimulatorConfig = SimulatorConfig()):
        self.cfg = cfg
        self._rng = np.random.default_rng(cfg.seed)
        self._connected = False
        self._credentials: Optional[Credentials] = None
        self._balance = cfg.balance
        self._positions: list[Position] = []
        self._closed: OrderedDict[int, Position] = OrderedDict()
        self._history: dict[str, deque[Candle]] = {}
        self._price: dict[str, float] = {}
        self._last_ticket = 0

    # ------------------------------------------------------------------
    # connection
    # ------------------------------------------------------------------
    async def connect(self, credentials: Credentials, symbol: str) -> bool:
        if self.cfg.connect_delay > 0:
            await asyncio.sleep(self.cfg.connect_delay)   # simulated handshake

        if not (credentials.account_number and credentials.password and credentials.server):
            raise AuthError("Invalid MT5 credentials")

        self._credentials = credentials
        self._connected = True
        self._seed_history(symbol)
        log.info("Connected to %s as %s  |  %s @ %.5f",
                 credentials.server, credentials.account_number,
                 symbol, self.get_current_price(symbol))
        return True

    def disconnect(self):
        self._connected = False
        self._credentials = None

    def is_connected(self) -> bool:
        return self._connected

    def _require_connection(self):
        if not self._connected:
            raise NotConnectedError()

    # ------------------------------------------------------------------
    # price generation
    # ------------------------------------------------------------------
    def _seed_history(self, symbol: str):
        cfg = self.cfg
        history: deque[Candle] = deque(maxlen=cfg.max_history)
        price = self._price.get(symbol, cfg.start_price)
        now = time.time()

        for i in range(cfg.seed_bars - 1, -1, -1):
            price *= 1 + self._rng.uniform(-cfg.seed_step, cfg.seed_step)
            open_ = price
            close = price * (1 + self._rng.uniform(-cfg.close_jitter, cfg.close_jitter))
            history.append(self._make_candle(now - i * cfg.bar_seconds, open_, close))

        self._history[symbol] = history
        self._price[symbol] = history[-1].close

    def _make_candle(self, ts: float, open_: float, close: float) -> Candle:
        wick = self.cfg.wick_jitter
        high = max(open_, close) * (1 + self._rng.uniform(0, wick))
        low = min(open_, close) * (1 - self._rng.uniform(0, wick))
        volume = self._rng.uniform(500, 1500)
        return Candle(ts, open_, high, low, close, volume)

    def _tick(self, symbol: str):
        """Advance the walk by exactly one candle. Oldest bar drops off past
        max_history."""
        history = self._history.get(symbol)
        if history is None:
            self._seed_history(symbol)
            history = self._history[symbol]

        step = self.cfg.tick_step
        self._price[symbol] *= 1 + self._rng.uniform(-step, step)
        last = history[-1]
        history.append(self._make_candle(
            last.timestamp + self.cfg.bar_seconds, last.close, self._price[symbol]))

    def push_price(self, symbol: str, close: float):
        """Append one candle closing at `close` and continue the walk from there.
        For scripted scenarios; does not require a connection."""
        history = self._history.get(symbol)
        if history is None:
            self._seed_history(symbol)
            history = self._history[symbol]
        last = history[-1]
        history.append(self._make_candle(last.timestamp + self.cfg.bar_seconds, last.close, close))
        self._price[symbol] = close

    # ------------------------------------------------------------------
    # market data
    # ------------------------------------------------------------------
    async def get_market_data(self, symbol: str, bars: int = 100) -> list[Candle]:
        self._require_connection()
        self._tick(symbol)
        history = self._history[symbol]
        return list(history)[-bars:]

    def get_current_price(self, symbol: str) -> float:
        history = self._history.get(symbol)
        if not history:
            return 0.0
        return history[-1].close

    # ------------------------------------------------------------------
    # orders & positions
    # ------------------------------------------------------------------
    def _next_ticket(self) -> int:
        self._last_ticket = max(int(time.time() * 1000), self._last_ticket + 1)
        return self._last_ticket

    async def open_position(self, symbol: str, side: Action, volume: float,
                            stop_loss: float, take_profit: float) -> Position:
        self._require_connection()
        if side not in (Action.BUY, Action.SELL):
            raise ValueError(f"Cannot open a {side.value} position")

        price = (await self.get_market_data(symbol, 1))[0].close
        pos = Position(
            ticket=self._next_ticket(),
            symbol=symbol,
            side=side,
            volume=volume,
            open_price=price,
            current_price=price,
            profit=0.0,
            stop_loss=stop_loss,
            take_profit=take_profit,
            open_time=time.time(),
        )
        self._positions.append(pos)
        log.info("Filled %s %.2f %s @ %.5f  SL=%.5f TP=%.5f  #%d",
                 side.value, volume, symbol, price, stop_loss, take_profit, pos.ticket)
        return replace(pos)

    async def close_position(self, ticket: int) -> float:
        self._require_connection()
        pos = self._find(ticket)
        if pos is None:
            raise PositionNotFoundError(ticket)
        return self._close(pos)

    def _find(self, ticket: int) -> Optional[Position]:
        for pos in self._positions:
            if pos.ticket == ticket:
                return pos
        return None

    def _close(self, pos: Position) -> float:
        self._positions.remove(pos)
        self._balance += pos.profit
        self._closed[pos.ticket] = replace(pos)
        while len(self._closed) > self.CLOSED_RETENTION:
            self._closed.popitem(last=False)
        log.debug("Closed #%d  P&L %+.2f  balance %.2f", pos.ticket, pos.profit, self._balance)
        return pos.profit

    async def get_positions(self) -> list[Position]:
        """Mark every open position to market, auto-closing any whose price has
        crossed its stop-loss or take-profit. Each held symbol ticks once."""
        self._require_connection()

        for symbol in dict.fromkeys(p.symbol for p in self._positions):
            self._tick(symbol)

        for pos in list(self._positions):
            pos.mark(self.get_current_price(pos.symbol))
            if pos.exit_triggered():
                hit = "stop-loss" if pos.profit < 0 else "take-profit"
                log.info("Auto-closing #%d on %s @ %.5f  P&L %+.2f",
                         pos.ticket, hit, pos.current_price, pos.profit)
                self._close(pos)

        return [replace(p) for p in self._positions]

    def get_closed_position(self, ticket: int) -> Optional[Position]:
        """Final snapshot of a recently closed position, if still retained."""
        pos = self._closed.get(ticket)
        return replace(pos) if pos is not None else None

    # ------------------------------------------------------------------
    # account
    # ------------------------------------------------------------------
    async def get_account_info(self) -> AccountInfo:
        self._require_connection()
        return self._account()

    def _account(self) -> AccountInfo:
        leverage = self.cfg.leverage
        profit = sum(p.profit for p in self._positions)
        margin = sum(p.volume * p.open_price * CONTRACT_SIZE / leverage for p in self._positions)
        equity = self._balance + profit
        return AccountInfo(
            balance=self._balance,
            equity=equity,
            margin=margin,
            free_margin=equity - margin,
            profit=profit,
            leverage=leverage,
        )
