from dataclasses import dataclass
from typing import Optional

@dataclass(frozen=True)
class BotConfig:
    """All tuneable knobs in one place. Immutable for the bot's lifetime."""

    # --- trading ---
    symbol: str = "EURUSD"                  # instrument to trade
    max_positions: int = 3                  # max concurrently open positions
    risk_per_trade: float = 0.02            # fraction of equity at risk (informational)
    min_confidence: float = 60.0            # percent, signal must reach this to trade

    # --- loop ---
    analysis_interval_ms: int = 5000        # tick cadence
    market_bars: int = 100                  # window fetched per tick

    # --- persistence (None = in-memory only) ---
    db_path: Optional[str] = None           # SQLite trade journal
    brain_path: Optional[str] = None        # pickled model parameters


@dataclass(frozen=True)
class SimulatorConfig:
    start_price: float = 1.0950             # EUR/USD seed price
    balance: float = 10_000.0
    leverage: int = 100

    seed_bars: int = 101                    # synthetic history generated on connect
    max_history: int = 200                  # bars retained per symbol
    bar_seconds: int = 60                   # 1 minute bars

    seed_step: float = 0.0010               # ε ~ U(-seed_step, seed_step) while seeding
    tick_step: float = 0.00075              # ε ~ U(-tick_step, tick_step) per live tick
    close_jitter: float = 0.0005
    wick_jitter: float = 0.0005

    connect_delay: float = 1.0              # simulated handshake (seconds)
    seed: Optional[int] = None              # RNG seed for reproducible runs


@dataclass(frozen=True)
class Credentials:
    account_number: str = ""
    password: str = ""
    server: str = ""

    def __repr__(self) -> str:
        return f"Credentials(account_number={self.account_number!r}, server={self.server!r})"
