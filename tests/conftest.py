import numpy as np
import pytest

from aitrader.config import Credentials, SimulatorConfig
from aitrader.constants import Action
from aitrader.utils.candle import Candle


class ScriptedModel:
    """Stands in for DecisionModel: fixed decision, records learning calls."""

    def __init__(self, action=Action.BUY, prob=0.9):
        self.action = action
        self.prob = prob
        self.learned = []

    def decide(self, features):
        return self.action, self.prob

    async def learn_from_trade(self, features, action, profit):
        self.learned.append((features, action, profit))
        return True


def _candles(closes, volume=1000.0, wick=0.0005):
    out = []
    prev = closes[0]
    for i, c in enumerate(closes):
        vol = volume[i] if isinstance(volume, (list, tuple, np.ndarray)) else volume
        out.append(Candle(
            timestamp=1_700_000_000 + i * 60,
            open=prev,
            high=max(prev, c) + wick,
            low=min(prev, c) - wick,
            close=c,
            volume=vol,
        ))
        prev = c
    return out


@pytest.fixture
def make_candles():
    return _candles


@pytest.fixture
def walk_candles():
    """Deterministic random-walk history of n candles with varying volume."""
    def _walk(n=100, seed=3, start=1.1):
        rng = np.random.default_rng(seed)
        closes = start * np.cumprod(1 + rng.uniform(-0.001, 0.001, n))
        volumes = rng.uniform(500, 1500, n)
        return _candles(list(closes), volume=list(volumes))
    return _walk


@pytest.fixture
def scripted_model():
    return ScriptedModel


@pytest.fixture
def sim_cfg():
    return SimulatorConfig(connect_delay=0, seed=7)


@pytest.fixture
def flat_sim_cfg():
    """No random drift between ticks: price only moves via push_price."""
    return SimulatorConfig(connect_delay=0, seed=7, tick_step=0.0)


@pytest.fixture
def creds():
    return Credentials(account_number="5001234", password="secret", server="Demo-Server")
