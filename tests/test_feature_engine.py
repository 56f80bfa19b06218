import numpy as np
import pytest

from aitrader.core.feature_engine import FeatureEngine
from aitrader.errors import DataQualityError, InsufficientDataError


def test_vector_has_twenty_finite_values(walk_candles):
    feats = FeatureEngine().compute(walk_candles(100))
    assert feats.shape == (FeatureEngine.NUM_FEATURES,) == (20,)
    assert np.all(np.isfinite(feats))


def test_needs_fifty_candles(walk_candles):
    engine = FeatureEngine()
    with pytest.raises(InsufficientDataError):
        engine.compute(walk_candles(49))
    assert engine.compute(walk_candles(50)).shape == (20,)


def test_known_ratios(walk_candles):
    candles = walk_candles(80)
    closes = np.array([c.close for c in candles])
    feats = FeatureEngine().compute(candles)
    names = FeatureEngine.FEATURE_NAMES

    price = closes[-1]
    sma20 = closes[-20:].mean()
    assert feats[names.index("price_sma20")] == pytest.approx((price - sma20) / sma20)
    assert feats[names.index("mom_1")] == pytest.approx((price - closes[-2]) / closes[-2])
    assert feats[names.index("support")] == pytest.approx(closes[-20:].min() / price)
    assert feats[names.index("resistance")] == pytest.approx(closes[-20:].max() / price)
    # the MACD signal line equals the MACD line
    assert feats[names.index("macd_hist")] == 0.0
    assert feats[names.index("macd_signal")] == pytest.approx(feats[names.index("macd_line")])


def test_volatility_is_rms_over_ten_bars(walk_candles):
    candles = walk_candles(60)
    window = np.array([c.close for c in candles[-10:]])
    rets = np.diff(window) / window[:-1]
    expected = np.sqrt(np.sum(rets ** 2) / 10)
    feats = FeatureEngine().compute(candles)
    assert feats[FeatureEngine.FEATURE_NAMES.index("volatility")] == pytest.approx(expected)


def test_flat_prices_fail_on_band_width(make_candles):
    with pytest.raises(DataQualityError) as exc:
        FeatureEngine().compute(make_candles([1.1] * 60))
    assert exc.value.feature == "bb_pos"


def test_zero_volume_is_a_data_quality_error(walk_candles):
    candles = [c.__class__(c.timestamp, c.open, c.high, c.low, c.close, 0.0)
               for c in walk_candles(60)]
    with pytest.raises(DataQualityError) as exc:
        FeatureEngine().compute(candles)
    assert exc.value.feature == "rel_volume"


def test_rounding_noise_counts_as_zero_denominator():
    with pytest.raises(DataQualityError):
        FeatureEngine._ratio("bb_pos", 1e-16, 8.881784197001252e-16)
    assert FeatureEngine._ratio("bb_pos", 0.001, 0.004) == pytest.approx(0.25)
