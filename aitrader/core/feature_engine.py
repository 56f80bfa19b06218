import math
from typing import Sequence

import numpy as np

from ..constants import MIN_ANALYSIS_CANDLES
from ..errors import DataQualityError, InsufficientDataError
from ..utils.candle import Candle
from . import indicators as ind

class FeatureEngine:
    """Converts a window of candles into the model's 20-value feature vector.
    Every ratio is taken against the current or a reference price; a zero
    denominator raises DataQualityError instead of producing inf/NaN."""

    FEATURE_NAMES = [
        "price_sma20", "price_sma50", "ema_spread", "rsi_centered",
        "macd_line", "macd_hist",
        "bb_pos", "bb_lower_dist", "bb_upper_dist",
        "rel_volume",
        "mom_1", "mom_5", "mom_10",
        "volatility",
        "trend_strength",
        "support", "resistance",
        "volume_change",
        "macd_signal",
        "rsi_momentum",
    ]

    NUM_FEATURES = len(FEATURE_NAMES)   # 20

    def __init__(self, min_candles: int = MIN_ANALYSIS_CANDLES):
        self.min_candles = min_candles

    def compute(self, candles: Sequence[Candle]) -> np.ndarray:
        if len(candles) < self.min_candles:
            raise InsufficientDataError(
                f"need {self.min_candles} candles, got {len(candles)}")

        closes = np.array([c.close for c in candles], dtype=np.float64)
        vols = np.array([c.volume for c in candles], dtype=np.float64)

        sma20 = ind.sma(closes, 20)
        sma50 = ind.sma(closes, 50)
        ema12 = ind.ema(closes, 12)
        ema26 = ind.ema(closes, 26)
        rsi = ind.rsi(closes)
        macd = ind.macd(closes)
        bb = ind.bollinger_bands(closes)

        price = float(closes[-1])
        vol_avg = ind.sma(vols, 20)

        r = self._ratio
        feats = [
            r("price_sma20", price - sma20, sma20),
            r("price_sma50", price - sma50, sma50),
            r("ema_spread", ema12 - ema26, price),
            (rsi - 50.0) / 50.0,
            r("macd_line", macd.macd, price),
            r("macd_hist", macd.histogram, price),
            r("bb_pos", price - bb.middle, bb.upper - bb.lower),
            r("bb_lower_dist", price - bb.lower, price),
            r("bb_upper_dist", bb.upper - price, price),
            r("rel_volume", vols[-1] - vol_avg, vol_avg),
            # --- momentum ---
            r("mom_1", closes[-1] - closes[-2], closes[-2]),
            r("mom_5", closes[-1] - closes[-5], closes[-5]),
            r("mom_10", closes[-1] - closes[-10], closes[-10]),
            self._volatility(closes[-10:]),
            r("trend_strength", sma20 - sma50, sma50),
            # --- support / resistance ---
            r("support", np.min(closes[-20:]), price),
            r("resistance", np.max(closes[-20:]), price),
            r("volume_change", vols[-1] - vols[-2], vols[-2]),
            r("macd_signal", macd.signal, price),
            (rsi - ind.rsi(closes[:-1])) / 100.0,
        ]
        return np.array(feats, dtype=np.float64)

    # ---- Helpers ----
    # denominators this small only come from rounding noise on degenerate data
    ZERO_TOL = 1e-12

    @classmethod
    def _ratio(cls, name: str, num: float, den: float) -> float:
        if abs(den) <= cls.ZERO_TOL:
            raise DataQualityError(name)
        return float(num) / float(den)

    @staticmethod
    def _volatility(window: np.ndarray) -> float:
        """RMS of bar-to-bar returns, averaged over the full window length."""
        if np.any(window[:-1] == 0):
            raise DataQualityError("volatility")
        rets = np.diff(window) / window[:-1]
        return math.sqrt(float(np.sum(rets ** 2)) / len(window))
