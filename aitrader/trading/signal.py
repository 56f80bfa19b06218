from typing import Optional, Sequence

import numpy as np

from ..constants import Action
from ..core import indicators as ind
from ..core.feature_engine import FeatureEngine
from ..core.models import DecisionModel
from ..errors import DataQualityError
from ..utils.candle import Candle
from ..utils.logger import log
from .risk import RiskManager
from .trade import TradeSignal

INSUFFICIENT_DATA = "Insufficient data for analysis"

class SignalComposer:
    """Features -> model -> risk levels -> one immutable TradeSignal."""

    def __init__(self, model: Optional[DecisionModel], features: FeatureEngine,
                 risk: RiskManager):
        self.model = model
        self.features = features
        self.risk = risk

    def analyze(self, candles: Sequence[Candle]) -> TradeSignal:
        return self.analyze_with_features(candles)[0]

    def analyze_with_features(self, candles: Sequence[Candle]
                              ) -> tuple[TradeSignal, Optional[np.ndarray]]:
        """Signal plus the feature vector it was computed from (None when the
        analysis short-circuited before feature extraction succeeded)."""
        if self.model is None or len(candles) < self.features.min_candles:
            return TradeSignal.hold(INSUFFICIENT_DATA), None

        try:
            feats = self.features.compute(candles)
        except DataQualityError as e:
            log.warning("Feature extraction failed: %s", e)
            return TradeSignal.hold(f"Analysis failed: {e}"), None

        action, prob = self.model.decide(feats)

        closes = np.array([c.close for c in candles], dtype=np.float64)
        price = float(closes[-1])
        atr = ind.atr(candles)
        rsi = ind.rsi(closes)
        macd = ind.macd(closes)

        stop_loss, take_profit = self.risk.levels(action, price, atr)
        confidence = prob * 100.0
        signal = TradeSignal(
            action=action,
            confidence=confidence,
            stop_loss=stop_loss,
            take_profit=take_profit,
            lot_size=self.risk.lot_size(action, prob),
            reasoning=self.reasoning(action, confidence, rsi, macd, closes),
        )
        return signal, feats

    @staticmethod
    def reasoning(action: Action, confidence: float, rsi: float,
                  macd: ind.MACD, closes: np.ndarray) -> str:
        reasons = []
        if action == Action.BUY:
            if rsi < 30: reasons.append("RSI oversold")
            if macd.histogram > 0: reasons.append("MACD bullish")
            if closes[-1] > closes[-5]: reasons.append("Uptrend detected")
        elif action == Action.SELL:
            if rsi > 70: reasons.append("RSI overbought")
            if macd.histogram < 0: reasons.append("MACD bearish")
            if closes[-1] < closes[-5]: reasons.append("Downtrend detected")
        else:
            reasons.append("Market conditions unclear")

        detail = ", ".join(reasons) if reasons else "no confirming indicators"
        return f"{action.value} signal ({confidence:.1f}% confidence): {detail}"
