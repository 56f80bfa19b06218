from ..constants import Action

class RiskManager:
    """ATR-based stop/target placement and confidence-scaled lot sizing."""

    def __init__(self, stop_atr: float = 2.0, target_atr: float = 3.0,
                 lot_scale: float = 0.1, max_lot: float = 0.05):
        self.stop_atr = stop_atr
        self.target_atr = target_atr
        self.lot_scale = lot_scale
        self.max_lot = max_lot

    def levels(self, action: Action, price: float, atr: float) -> tuple[float, float]:
        """(stop_loss, take_profit) for an entry at `price`."""
        if action == Action.HOLD:
            return 0.0, 0.0
        stop_dist = atr * self.stop_atr
        target_dist = atr * self.target_atr
        if action == Action.BUY:
            return price - stop_dist, price + target_dist
        return price + stop_dist, price - target_dist

    def lot_size(self, action: Action, probability: float) -> float:
        """Scaled by model probability (0-1), hard capped at max_lot."""
        if action == Action.HOLD:
            return 0.0
        return min(self.lot_scale * probability, self.max_lot)
