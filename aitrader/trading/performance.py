from collections import deque

class PerformanceTracker:
    """Running stats over closed positions. A close at zero profit is a loss."""

    def __init__(self, window: int = 20):
        self.wins = 0
        self.losses = 0
        self.total_profit = 0.0
        self.gross_win = 0.0
        self.gross_loss = 0.0
        self.consec_losses = 0
        self.max_drawdown = 0.0
        self._peak = 0.0
        self.recent_profits: deque[float] = deque(maxlen=window)

    @property
    def total(self):
        return self.wins + self.losses

    @property
    def win_rate(self):
        return self.wins / self.total if self.total > 0 else 0.5

    @property
    def recent_win_rate(self):
        """Win rate over the last `window` closes only."""
        if not self.recent_profits:
            return 0.5
        return sum(1 for p in self.recent_profits if p > 0) / len(self.recent_profits)

    @property
    def profit_factor(self):
        if self.gross_loss == 0:
            return float("inf") if self.gross_win > 0 else 0.0
        return self.gross_win / self.gross_loss

    def record(self, profit: float):
        self.recent_profits.append(profit)
        self.total_profit += profit
        if profit > 0:
            self.wins += 1
            self.gross_win += profit
            self.consec_losses = 0
        else:
            self.losses += 1
            self.gross_loss -= profit
            self.consec_losses += 1

        self._peak = max(self._peak, self.total_profit)
        self.max_drawdown = max(self.max_drawdown, self._peak - self.total_profit)

    def summary(self) -> str:
        return (
            f"W:{self.wins} L:{self.losses} "
            f"WR:{self.win_rate:.1%} (last {len(self.recent_profits)}: {self.recent_win_rate:.1%}) "
            f"PF:{self.profit_factor:.2f} "
            f"P&L:${self.total_profit:+.2f} "
            f"MaxDD:${self.max_drawdown:.2f} "
            f"LossStreak:{self.consec_losses}"
        )
