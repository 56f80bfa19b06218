from aitrader.trading.journal import TradeJournal
from aitrader.trading.performance import PerformanceTracker
from aitrader.trading.trade import TradeHistoryRecord


def _record(ticket, action, profit=None):
    return TradeHistoryRecord(ticket, 1_700_000_000.0, "EURUSD", action, 1.1, 0.05,
                              f"{action} #{ticket}", profit)


def test_journal_round_trip(tmp_path):
    path = str(tmp_path / "trades.db")
    journal = TradeJournal(path)
    records = [_record(1, "BUY"), _record(2, "SELL"), _record(1, "CLOSE", -3.5)]
    for r in records:
        journal.append(r)
    assert journal.total_trades() == 2
    journal.close()

    reopened = TradeJournal(path)
    assert reopened.load_history() == records
    reopened.close()


def test_performance_counts_breakeven_as_loss():
    perf = PerformanceTracker()
    for p in (10.0, 0.0, -4.0, 6.0):
        perf.record(p)
    assert (perf.wins, perf.losses) == (2, 2)
    assert perf.total_profit == 12.0
    assert perf.max_drawdown == 4.0
    assert perf.consec_losses == 0
    assert "W:2 L:2" in perf.summary()


def test_recent_win_rate_follows_window():
    perf = PerformanceTracker(window=3)
    for p in (5.0, 5.0, 5.0, -1.0, -1.0, 2.0):
        perf.record(p)
    assert perf.win_rate == 4 / 6
    assert perf.recent_win_rate == 1 / 3
    assert perf.profit_factor == 17.0 / 2.0
    assert "(last 3: 33.3%)" in perf.summary()


def test_profit_factor_edge_cases():
    perf = PerformanceTracker()
    assert perf.profit_factor == 0.0
    perf.record(3.0)
    assert perf.profit_factor == float("inf")
