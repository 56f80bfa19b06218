import sqlite3

from .trade import TradeHistoryRecord

class TradeJournal:
    """Append-only SQLite log of trade history records."""

    def __init__(self, db_path: str):
        self.conn = sqlite3.connect(db_path)
        self._init_db()

    def _init_db(self):
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS trades (
                seq         INTEGER PRIMARY KEY AUTOINCREMENT,
                ticket      INTEGER,
                ts          REAL,
                symbol      TEXT,
                action      TEXT,
                price       REAL,
                volume      REAL,
                profit      REAL,
                reasoning   TEXT
            )
        """)
        self.conn.commit()

    def append(self, r: TradeHistoryRecord):
        self.conn.execute(
            "INSERT INTO trades (ticket, ts, symbol, action, price, volume, profit, reasoning) "
            "VALUES (?,?,?,?,?,?,?,?)",
            (r.id, r.timestamp, r.symbol, r.action, r.price, r.volume, r.profit, r.reasoning),
        )
        self.conn.commit()

    def load_history(self) -> list[TradeHistoryRecord]:
        """All records in insertion order."""
        cur = self.conn.execute(
            "SELECT ticket, ts, symbol, action, price, volume, profit, reasoning "
            "FROM trades ORDER BY seq ASC"
        )
        return [
            TradeHistoryRecord(
                id=ticket, timestamp=ts, symbol=symbol, action=action,
                price=price, volume=volume, profit=profit, reasoning=reasoning,
            )
            for ticket, ts, symbol, action, price, volume, profit, reasoning in cur.fetchall()
        ]

    def total_trades(self) -> int:
        cur = self.conn.execute("SELECT COUNT(*) FROM trades WHERE action != 'CLOSE'")
        return cur.fetchone()[0]

    def close(self):
        self.conn.close()
