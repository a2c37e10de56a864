"""
Persist and load raw brokerage orders (SQLite). Timestamps in UTC.

Orders are kept as the raw JSON records the fetcher produced so that
malformed ones still reach the matcher, which reports them as skipped.
"""

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

from data.fetcher import RawOrder
from trade_core.orders import parse_timestamp


def _utc_ts(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def _sort_ts(order: RawOrder) -> str:
    """Fill time (or submit/create time) as a sortable ISO string; '' if unknown."""
    for key in ("filled_at", "submitted_at", "created_at"):
        value = order.get(key)
        if value:
            try:
                return parse_timestamp(value).isoformat()
            except ValueError:
                continue
    return ""


def _order_key(order: RawOrder) -> str:
    if order.get("id"):
        return str(order["id"])
    return "|".join(str(order.get(k, "")) for k in ("symbol", "side", "filled_qty", "filled_avg_price", "filled_at"))


class OrderStore:
    """SQLite-backed order storage. One file per path."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _conn(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self._path))

    def _init_schema(self) -> None:
        with self._conn() as c:
            c.execute(
                """
                CREATE TABLE IF NOT EXISTS orders (
                    id TEXT PRIMARY KEY,
                    symbol TEXT,
                    side TEXT,
                    status TEXT,
                    ts_utc TEXT NOT NULL,
                    raw TEXT NOT NULL
                )
                """
            )
            c.execute("CREATE INDEX IF NOT EXISTS idx_orders_ts ON orders (ts_utc)")

    def write_orders(self, orders: Sequence[RawOrder]) -> int:
        """Upsert orders (by id). Returns the number written."""
        with self._conn() as c:
            for o in orders:
                c.execute(
                    """
                    INSERT OR REPLACE INTO orders (id, symbol, side, status, ts_utc, raw)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        _order_key(o),
                        o.get("symbol"),
                        o.get("side"),
                        o.get("status"),
                        _sort_ts(o),
                        json.dumps(o, default=str),
                    ),
                )
        return len(orders)

    def get_orders(
        self,
        *,
        since: datetime | None = None,
        until: datetime | None = None,
        symbol: str | None = None,
    ) -> list[RawOrder]:
        """Return raw orders in ascending fill-time order."""
        with self._conn() as c:
            q = "SELECT raw FROM orders WHERE 1 = 1"
            params: list = []
            if since is not None:
                q += " AND ts_utc >= ?"
                params.append(_utc_ts(since).isoformat())
            if until is not None:
                q += " AND ts_utc <= ?"
                params.append(_utc_ts(until).isoformat())
            if symbol is not None:
                q += " AND symbol = ?"
                params.append(symbol)
            q += " ORDER BY ts_utc ASC, rowid ASC"
            rows = c.execute(q, params).fetchall()
        return [json.loads(r[0]) for r in rows]

    def count_orders(self, symbol: str | None = None) -> int:
        """Return the total number of stored orders, optionally for one symbol."""
        with self._conn() as c:
            if symbol is None:
                row = c.execute("SELECT COUNT(*) FROM orders").fetchone()
            else:
                row = c.execute("SELECT COUNT(*) FROM orders WHERE symbol = ?", (symbol,)).fetchone()
        return row[0] if row else 0

    def latest_timestamp(self) -> datetime | None:
        """Most recent fill time in the store, or None when empty."""
        with self._conn() as c:
            row = c.execute("SELECT MAX(ts_utc) FROM orders WHERE ts_utc != ''").fetchone()
        if not row or not row[0]:
            return None
        return datetime.fromisoformat(row[0])
