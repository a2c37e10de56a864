"""
Fetch closed orders (and account snapshots) from a brokerage. Configurable adapter; sync for MVP.

Fetchers return raw order records (plain dicts in the brokerage JSON shape);
trade_core.orders turns them into Orders. Pagination across pages lives in
fetch_all_closed_orders so every fetcher only has to serve one page.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

from trade_core.orders import parse_timestamp

logger = logging.getLogger("trade.data")

RawOrder = dict[str, Any]

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass
class FetchResult:
    """One page of raw orders and the cursor (timestamp) to continue after."""

    orders: list[RawOrder]
    next_cursor: datetime | None = None


class OrderFetcher(Protocol):
    """Protocol for order fetchers. Implement per brokerage (Alpaca, etc.)."""

    def fetch(
        self,
        *,
        after: datetime | None = None,
        until: datetime | None = None,
        limit: int = 500,
    ) -> FetchResult:
        """Fetch one page of closed orders, oldest first."""
        ...


class MockOrderFetcher:
    """Serves a fixed list of raw orders in pages; for tests and offline runs."""

    def __init__(self, orders: list[RawOrder] | None = None) -> None:
        # oldest first, like the brokerage with direction=asc
        self._orders = sorted(orders or [], key=lambda o: _cursor(o) or _EPOCH)
        self.calls: list[dict[str, Any]] = []

    def fetch(
        self,
        *,
        after: datetime | None = None,
        until: datetime | None = None,
        limit: int = 500,
    ) -> FetchResult:
        self.calls.append({"after": after, "until": until, "limit": limit})
        page = [o for o in self._orders if _in_window(o, after, until)][:limit]
        return FetchResult(orders=page, next_cursor=_cursor(page[-1]) if page else None)


def _cursor(order: RawOrder) -> datetime | None:
    for key in ("filled_at", "submitted_at", "created_at"):
        value = order.get(key)
        if value:
            try:
                return parse_timestamp(value)
            except ValueError:
                continue
    return None


def _in_window(order: RawOrder, after: datetime | None, until: datetime | None) -> bool:
    ts = _cursor(order)
    if ts is None:
        return after is None and until is None
    if after is not None and ts <= after:
        return False
    if until is not None and ts > until:
        return False
    return True


def fetch_all_closed_orders(
    fetcher: OrderFetcher,
    *,
    start: datetime | None = None,
    end: datetime | None = None,
    page_limit: int = 500,
) -> list[RawOrder]:
    """Walk every page of closed orders in [start, end].

    Stops on an empty page or a page shorter than ``page_limit``; otherwise
    continues after the last order's fill (or submit/create) time. Orders
    seen on an earlier page are not repeated.
    """
    all_orders: list[RawOrder] = []
    seen: set[str] = set()
    after = start

    while True:
        result = fetcher.fetch(after=after, until=end, limit=page_limit)
        if not result.orders:
            break

        for order in result.orders:
            order_id = order.get("id")
            if order_id is not None:
                if order_id in seen:
                    continue
                seen.add(order_id)
            all_orders.append(order)

        if len(result.orders) < page_limit:
            break

        if result.next_cursor is not None:
            next_after = parse_timestamp(result.next_cursor)
        else:
            next_after = _cursor(result.orders[-1])
        if next_after is None or (after is not None and next_after <= after):
            logger.warning("Order pagination stalled at %s; stopping", after)
            break
        after = next_after

    logger.info("Fetched %d closed orders", len(all_orders))
    return all_orders


# ---------------------------------------------------------------------------
# Open positions and portfolio history
# ---------------------------------------------------------------------------

RawPosition = dict[str, Any]


@dataclass
class EquityHistory:
    """Portfolio equity over time, oldest first. Values may be None for gaps."""

    timestamps: list[datetime]
    equity: list[float | None]


class PortfolioFetcher(Protocol):
    """Protocol for account snapshots: open positions and equity history."""

    def positions(self) -> list[RawPosition]:
        ...

    def equity_history(self, *, period: str = "1M", timeframe: str = "1D") -> EquityHistory:
        ...


class MockPortfolioFetcher:
    """Serves fixed positions and equity series; for tests and offline runs.

    ``histories`` maps a period ("1M", "all", ...) to its equity values.
    """

    def __init__(
        self,
        positions: list[RawPosition] | None = None,
        histories: dict[str, list[float | None]] | None = None,
    ) -> None:
        self._positions = list(positions or [])
        self._histories = dict(histories or {})
        self.calls: list[dict[str, Any]] = []

    def positions(self) -> list[RawPosition]:
        return list(self._positions)

    def equity_history(self, *, period: str = "1M", timeframe: str = "1D") -> EquityHistory:
        self.calls.append({"period": period, "timeframe": timeframe})
        equity = list(self._histories.get(period, []))
        stamps = [_EPOCH + timedelta(days=i) for i in range(len(equity))]
        return EquityHistory(timestamps=stamps, equity=equity)
