"""
Round-trip matcher: filled orders -> FIFO-matched RoundTrips + per-symbol stats.

Per symbol, orders are replayed in fill-time order. Buys open lots at the tail
of a FIFO queue; sells consume lots from the head, emitting one RoundTrip per
matched slice. Short positions are not modeled: a sell (or the residue of a
sell) with no open lot produces nothing.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Any, Iterable, Mapping

from trade_core.contracts import (
    InvalidOrderData,
    Lot,
    MatchResult,
    Order,
    RoundTrip,
    SkippedOrder,
    SymbolStats,
)
from trade_core.orders import FILLED, parse_order, status_of

logger = logging.getLogger("trade.matcher")

# Brokerage quantities carry at most 9 decimal places (fractional shares).
# Rounding after each subtraction keeps float residue from opening a phantom slice.
QTY_PLACES = 9


def _partition(
    orders: Iterable[Order | Mapping[str, Any]],
    skipped: list[SkippedOrder],
) -> dict[str, list[Order]]:
    by_symbol: dict[str, list[Order]] = {}
    for raw in orders:
        if status_of(raw) != FILLED:
            continue
        try:
            order = parse_order(raw)
        except InvalidOrderData as exc:
            symbol = raw.symbol if isinstance(raw, Order) else raw.get("symbol")
            skipped.append(SkippedOrder(order_id=exc.order_id, symbol=symbol, reason=str(exc)))
            logger.warning("Skipping order %s (%s): %s", exc.order_id, symbol, exc)
            continue
        by_symbol.setdefault(order.symbol, []).append(order)
    return by_symbol


def _match_symbol(symbol: str, orders: list[Order], trips: list[RoundTrip]) -> tuple[SymbolStats, list[Lot]]:
    # sorted() is stable: equal fill times keep input order
    ordered = sorted(orders, key=lambda o: o.filled_at)
    queue: deque[Lot] = deque()
    stats = SymbolStats()

    for order in ordered:
        if order.side == "buy":
            queue.append(
                Lot(
                    symbol=symbol,
                    remaining_qty=order.filled_qty,
                    price=order.filled_avg_price,
                    opened_at=order.filled_at,
                )
            )
            continue

        sell_remaining = order.filled_qty
        while sell_remaining > 0 and queue:
            lot = queue[0]
            matched = min(sell_remaining, lot.remaining_qty)
            trip = RoundTrip(
                symbol=symbol,
                qty=matched,
                buy_price=lot.price,
                sell_price=order.filled_avg_price,
                buy_timestamp=lot.opened_at,
                sell_timestamp=order.filled_at,
            )
            trips.append(trip)
            stats.record(trip)

            lot.remaining_qty = round(lot.remaining_qty - matched, QTY_PLACES)
            sell_remaining = round(sell_remaining - matched, QTY_PLACES)
            if lot.remaining_qty <= 0:
                queue.popleft()

        if sell_remaining > 0:
            logger.debug(
                "%s sell %s at %s: %s shares with no open lot ignored",
                symbol, order.order_id, order.filled_at.isoformat(), sell_remaining,
            )

    return stats, list(queue)


def match(orders: Iterable[Order | Mapping[str, Any]]) -> MatchResult:
    """Reconstruct FIFO round trips from a snapshot of orders.

    Parameters
    ----------
    orders:
        Orders in any order, as Order instances or raw brokerage records.
        Non-filled statuses are ignored.

    Returns
    -------
    MatchResult
        Round trips sorted by sell time, stats per symbol, lots still open,
        and the filled orders skipped because their data was malformed.
    """
    skipped: list[SkippedOrder] = []
    by_symbol = _partition(orders, skipped)

    trips: list[RoundTrip] = []
    stats: dict[str, SymbolStats] = {}
    open_lots: dict[str, list[Lot]] = {}
    for symbol, symbol_orders in by_symbol.items():
        stats[symbol], lots = _match_symbol(symbol, symbol_orders, trips)
        if lots:
            open_lots[symbol] = lots

    trips.sort(key=lambda t: t.sell_timestamp)
    logger.info(
        "Matched %d round trips across %d symbols (%d orders skipped)",
        len(trips), len(stats), len(skipped),
    )
    return MatchResult(round_trips=trips, symbol_stats=stats, open_lots=open_lots, skipped=skipped)


def filter_round_trips(trips: Iterable[RoundTrip], symbol: str | None = None) -> list[RoundTrip]:
    """All trips, or only those for one symbol."""
    if not symbol:
        return list(trips)
    return [t for t in trips if t.symbol == symbol]


def total_stats(symbol_stats: Mapping[str, SymbolStats], symbol: str | None = None) -> SymbolStats:
    """Stats for one symbol, or the sum across every symbol."""
    if symbol:
        found = symbol_stats.get(symbol)
        if found is None:
            return SymbolStats()
        return SymbolStats(found.realized_pl, found.trade_count, found.win_count, found.loss_count)

    total = SymbolStats()
    for s in symbol_stats.values():
        total.realized_pl += s.realized_pl
        total.trade_count += s.trade_count
        total.win_count += s.win_count
        total.loss_count += s.loss_count
    return total
