"""
Unrealized P/L over open positions and equity change over a history window.

Realized P/L comes from matched round trips; this module covers what is
still open. Raw positions follow the brokerage JSON shape (symbol, qty,
avg_entry_price, current_price, market_value, unrealized_pl) with numbers
as strings. Equity series are the portfolio-history equity values, oldest
first.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Iterable, Mapping, Sequence

from trade_core.contracts import EquityChange, InvalidPositionData, Position, PositionTotals

logger = logging.getLogger("trade.positions")


def _float(raw: Mapping[str, Any], key: str, symbol: str | None, *, required: bool) -> float | None:
    value = raw.get(key)
    if value is None or value == "":
        if required:
            raise InvalidPositionData(f"missing {key}", symbol=symbol, field_name=key)
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidPositionData(f"{key} is not numeric: {value!r}", symbol=symbol, field_name=key) from None
    if not math.isfinite(number):
        raise InvalidPositionData(f"{key} is not finite: {value!r}", symbol=symbol, field_name=key)
    return number


def parse_position(raw: Position | Mapping[str, Any]) -> Position:
    """Convert one raw position record into a Position.

    Missing market value or unrealized P/L count as 0; quantity and average
    entry price are required.
    """
    if isinstance(raw, Position):
        return raw

    symbol = raw.get("symbol")
    if not isinstance(symbol, str) or not symbol.strip():
        raise InvalidPositionData("missing symbol", field_name="symbol")
    symbol = symbol.strip()

    return Position(
        symbol=symbol,
        qty=_float(raw, "qty", symbol, required=True),
        avg_entry_price=_float(raw, "avg_entry_price", symbol, required=True),
        market_value=_float(raw, "market_value", symbol, required=False) or 0.0,
        unrealized_pl=_float(raw, "unrealized_pl", symbol, required=False) or 0.0,
        current_price=_float(raw, "current_price", symbol, required=False),
    )


def parse_positions(raws: Iterable[Position | Mapping[str, Any]]) -> tuple[list[Position], int]:
    """Parse every position; malformed ones are logged and counted, not raised."""
    positions: list[Position] = []
    skipped = 0
    for raw in raws:
        try:
            positions.append(parse_position(raw))
        except InvalidPositionData as exc:
            skipped += 1
            logger.warning("Skipping position %s: %s", exc.symbol, exc)
    return positions, skipped


def position_totals(raws: Iterable[Position | Mapping[str, Any]]) -> PositionTotals:
    """Market value, cost basis and unrealized P/L summed over open positions.

    The percent is taken against total cost basis and is 0.0 when that cost
    is not positive.
    """
    positions, skipped = parse_positions(raws)
    market_value = sum(p.market_value for p in positions)
    cost_basis = sum(p.cost_basis for p in positions)
    unrealized = sum(p.unrealized_pl for p in positions)
    pct = unrealized / cost_basis * 100 if cost_basis > 0 else 0.0
    return PositionTotals(
        count=len(positions),
        market_value=market_value,
        cost_basis=cost_basis,
        unrealized_pl=unrealized,
        unrealized_pl_pct=pct,
        skipped=skipped,
    )


def equity_change(equity: Sequence[float | None]) -> EquityChange:
    """Change from the first to the last equity value of a history series.

    Gaps (None or non-finite values) are ignored. An empty series gives all
    zeros; the percent is 0.0 unless the starting equity is positive.
    """
    values = [float(v) for v in equity if v is not None and math.isfinite(float(v))]
    if not values:
        return EquityChange()
    start, end = values[0], values[-1]
    change = end - start
    pct = change / start * 100 if start > 0 else 0.0
    return EquityChange(start=start, end=end, change=change, change_pct=pct)
