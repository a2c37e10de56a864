"""
Order normalisation: raw brokerage order records -> contracts.Order.

Raw records follow the brokerage JSON shape (symbol, side, filled_qty,
filled_avg_price, filled_at, status, id). Numbers may arrive as strings;
timestamps as ISO-8601 strings or datetimes. Anything unusable raises
InvalidOrderData for that single order.
"""

from __future__ import annotations

import math
import re
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

from trade_core.contracts import InvalidOrderData, Order

FILLED = "filled"
SIDES = ("buy", "sell")

# Brokerage timestamps can carry nanoseconds; datetime keeps microseconds.
_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


def _utc_ts(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 string or datetime into an aware UTC datetime."""
    if isinstance(value, datetime):
        return _utc_ts(value)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"not a timestamp: {value!r}")
    text = _FRACTION_RE.sub(r"\1", value.strip().replace("Z", "+00:00"))
    return _utc_ts(datetime.fromisoformat(text))


def _enum_str(value: Any) -> str:
    """Plain lowercase string for either a str or an SDK enum member."""
    return str(getattr(value, "value", value)).strip().lower()


def status_of(raw: Order | Mapping[str, Any]) -> str:
    if isinstance(raw, Order):
        return raw.status
    value = raw.get("status")
    return _enum_str(value) if value is not None else ""


def _number(raw: Mapping[str, Any], key: str, order_id: str | None) -> float:
    value = raw.get(key)
    if value is None or value == "":
        raise InvalidOrderData(f"missing {key}", order_id=order_id, field_name=key)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidOrderData(
            f"{key} is not numeric: {value!r}", order_id=order_id, field_name=key
        ) from None
    if not math.isfinite(number):
        raise InvalidOrderData(f"{key} is not finite: {value!r}", order_id=order_id, field_name=key)
    return number


def parse_order(raw: Order | Mapping[str, Any]) -> Order:
    """Convert one raw order record into an Order.

    Orders that are already Order instances are validated and their fill
    time normalised to aware UTC (naive datetimes are taken as UTC).

    Raises
    ------
    InvalidOrderData
        Missing symbol, unknown side, missing or non-numeric quantity/price,
        non-positive quantity, negative price, or unparseable fill time.
    """
    if isinstance(raw, Order):
        if not isinstance(raw.filled_at, datetime):
            raise InvalidOrderData(
                f"filled_at is not a datetime: {raw.filled_at!r}", order_id=raw.order_id, field_name="filled_at"
            )
        _validate(raw)
        return replace(raw, filled_at=_utc_ts(raw.filled_at))

    order_id = raw.get("id") or raw.get("order_id")
    order_id = str(order_id) if order_id is not None else None

    symbol = raw.get("symbol")
    if not isinstance(symbol, str) or not symbol.strip():
        raise InvalidOrderData("missing symbol", order_id=order_id, field_name="symbol")

    side = _enum_str(raw.get("side", ""))
    qty = _number(raw, "filled_qty", order_id)
    price = _number(raw, "filled_avg_price", order_id)

    filled_at = raw.get("filled_at")
    if filled_at is None:
        raise InvalidOrderData("missing filled_at", order_id=order_id, field_name="filled_at")
    try:
        ts = parse_timestamp(filled_at)
    except ValueError:
        raise InvalidOrderData(
            f"filled_at is not a timestamp: {filled_at!r}", order_id=order_id, field_name="filled_at"
        ) from None

    order = Order(
        symbol=symbol.strip(),
        side=side,
        filled_qty=qty,
        filled_avg_price=price,
        filled_at=ts,
        status=status_of(raw),
        order_id=order_id,
    )
    _validate(order)
    return order


def _validate(order: Order) -> None:
    if order.side not in SIDES:
        raise InvalidOrderData(f"unknown side {order.side!r}", order_id=order.order_id, field_name="side")
    if order.filled_qty <= 0:
        raise InvalidOrderData(
            f"filled_qty must be positive, got {order.filled_qty}", order_id=order.order_id, field_name="filled_qty"
        )
    if order.filled_avg_price < 0:
        raise InvalidOrderData(
            f"filled_avg_price must not be negative, got {order.filled_avg_price}",
            order_id=order.order_id,
            field_name="filled_avg_price",
        )


def filter_orders(
    orders: Iterable[Order | Mapping[str, Any]],
    *,
    symbol: str | None = None,
    side: str | None = None,
) -> list[Order]:
    """Filled orders, newest fill first, optionally narrowed to one symbol and/or side.

    Malformed orders are left out; the matcher reports them.
    """
    out: list[Order] = []
    for raw in orders:
        if status_of(raw) != FILLED:
            continue
        try:
            order = parse_order(raw)
        except InvalidOrderData:
            continue
        if symbol and order.symbol != symbol:
            continue
        if side and order.side != side:
            continue
        out.append(order)
    out.sort(key=lambda o: o.filled_at, reverse=True)
    return out
