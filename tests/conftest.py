"""Pytest fixtures: order sequences for deterministic tests."""

from datetime import datetime, timezone

import pytest

from trade_core.contracts import Order


def _ts(year: int, month: int, day: int, hour: int = 14, minute: int = 30) -> datetime:
    return datetime(year, month, day, hour, minute, 0, tzinfo=timezone.utc)


@pytest.fixture
def symbol() -> str:
    return "AAPL"


@pytest.fixture
def partial_fill_orders(symbol: str) -> list[Order]:
    """buy 10@100, buy 5@110, sell 12@120: one full lot and a partial lot."""
    return [
        Order(symbol, "buy", 10, 100.0, _ts(2024, 1, 2), order_id="o1"),
        Order(symbol, "buy", 5, 110.0, _ts(2024, 1, 3), order_id="o2"),
        Order(symbol, "sell", 12, 120.0, _ts(2024, 1, 4), order_id="o3"),
    ]


@pytest.fixture
def fractional_orders() -> list[dict]:
    """Fractional-share fills whose float sum does not land on the sell qty."""
    return [
        {"id": "f1", "symbol": "X", "side": "buy", "status": "filled",
         "filled_qty": "0.1", "filled_avg_price": "10", "filled_at": "2024-02-01T15:00:00Z"},
        {"id": "f2", "symbol": "X", "side": "buy", "status": "filled",
         "filled_qty": "0.2", "filled_avg_price": "10", "filled_at": "2024-02-02T15:00:00Z"},
        {"id": "f3", "symbol": "X", "side": "sell", "status": "filled",
         "filled_qty": "0.3", "filled_avg_price": "10", "filled_at": "2024-02-03T15:00:00Z"},
        {"id": "f4", "symbol": "X", "side": "buy", "status": "filled",
         "filled_qty": "1", "filled_avg_price": "10", "filled_at": "2024-02-04T15:00:00Z"},
        {"id": "f5", "symbol": "X", "side": "sell", "status": "filled",
         "filled_qty": "1", "filled_avg_price": "10", "filled_at": "2024-02-05T15:00:00Z"},
    ]


@pytest.fixture
def raw_orders() -> list[dict]:
    """Two symbols, one cancelled order, one malformed filled order."""
    return [
        {"id": "a1", "symbol": "AAPL", "side": "buy", "status": "filled",
         "filled_qty": "10", "filled_avg_price": "150.00", "filled_at": "2024-03-01T14:30:00Z"},
        {"id": "m1", "symbol": "MSFT", "side": "buy", "status": "filled",
         "filled_qty": "5", "filled_avg_price": "400.00", "filled_at": "2024-03-01T15:00:00Z"},
        {"id": "a2", "symbol": "AAPL", "side": "sell", "status": "filled",
         "filled_qty": "10", "filled_avg_price": "160.00", "filled_at": "2024-03-04T15:00:00.123456789Z"},
        {"id": "x1", "symbol": "TSLA", "side": "buy", "status": "canceled",
         "filled_qty": "3", "filled_avg_price": "200.00", "filled_at": "2024-03-04T16:00:00Z"},
        {"id": "bad", "symbol": "NVDA", "side": "buy", "status": "filled",
         "filled_qty": "abc", "filled_avg_price": "900.00", "filled_at": "2024-03-05T14:30:00Z"},
        {"id": "m2", "symbol": "MSFT", "side": "sell", "status": "filled",
         "filled_qty": "5", "filled_avg_price": "380.00", "filled_at": "2024-03-06T19:00:00Z"},
    ]
