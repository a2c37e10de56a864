"""Tests for Alpaca order fetcher (mocked SDK). No network calls."""

import sys
from datetime import datetime, timezone
from enum import Enum
from types import ModuleType
from unittest.mock import MagicMock, patch

import pytest


@pytest.fixture(autouse=True)
def _mock_alpaca_modules():
    """Mock the alpaca SDK modules so tests run without alpaca-py installed."""
    alpaca = ModuleType("alpaca")
    alpaca_common = ModuleType("alpaca.common")
    alpaca_common_enums = ModuleType("alpaca.common.enums")
    alpaca_trading = ModuleType("alpaca.trading")
    alpaca_trading_client = ModuleType("alpaca.trading.client")
    alpaca_trading_enums = ModuleType("alpaca.trading.enums")
    alpaca_trading_requests = ModuleType("alpaca.trading.requests")

    class FakeSort:
        ASC = "asc"
        DESC = "desc"

    class FakeQueryOrderStatus:
        OPEN = "open"
        CLOSED = "closed"
        ALL = "all"

    alpaca_common_enums.Sort = FakeSort
    alpaca_trading_enums.QueryOrderStatus = FakeQueryOrderStatus
    alpaca_trading_client.TradingClient = MagicMock()
    alpaca_trading_requests.GetOrdersRequest = MagicMock()
    alpaca_trading_requests.GetPortfolioHistoryRequest = MagicMock()

    mods = {
        "alpaca": alpaca,
        "alpaca.common": alpaca_common,
        "alpaca.common.enums": alpaca_common_enums,
        "alpaca.trading": alpaca_trading,
        "alpaca.trading.client": alpaca_trading_client,
        "alpaca.trading.enums": alpaca_trading_enums,
        "alpaca.trading.requests": alpaca_trading_requests,
    }
    with patch.dict(sys.modules, mods):
        # Clear any cached import of the fetcher module
        sys.modules.pop("data.alpaca_fetcher", None)
        yield mods


class _Side(str, Enum):
    BUY = "buy"
    SELL = "sell"


class _Status(str, Enum):
    FILLED = "filled"


def _sdk_order(order_id: str, side: _Side, qty: str, price: str, filled_at: datetime) -> MagicMock:
    o = MagicMock()
    o.id = order_id
    o.client_order_id = f"c-{order_id}"
    o.symbol = "SPY"
    o.side = side
    o.status = _Status.FILLED
    o.order_type = "market"
    o.qty = qty
    o.filled_qty = qty
    o.filled_avg_price = price
    o.submitted_at = filled_at
    o.filled_at = filled_at
    o.created_at = filled_at
    return o


def test_alpaca_fetcher_maps_orders() -> None:
    """Verify AlpacaOrderFetcher converts SDK orders to raw order records."""
    from data.alpaca_fetcher import AlpacaOrderFetcher

    filled = datetime(2024, 1, 15, 14, 30, tzinfo=timezone.utc)
    fetcher = AlpacaOrderFetcher("key", "secret")
    fetcher._client = MagicMock()
    fetcher._client.get_orders.return_value = [_sdk_order("o1", _Side.BUY, "10", "470.12", filled)]

    result = fetcher.fetch(after=datetime(2024, 1, 1, tzinfo=timezone.utc), limit=500)

    assert len(result.orders) == 1
    raw = result.orders[0]
    assert raw["id"] == "o1"
    assert raw["symbol"] == "SPY"
    assert raw["side"] == "buy"
    assert raw["status"] == "filled"
    assert raw["filled_qty"] == "10"
    assert raw["filled_avg_price"] == "470.12"
    assert raw["filled_at"] == "2024-01-15T14:30:00+00:00"
    assert result.next_cursor == filled


def test_alpaca_fetcher_orders_feed_matcher() -> None:
    from data.alpaca_fetcher import AlpacaOrderFetcher
    from trade_core import match

    fetcher = AlpacaOrderFetcher("key", "secret")
    fetcher._client = MagicMock()
    fetcher._client.get_orders.return_value = [
        _sdk_order("o1", _Side.BUY, "10", "100", datetime(2024, 1, 15, 14, 30, tzinfo=timezone.utc)),
        _sdk_order("o2", _Side.SELL, "10", "105", datetime(2024, 1, 16, 14, 30, tzinfo=timezone.utc)),
    ]
    trips, _ = match(fetcher.fetch().orders)
    assert len(trips) == 1
    assert trips[0].profit_loss == pytest.approx(50.0)


def test_alpaca_fetcher_empty_response() -> None:
    """No orders returned."""
    from data.alpaca_fetcher import AlpacaOrderFetcher

    fetcher = AlpacaOrderFetcher("key", "secret")
    fetcher._client = MagicMock()
    fetcher._client.get_orders.return_value = []

    result = fetcher.fetch()
    assert result.orders == []
    assert result.next_cursor is None


def test_alpaca_fetcher_paper_flag(_mock_alpaca_modules) -> None:
    from data.alpaca_fetcher import AlpacaOrderFetcher

    client_cls = _mock_alpaca_modules["alpaca.trading.client"].TradingClient
    AlpacaOrderFetcher("key", "secret", paper=False)
    client_cls.assert_called_with("key", "secret", paper=False)


def test_alpaca_fetcher_requires_keys() -> None:
    """Must raise if keys are empty."""
    from data.alpaca_fetcher import AlpacaOrderFetcher

    with pytest.raises(ValueError, match="API key"):
        AlpacaOrderFetcher("", "")


def _sdk_position(symbol: str, qty: str, entry: str, value: str, pl: str) -> MagicMock:
    p = MagicMock()
    p.symbol = symbol
    p.side = "long"
    p.qty = qty
    p.avg_entry_price = entry
    p.current_price = None
    p.market_value = value
    p.cost_basis = None
    p.unrealized_pl = pl
    p.unrealized_plpc = None
    return p


def test_portfolio_fetcher_maps_positions() -> None:
    from data.alpaca_fetcher import AlpacaPortfolioFetcher
    from trade_core import position_totals

    portfolio = AlpacaPortfolioFetcher("key", "secret")
    portfolio._client = MagicMock()
    portfolio._client.get_all_positions.return_value = [
        _sdk_position("SPY", "10", "400", "4100", "100"),
        _sdk_position("QQQ", "5", "300", "1450", "-50"),
    ]

    raw = portfolio.positions()
    assert raw[0]["symbol"] == "SPY"
    assert raw[0]["qty"] == "10"
    assert raw[0]["current_price"] is None
    totals = position_totals(raw)
    assert totals.cost_basis == pytest.approx(5500.0)
    assert totals.unrealized_pl == pytest.approx(50.0)


def test_portfolio_fetcher_equity_history(_mock_alpaca_modules) -> None:
    from data.alpaca_fetcher import AlpacaPortfolioFetcher

    request_cls = _mock_alpaca_modules["alpaca.trading.requests"].GetPortfolioHistoryRequest
    portfolio = AlpacaPortfolioFetcher("key", "secret", paper=True)
    portfolio._client = MagicMock()
    portfolio._client.get_portfolio_history.return_value = MagicMock(
        timestamp=[1704067200, 1704153600],
        equity=[100000.0, None],
    )

    history = portfolio.equity_history(period="1W", timeframe="15Min")
    request_cls.assert_called_with(period="1W", timeframe="15Min")
    assert history.timestamps[0] == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert history.equity == [100000.0, None]


def test_portfolio_fetcher_requires_keys() -> None:
    from data.alpaca_fetcher import AlpacaPortfolioFetcher

    with pytest.raises(ValueError, match="API key"):
        AlpacaPortfolioFetcher("key", "")
