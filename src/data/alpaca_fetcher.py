"""
Alpaca fetchers: OrderFetcher and PortfolioFetcher protocols over the alpaca-py SDK.

Maps Alpaca Order objects to raw order records (strings for numbers, ISO UTC
timestamps, plain strings for enums). Paper vs live endpoint is chosen by
the ``paper`` flag, which comes from AppConfig.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from data.fetcher import EquityHistory, FetchResult, RawOrder, RawPosition

logger = logging.getLogger("trade.data.alpaca")


def _plain(value: Any) -> Any:
    """SDK value -> JSON-friendly value."""
    if value is None:
        return None
    if isinstance(value, datetime):
        ts = value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value.astimezone(timezone.utc)
        return ts.isoformat()
    if hasattr(value, "value"):
        return str(value.value)
    return str(value)


_FIELDS = (
    "id",
    "client_order_id",
    "symbol",
    "side",
    "status",
    "order_type",
    "qty",
    "filled_qty",
    "filled_avg_price",
    "submitted_at",
    "filled_at",
    "created_at",
)


def to_raw_order(order: Any) -> RawOrder:
    """Convert one alpaca-py Order model into a raw order record."""
    return {name: _plain(getattr(order, name, None)) for name in _FIELDS}


_POSITION_FIELDS = (
    "symbol",
    "side",
    "qty",
    "avg_entry_price",
    "current_price",
    "market_value",
    "cost_basis",
    "unrealized_pl",
    "unrealized_plpc",
)


def to_raw_position(position: Any) -> RawPosition:
    """Convert one alpaca-py Position model into a raw position record."""
    return {name: _plain(getattr(position, name, None)) for name in _POSITION_FIELDS}


def _trading_client(api_key: str, api_secret: str, paper: bool, owner: str) -> Any:
    if not api_key or not api_secret:
        raise ValueError(
            "Alpaca API key and secret are required. "
            "Set APCA_API_KEY_ID and APCA_API_SECRET_KEY environment variables."
        )
    try:
        from alpaca.trading.client import TradingClient
    except ImportError:
        raise ImportError(
            f"alpaca-py is required for {owner}. "
            "Install with: pip install alpaca-py"
        )
    return TradingClient(api_key, api_secret, paper=paper)


class AlpacaOrderFetcher:
    """
    Fetch closed orders from the Alpaca Trading API.

    Uses TradingClient from alpaca-py.
    API keys via constructor (typically from AppConfig, sourced from env vars).
    """

    def __init__(self, api_key: str, api_secret: str, *, paper: bool = True) -> None:
        self._paper = paper
        self._client = _trading_client(api_key, api_secret, paper, "AlpacaOrderFetcher")

    def fetch(
        self,
        *,
        after: datetime | None = None,
        until: datetime | None = None,
        limit: int = 500,
    ) -> FetchResult:
        """Fetch one page of closed orders, ascending. Returns FetchResult."""
        from alpaca.common.enums import Sort
        from alpaca.trading.enums import QueryOrderStatus
        from alpaca.trading.requests import GetOrdersRequest

        request_params = GetOrdersRequest(
            status=QueryOrderStatus.CLOSED,
            limit=limit,
            after=after,
            until=until,
            direction=Sort.ASC,
        )
        response = self._client.get_orders(filter=request_params)
        orders = [to_raw_order(o) for o in response]

        next_cursor = None
        if orders:
            last = response[-1]
            next_cursor = getattr(last, "filled_at", None) or getattr(last, "created_at", None)
        logger.info("Fetched %d orders (%s)", len(orders), "paper" if self._paper else "live")
        return FetchResult(orders=orders, next_cursor=next_cursor)


class AlpacaPortfolioFetcher:
    """
    Open positions and portfolio equity history from the Alpaca Trading API.

    Same client and key handling as AlpacaOrderFetcher.
    """

    def __init__(self, api_key: str, api_secret: str, *, paper: bool = True) -> None:
        self._paper = paper
        self._client = _trading_client(api_key, api_secret, paper, "AlpacaPortfolioFetcher")

    def positions(self) -> list[RawPosition]:
        """All open positions as raw position records."""
        positions = [to_raw_position(p) for p in self._client.get_all_positions()]
        logger.info("Fetched %d open positions (%s)", len(positions), "paper" if self._paper else "live")
        return positions

    def equity_history(self, *, period: str = "1M", timeframe: str = "1D") -> EquityHistory:
        """Portfolio equity for a period ("1D", "1W", "1M", "3M", "1A", "all")."""
        from alpaca.trading.requests import GetPortfolioHistoryRequest

        request_params = GetPortfolioHistoryRequest(period=period, timeframe=timeframe)
        history = self._client.get_portfolio_history(history_filter=request_params)
        stamps = [datetime.fromtimestamp(ts, tz=timezone.utc) for ts in (history.timestamp or [])]
        equity = [None if v is None else float(v) for v in (history.equity or [])]
        logger.info("Fetched %d equity points for period %s", len(equity), period)
        return EquityHistory(timestamps=stamps, equity=equity)
