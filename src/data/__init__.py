"""
Data pipeline: fetch closed orders and account snapshots, persist orders, hand raw records to trade_core.

Depends on trade_core for order parsing; no dependency from trade_core back to data.
"""

from data.fetcher import (
    EquityHistory,
    FetchResult,
    MockOrderFetcher,
    MockPortfolioFetcher,
    OrderFetcher,
    PortfolioFetcher,
    fetch_all_closed_orders,
)
from data.order_store import OrderStore

__all__ = [
    "EquityHistory",
    "FetchResult",
    "fetch_all_closed_orders",
    "MockOrderFetcher",
    "MockPortfolioFetcher",
    "OrderFetcher",
    "OrderStore",
    "PortfolioFetcher",
]


def get_alpaca_fetcher(api_key: str, api_secret: str, *, paper: bool = True):
    """Lazy import to avoid requiring alpaca-py when not used."""
    from data.alpaca_fetcher import AlpacaOrderFetcher

    return AlpacaOrderFetcher(api_key, api_secret, paper=paper)


def get_alpaca_portfolio(api_key: str, api_secret: str, *, paper: bool = True):
    """Lazy import to avoid requiring alpaca-py when not used."""
    from data.alpaca_fetcher import AlpacaPortfolioFetcher

    return AlpacaPortfolioFetcher(api_key, api_secret, paper=paper)
