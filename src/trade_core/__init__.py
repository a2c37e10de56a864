"""
trade-core: pure round-trip reconstruction and performance analytics.

No I/O, no network, no side effects. Consumes filled orders, produces
FIFO round trips, per-symbol stats and portfolio metrics; also sums
unrealized P/L over open positions and equity change over a history. Fully
deterministic and unit-testable.
"""

from trade_core.contracts import (
    CumulativePnL,
    DailyPnL,
    EquityChange,
    InvalidOrderData,
    InvalidPositionData,
    Leaderboard,
    Lot,
    MatchResult,
    Order,
    PerformanceMetrics,
    Position,
    PositionTotals,
    RoundTrip,
    SkippedOrder,
    SymbolPerformance,
    SymbolStats,
)
from trade_core.matcher import filter_round_trips, match, total_stats
from trade_core.orders import filter_orders, parse_order
from trade_core.performance import (
    aggregate,
    cumulative_profit_loss,
    daily_profit_loss,
    symbol_leaderboard,
)
from trade_core.positions import equity_change, parse_position, parse_positions, position_totals

__all__ = [
    "aggregate",
    "cumulative_profit_loss",
    "CumulativePnL",
    "daily_profit_loss",
    "DailyPnL",
    "equity_change",
    "EquityChange",
    "filter_orders",
    "filter_round_trips",
    "InvalidOrderData",
    "InvalidPositionData",
    "Leaderboard",
    "Lot",
    "match",
    "MatchResult",
    "Order",
    "parse_order",
    "parse_position",
    "parse_positions",
    "PerformanceMetrics",
    "Position",
    "position_totals",
    "PositionTotals",
    "RoundTrip",
    "SkippedOrder",
    "symbol_leaderboard",
    "SymbolPerformance",
    "SymbolStats",
    "total_stats",
]
