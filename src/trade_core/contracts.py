"""
Data contracts for trade-core: Order, Lot, RoundTrip, stats and metrics.

trade-core consumes Orders and produces RoundTrips and PerformanceMetrics.
No I/O; these are plain dataclasses.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterator


class InvalidOrderData(ValueError):
    """A filled order is missing a required field or carries a non-numeric value."""

    def __init__(self, message: str, *, order_id: str | None = None, field_name: str | None = None) -> None:
        super().__init__(message)
        self.order_id = order_id
        self.field_name = field_name


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Order:
    """A brokerage order; timestamps in UTC. Only status "filled" is matched."""

    symbol: str
    side: str  # "buy" | "sell"
    filled_qty: float
    filled_avg_price: float
    filled_at: datetime
    status: str = "filled"
    order_id: str | None = None


# ---------------------------------------------------------------------------
# Matching state and outputs
# ---------------------------------------------------------------------------


@dataclass
class Lot:
    """Open buy lot held in a per-symbol FIFO queue during one matching pass."""

    symbol: str
    remaining_qty: float
    price: float
    opened_at: datetime


@dataclass(frozen=True)
class RoundTrip:
    """A matched buy -> sell slice that realized a profit or loss."""

    symbol: str
    qty: float
    buy_price: float
    sell_price: float
    buy_timestamp: datetime
    sell_timestamp: datetime

    @property
    def profit_loss(self) -> float:
        return (self.sell_price - self.buy_price) * self.qty

    @property
    def profit_loss_pct(self) -> float:
        """Percent move from buy to sell. 0.0 when the buy price is zero."""
        if self.buy_price == 0:
            return 0.0
        return (self.sell_price - self.buy_price) / self.buy_price * 100

    @property
    def cost(self) -> float:
        return self.buy_price * self.qty

    @property
    def revenue(self) -> float:
        return self.sell_price * self.qty

    @property
    def is_win(self) -> bool:
        """Break-even trips count as wins."""
        return self.profit_loss >= 0


@dataclass
class SymbolStats:
    """Realized results for one symbol."""

    realized_pl: float = 0.0
    trade_count: int = 0
    win_count: int = 0
    loss_count: int = 0

    @property
    def win_rate(self) -> float:
        if self.trade_count == 0:
            return 0.0
        return self.win_count / self.trade_count * 100

    def record(self, trip: RoundTrip) -> None:
        self.realized_pl += trip.profit_loss
        self.trade_count += 1
        if trip.is_win:
            self.win_count += 1
        else:
            self.loss_count += 1


@dataclass(frozen=True)
class SkippedOrder:
    """A filled order left out of matching because its data was unusable."""

    order_id: str | None
    symbol: str | None
    reason: str


@dataclass
class MatchResult:
    """Output of the matcher.

    Iterating yields ``(round_trips, symbol_stats)`` so the result can be
    unpacked directly: ``trips, stats = match(orders)``.
    """

    round_trips: list[RoundTrip] = field(default_factory=list)
    symbol_stats: dict[str, SymbolStats] = field(default_factory=dict)
    open_lots: dict[str, list[Lot]] = field(default_factory=dict)
    skipped: list[SkippedOrder] = field(default_factory=list)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    def __iter__(self) -> Iterator:
        yield self.round_trips
        yield self.symbol_stats


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PerformanceMetrics:
    """Portfolio-level metrics over a set of round trips."""

    total_trades: int = 0
    winners: int = 0
    losers: int = 0
    win_rate: float = 0.0
    total_pl: float = 0.0
    avg_win: float = 0.0
    avg_loss: float = 0.0          # absolute value
    avg_win_pct: float = 0.0
    avg_loss_pct: float = 0.0      # absolute value
    profit_factor: float = 0.0     # math.inf when there are gains and no losses
    largest_win: RoundTrip | None = None
    largest_loss: RoundTrip | None = None
    expectancy: float = 0.0


@dataclass(frozen=True)
class DailyPnL:
    day: date
    profit_loss: float


@dataclass(frozen=True)
class CumulativePnL:
    day: date
    cumulative: float


@dataclass(frozen=True)
class SymbolPerformance:
    symbol: str
    profit_loss: float
    trades: int


@dataclass(frozen=True)
class Leaderboard:
    """Best symbols (highest P/L first) and worst symbols (lowest P/L first)."""

    best: list[SymbolPerformance]
    worst: list[SymbolPerformance]


# ---------------------------------------------------------------------------
# Open positions and account equity (unrealized side)
# ---------------------------------------------------------------------------


class InvalidPositionData(ValueError):
    """An open position is missing its quantity or entry price, or carries a non-numeric value."""

    def __init__(self, message: str, *, symbol: str | None = None, field_name: str | None = None) -> None:
        super().__init__(message)
        self.symbol = symbol
        self.field_name = field_name


@dataclass(frozen=True)
class Position:
    """An open brokerage position, marked to the latest price."""

    symbol: str
    qty: float
    avg_entry_price: float
    market_value: float = 0.0
    unrealized_pl: float = 0.0
    current_price: float | None = None

    @property
    def cost_basis(self) -> float:
        return self.qty * self.avg_entry_price

    @property
    def unrealized_pl_pct(self) -> float:
        """Unrealized P/L as percent of cost. 0.0 when cost is not positive."""
        if self.cost_basis <= 0:
            return 0.0
        return self.unrealized_pl / self.cost_basis * 100


@dataclass(frozen=True)
class PositionTotals:
    """Sums over open positions."""

    count: int = 0
    market_value: float = 0.0
    cost_basis: float = 0.0
    unrealized_pl: float = 0.0
    unrealized_pl_pct: float = 0.0
    skipped: int = 0


@dataclass(frozen=True)
class EquityChange:
    """First vs last equity of a portfolio-history series."""

    start: float = 0.0
    end: float = 0.0
    change: float = 0.0
    change_pct: float = 0.0
