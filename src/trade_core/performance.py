"""
Performance aggregator: RoundTrips -> PerformanceMetrics and P/L series.

All functions are pure and accept any sequence of RoundTrips; an empty
sequence yields zeroed metrics and empty series.
"""

from __future__ import annotations

import math
from datetime import timedelta, timezone, tzinfo
from typing import Sequence

from trade_core.contracts import (
    CumulativePnL,
    DailyPnL,
    Leaderboard,
    PerformanceMetrics,
    RoundTrip,
    SymbolPerformance,
)


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def profit_factor(gross_wins: float, gross_losses: float) -> float:
    """Gross wins / gross losses (absolute). inf with no losses, 0.0 with neither."""
    if gross_losses > 0:
        return gross_wins / gross_losses
    return math.inf if gross_wins > 0 else 0.0


def aggregate(trips: Sequence[RoundTrip]) -> PerformanceMetrics:
    """Win rate, averages, profit factor, extremes and expectancy over all trips."""
    if not trips:
        return PerformanceMetrics()

    winners = [t for t in trips if t.profit_loss >= 0]
    losers = [t for t in trips if t.profit_loss < 0]

    total_wins = sum(t.profit_loss for t in winners)
    total_losses = abs(sum(t.profit_loss for t in losers))

    avg_win = total_wins / len(winners) if winners else 0.0
    avg_loss = total_losses / len(losers) if losers else 0.0
    avg_win_pct = _mean([t.profit_loss_pct for t in winners])
    avg_loss_pct = abs(_mean([t.profit_loss_pct for t in losers]))

    win_rate = len(winners) / len(trips) * 100
    expectancy = (win_rate / 100 * avg_win) - ((1 - win_rate / 100) * avg_loss)

    return PerformanceMetrics(
        total_trades=len(trips),
        winners=len(winners),
        losers=len(losers),
        win_rate=win_rate,
        total_pl=sum(t.profit_loss for t in trips),
        avg_win=avg_win,
        avg_loss=avg_loss,
        avg_win_pct=avg_win_pct,
        avg_loss_pct=avg_loss_pct,
        profit_factor=profit_factor(total_wins, total_losses),
        # max/min keep the first trip seen on ties
        largest_win=max(trips, key=lambda t: t.profit_loss),
        largest_loss=min(trips, key=lambda t: t.profit_loss),
        expectancy=expectancy,
    )


def daily_profit_loss(trips: Sequence[RoundTrip], tz: tzinfo = timezone.utc) -> list[DailyPnL]:
    """Realized P/L per calendar day of sell time, gap days included as 0.0.

    Covers every day from the earliest to the latest sell date (inclusive),
    with days bucketed in ``tz``.
    """
    if not trips:
        return []

    by_day: dict = {}
    for t in trips:
        day = t.sell_timestamp.astimezone(tz).date()
        by_day[day] = by_day.get(day, 0.0) + t.profit_loss

    start, end = min(by_day), max(by_day)
    out: list[DailyPnL] = []
    day = start
    while day <= end:
        out.append(DailyPnL(day=day, profit_loss=by_day.get(day, 0.0)))
        day += timedelta(days=1)
    return out


def cumulative_profit_loss(daily: Sequence[DailyPnL]) -> list[CumulativePnL]:
    """Running total over a daily P/L series, in date order."""
    out: list[CumulativePnL] = []
    running = 0.0
    for d in daily:
        running += d.profit_loss
        out.append(CumulativePnL(day=d.day, cumulative=running))
    return out


def symbol_performance(trips: Sequence[RoundTrip]) -> list[SymbolPerformance]:
    """Summed P/L and trade count per symbol, highest P/L first."""
    totals: dict[str, list] = {}
    for t in trips:
        entry = totals.setdefault(t.symbol, [0.0, 0])
        entry[0] += t.profit_loss
        entry[1] += 1
    ranked = [SymbolPerformance(symbol=s, profit_loss=pl, trades=n) for s, (pl, n) in totals.items()]
    ranked.sort(key=lambda p: p.profit_loss, reverse=True)
    return ranked


def symbol_leaderboard(trips: Sequence[RoundTrip], n: int = 5) -> Leaderboard:
    """Top n and bottom n symbols by realized P/L.

    ``worst`` starts with the single worst symbol. With n or fewer symbols,
    both lists hold every symbol.
    """
    if n < 0:
        raise ValueError(f"n must not be negative, got {n}")
    if n == 0:
        return Leaderboard(best=[], worst=[])
    ranked = symbol_performance(trips)
    return Leaderboard(best=ranked[:n], worst=list(reversed(ranked[-n:])))
