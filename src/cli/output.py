"""
Human-readable trade analytics output for the terminal.

Every CLI command uses these formatters. Journal receives the same data.
"""

from __future__ import annotations

import math
from typing import Sequence

from trade_core.contracts import (
    CumulativePnL,
    DailyPnL,
    EquityChange,
    Leaderboard,
    Order,
    PerformanceMetrics,
    Position,
    PositionTotals,
    RoundTrip,
    SkippedOrder,
    SymbolStats,
)


def _money(value: float) -> str:
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def _pnl(value: float) -> str:
    sign = "+" if value >= 0 else "-"
    return f"{sign}${abs(value):,.2f}"


def _pct(value: float) -> str:
    return f"{value:+.2f}%"


def _qty(value: float) -> str:
    return f"{value:g}"


def _factor(value: float) -> str:
    if math.isinf(value):
        return "inf"
    return f"{value:.2f}"


def format_metrics(metrics: PerformanceMetrics) -> str:
    """Portfolio performance summary."""
    lines = [
        "=== Performance ===",
        f"Round trips  : {metrics.total_trades} (W:{metrics.winners} / L:{metrics.losers})",
        f"Win rate     : {metrics.win_rate:.1f}%",
        f"Total P/L    : {_pnl(metrics.total_pl)}",
        f"Avg win      : {_money(metrics.avg_win)} ({_pct(metrics.avg_win_pct)})",
        f"Avg loss     : {_money(metrics.avg_loss)} ({_pct(-metrics.avg_loss_pct)})",
        f"Profit factor: {_factor(metrics.profit_factor)}",
        f"Expectancy   : {_pnl(metrics.expectancy)} per trade",
    ]
    if metrics.largest_win is not None:
        t = metrics.largest_win
        lines.append(f"Largest win  : {t.symbol} {_pnl(t.profit_loss)} @ {t.sell_timestamp.date().isoformat()}")
    if metrics.largest_loss is not None:
        t = metrics.largest_loss
        lines.append(f"Largest loss : {t.symbol} {_pnl(t.profit_loss)} @ {t.sell_timestamp.date().isoformat()}")
    lines.append("===")
    return "\n".join(lines)


def format_daily(daily: Sequence[DailyPnL], cumulative: Sequence[CumulativePnL]) -> str:
    """Daily and cumulative realized P/L, one row per calendar day."""
    if not daily:
        return "--- Daily P/L ---\n  (no closed trades)"
    lines = ["--- Daily P/L ---", f"  {'Date':10s}  {'P/L':>14s}  {'Cumulative':>14s}"]
    for d, c in zip(daily, cumulative):
        lines.append(f"  {d.day.isoformat():10s}  {_pnl(d.profit_loss):>14s}  {_pnl(c.cumulative):>14s}")
    return "\n".join(lines)


def format_leaderboard(board: Leaderboard) -> str:
    """Best and worst symbols by realized P/L."""
    lines = ["--- Best Symbols ---"]
    if board.best:
        for p in board.best:
            lines.append(f"  {p.symbol:8s} {_pnl(p.profit_loss):>14s}  {p.trades:>4d} trades")
    else:
        lines.append("  (none)")
    lines.append("--- Worst Symbols ---")
    if board.worst:
        for p in board.worst:
            lines.append(f"  {p.symbol:8s} {_pnl(p.profit_loss):>14s}  {p.trades:>4d} trades")
    else:
        lines.append("  (none)")
    return "\n".join(lines)


def format_round_trips(trips: Sequence[RoundTrip], limit: int | None = None) -> str:
    """Most recent round trips first."""
    if not trips:
        return "--- Round Trips ---\n  (none)"
    shown = list(reversed(trips))
    if limit is not None:
        shown = shown[:limit]
    lines = [f"--- Round Trips ({len(trips)}) ---"]
    for t in shown:
        lines.append(
            f"  {t.symbol:8s} {_qty(t.qty):>8s} | buy {t.buy_price:.2f} @ {t.buy_timestamp.isoformat()}"
            f" -> sell {t.sell_price:.2f} @ {t.sell_timestamp.isoformat()} | {_pnl(t.profit_loss)} ({_pct(t.profit_loss_pct)})"
        )
    return "\n".join(lines)


def format_orders(orders: Sequence[Order], limit: int | None = None) -> str:
    """Filled orders, as given (newest first from filter_orders)."""
    if not orders:
        return "--- Filled Orders ---\n  (none)"
    shown = list(orders) if limit is None else list(orders)[:limit]
    lines = [f"--- Filled Orders ({len(orders)}) ---"]
    for o in shown:
        lines.append(
            f"  {o.filled_at.isoformat()}  {o.side:4s} {_qty(o.filled_qty):>8s} {o.symbol:8s}"
            f" @ {o.filled_avg_price:.2f}  = {_money(o.filled_qty * o.filled_avg_price)}"
        )
    return "\n".join(lines)


def format_symbol_stats(stats: SymbolStats, label: str) -> str:
    """Realized P/L totals for one symbol or for all symbols."""
    return "\n".join([
        f"=== Realized P/L: {label} ===",
        f"Realized P/L : {_pnl(stats.realized_pl)}",
        f"Round trips  : {stats.trade_count} (W:{stats.win_count} / L:{stats.loss_count})",
        f"Win rate     : {stats.win_rate:.1f}%",
        "===",
    ])


def format_skipped(skipped: Sequence[SkippedOrder]) -> str:
    lines = [f"  Skipped {len(skipped)} malformed order(s):"]
    for s in skipped:
        lines.append(f"    {s.order_id or '?'} ({s.symbol or '?'}): {s.reason}")
    return "\n".join(lines)


def format_positions(positions: Sequence[Position], totals: PositionTotals) -> str:
    """Open positions (by symbol) and their unrealized P/L totals."""
    lines = [f"--- Open Positions ({totals.count}) ---"]
    if not positions:
        lines.append("  (none)")
    for p in sorted(positions, key=lambda p: p.symbol):
        price = f"{p.current_price:.2f}" if p.current_price is not None else "?"
        lines.append(
            f"  {p.symbol:8s} {_qty(p.qty):>8s} @ {p.avg_entry_price:.2f} -> {price:>8s}"
            f" | value {_money(p.market_value)} | {_pnl(p.unrealized_pl)} ({_pct(p.unrealized_pl_pct)})"
        )
    lines += [
        "=== Unrealized ===",
        f"Market value : {_money(totals.market_value)}",
        f"Cost basis   : {_money(totals.cost_basis)}",
        f"Unrealized   : {_pnl(totals.unrealized_pl)} ({_pct(totals.unrealized_pl_pct)})",
    ]
    if totals.skipped:
        lines.append(f"  Skipped {totals.skipped} malformed position(s)")
    lines.append("===")
    return "\n".join(lines)


def format_equity_change(change: EquityChange, label: str) -> str:
    """Start/end equity and the change between them."""
    return (
        f"{label:13s}: {_money(change.start)} -> {_money(change.end)}"
        f"  {_pnl(change.change)} ({_pct(change.change_pct)})"
    )
