"""
CLI entry point: trades ingest | history | analytics | positions | health.

Every command loads config from --config (default config.yaml) and prints
human-readable results. Analytics also logs to the journal.
"""

import logging
import sys
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import click
from dotenv import load_dotenv

from config import load_config

load_dotenv()

logger = logging.getLogger("trade.cli")


def _setup_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s  %(message)s",
        stream=sys.stderr,
    )


def _parse_date(value: str | None) -> datetime | None:
    if not value:
        return None
    dt = datetime.fromisoformat(value)
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt.astimezone(timezone.utc)


def _account_label(paper: bool) -> str:
    return "paper" if paper else "live"


@click.group()
@click.option("--config", "config_path", default="config.yaml", help="Path to config file.")
@click.pass_context
def cli(ctx: click.Context, config_path: str) -> None:
    """trade-analytics: FIFO round trips and realized performance from filled orders."""
    _setup_logging()
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


# ---------- trades ingest ----------


@cli.command()
@click.option("--days", default=None, type=int, help="Number of calendar days to fetch (default: analytics.lookback_days).")
@click.option("--start", "start_str", default=None, help="Start date (ISO, e.g. 2024-01-01).")
@click.option("--end", "end_str", default=None, help="End date (ISO, e.g. 2024-02-01).")
@click.pass_context
def ingest(ctx: click.Context, days: int | None, start_str: str | None, end_str: str | None) -> None:
    """Fetch closed orders from Alpaca and store locally."""
    cfg = load_config(ctx.obj["config_path"])
    from cli.structured_log import StructuredEventLogger
    from data import fetch_all_closed_orders, get_alpaca_fetcher
    from data.order_store import OrderStore

    events = StructuredEventLogger(
        _account_label(cfg.broker.paper),
        enabled=cfg.alerting.structured_logs,
        webhook_url=cfg.alerting.webhook_url,
    )
    fetcher = get_alpaca_fetcher(cfg.broker.api_key, cfg.broker.api_secret, paper=cfg.broker.paper)
    store = OrderStore(cfg.data.order_store_path)

    days = days if days is not None else cfg.analytics.lookback_days
    end_dt = _parse_date(end_str) or datetime.now(timezone.utc)
    start_dt = _parse_date(start_str) or end_dt - timedelta(days=days)

    click.echo(f"Fetching closed orders from {start_dt.date()} to {end_dt.date()} ...")
    events.fetch_start(start_dt.isoformat(), end_dt.isoformat())
    try:
        orders = fetch_all_closed_orders(
            fetcher, start=start_dt, end=end_dt, page_limit=cfg.broker.page_limit
        )
    except Exception as exc:
        events.error("Order fetch failed", detail=str(exc))
        raise

    stored = store.write_orders(orders) if orders else 0
    events.orders_fetched(len(orders), stored)
    if orders:
        click.echo(f"Stored {stored} orders in {cfg.data.order_store_path}")
        click.echo(f"  Total orders in store: {store.count_orders()}")
    else:
        click.echo("No orders returned. Check date range and API keys.")


# ---------- trades history ----------


@cli.command()
@click.option("--symbol", default=None, help="Only show this symbol.")
@click.option("--side", type=click.Choice(["buy", "sell"]), default=None, help="Only show buy or sell orders.")
@click.option("--limit", default=20, help="Max rows of orders and round trips to show.")
@click.pass_context
def history(ctx: click.Context, symbol: str | None, side: str | None, limit: int) -> None:
    """Show filled orders, FIFO round trips and realized P/L."""
    cfg = load_config(ctx.obj["config_path"])
    from cli.output import format_orders, format_round_trips, format_skipped, format_symbol_stats
    from data.order_store import OrderStore
    from trade_core import filter_orders, filter_round_trips, match, total_stats

    store = OrderStore(cfg.data.order_store_path)
    raw_orders = store.get_orders()
    if not raw_orders:
        click.echo("No orders in store. Run 'trades ingest' first.")
        return

    symbol = symbol.upper() if symbol else None
    result = match(raw_orders)

    click.echo(format_symbol_stats(total_stats(result.symbol_stats, symbol), symbol or "all symbols"))
    click.echo(format_orders(filter_orders(raw_orders, symbol=symbol, side=side), limit=limit))
    click.echo(format_round_trips(filter_round_trips(result.round_trips, symbol), limit=limit))
    if result.skipped:
        click.echo(format_skipped(result.skipped))


# ---------- trades analytics ----------


@cli.command()
@click.option("--days", default=None, type=int, help="History window in days (default: analytics.lookback_days).")
@click.option("--top", default=None, type=int, help="Symbols per leaderboard list (default: analytics.leaderboard_size).")
@click.pass_context
def analytics(ctx: click.Context, days: int | None, top: int | None) -> None:
    """Win rate, profit factor, expectancy, daily/cumulative P/L and symbol rankings."""
    cfg = load_config(ctx.obj["config_path"])
    from cli.output import format_daily, format_leaderboard, format_metrics, format_skipped
    from cli.structured_log import StructuredEventLogger
    from data.order_store import OrderStore
    from journal import JournalWriter
    from trade_core import (
        aggregate,
        cumulative_profit_loss,
        daily_profit_loss,
        match,
        symbol_leaderboard,
    )

    events = StructuredEventLogger(
        _account_label(cfg.broker.paper),
        enabled=cfg.alerting.structured_logs,
        webhook_url=cfg.alerting.webhook_url,
    )
    days = days if days is not None else cfg.analytics.lookback_days
    top = top if top is not None else cfg.analytics.leaderboard_size
    if top < 0:
        raise click.BadParameter("must not be negative", param_hint="--top")

    store = OrderStore(cfg.data.order_store_path)
    since = datetime.now(timezone.utc) - timedelta(days=days)
    raw_orders = store.get_orders(since=since)
    if not raw_orders:
        click.echo("No orders in store for this window. Run 'trades ingest' first.")
        return

    result = match(raw_orders)
    metrics = aggregate(result.round_trips)
    daily = daily_profit_loss(result.round_trips, tz=cfg.analytics.tzinfo)
    cumulative = cumulative_profit_loss(daily)
    board = symbol_leaderboard(result.round_trips, top)

    click.echo(format_metrics(metrics))
    click.echo(format_daily(daily, cumulative))
    click.echo(format_leaderboard(board))

    journal = JournalWriter(cfg.journal.path, echo_stdout=cfg.journal.echo_stdout)
    new_trips = sum(journal.round_trip(trip) for trip in result.round_trips)
    for skipped in result.skipped:
        journal.skipped_order(skipped)
    journal.metrics(metrics, window_days=days)
    logger.info("Journaled %d new round trips to %s", new_trips, cfg.journal.path)

    if result.skipped:
        click.echo(format_skipped(result.skipped))
        events.orders_skipped(
            [s.order_id for s in result.skipped],
            [s.reason for s in result.skipped],
        )
    events.analytics_complete(metrics.total_trades, metrics.total_pl, metrics.win_rate, metrics.profit_factor)


# ---------- trades positions ----------

# history period -> bar timeframe, as the brokerage expects them
PERIOD_TIMEFRAMES = {
    "1D": "5Min",
    "1W": "15Min",
    "1M": "1D",
    "3M": "1D",
    "1A": "1D",
    "all": "1D",
}


@cli.command()
@click.option("--period", type=click.Choice(list(PERIOD_TIMEFRAMES)), default="1M", help="Equity history window.")
@click.pass_context
def positions(ctx: click.Context, period: str) -> None:
    """Open positions with unrealized P/L, equity change over --period and all-time."""
    cfg = load_config(ctx.obj["config_path"])
    from cli.output import format_equity_change, format_positions
    from cli.structured_log import StructuredEventLogger
    from data import get_alpaca_portfolio
    from trade_core import equity_change, parse_positions, position_totals

    events = StructuredEventLogger(
        _account_label(cfg.broker.paper),
        enabled=cfg.alerting.structured_logs,
        webhook_url=cfg.alerting.webhook_url,
    )
    portfolio = get_alpaca_portfolio(cfg.broker.api_key, cfg.broker.api_secret, paper=cfg.broker.paper)
    try:
        raw_positions = portfolio.positions()
        window = portfolio.equity_history(period=period, timeframe=PERIOD_TIMEFRAMES[period])
        all_time = (
            window if period == "all"
            else portfolio.equity_history(period="all", timeframe=PERIOD_TIMEFRAMES["all"])
        )
    except Exception as exc:
        events.error("Portfolio fetch failed", detail=str(exc))
        raise

    open_positions, skipped = parse_positions(raw_positions)
    totals = replace(position_totals(open_positions), skipped=skipped)
    change = equity_change(window.equity)
    lifetime = equity_change(all_time.equity)

    click.echo(format_positions(open_positions, totals))
    click.echo("=== Equity ===")
    click.echo(format_equity_change(change, f"Period {period}"))
    click.echo(format_equity_change(lifetime, "All-time"))
    click.echo("===")
    events.positions_snapshot(totals.count, totals.market_value, totals.unrealized_pl, change.change)


# ---------- trades health ----------


@cli.command()
@click.pass_context
def health(ctx: click.Context) -> None:
    """Check system health: config, API keys, order store.

    Exit code 0 = healthy, 1 = unhealthy. Designed for Docker HEALTHCHECK.
    """
    checks: list[tuple[str, bool, str]] = []

    try:
        cfg = load_config(ctx.obj["config_path"])
        checks.append(("config", True, f"loaded ({_account_label(cfg.broker.paper)} account, tz={cfg.analytics.timezone})"))
    except Exception as e:
        checks.append(("config", False, str(e)))
        _print_health(checks)
        raise SystemExit(1)

    if cfg.broker.api_key and cfg.broker.api_secret:
        checks.append(("api_keys", True, "APCA_API_KEY_ID and APCA_API_SECRET_KEY set"))
    else:
        checks.append(("api_keys", False, "APCA_API_KEY_ID / APCA_API_SECRET_KEY not set"))

    try:
        from data.order_store import OrderStore
        store = OrderStore(cfg.data.order_store_path)
        count = store.count_orders()
        if count > 0:
            latest = store.latest_timestamp()
            checks.append(("orders", True, f"{count} orders, latest {latest.isoformat() if latest else '?'}"))
        else:
            checks.append(("orders", False, "no orders in store"))
    except Exception as e:
        checks.append(("orders", False, str(e)))

    _print_health(checks)
    healthy = all(ok for _, ok, _ in checks)
    raise SystemExit(0 if healthy else 1)


def _print_health(checks: list[tuple[str, bool, str]]) -> None:
    for name, ok, detail in checks:
        status = "OK" if ok else "FAIL"
        click.echo(f"  [{status}] {name}: {detail}")
    healthy = all(ok for _, ok, _ in checks)
    click.echo(f"\nHealth: {'HEALTHY' if healthy else 'UNHEALTHY'}")


if __name__ == "__main__":
    cli()
