"""
Structured JSON event logger for Docker observability.

Emits one JSON object per line to stderr. Events are designed to be
parsed by log aggregators (Grafana Loki, CloudWatch, ELK).

Optional webhook: when configured, alert events (orders_skipped, error)
are POSTed to the URL.
"""

from __future__ import annotations

import json
import logging
import math
import sys
import urllib.request
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger("trade.events")


class StructuredEventLogger:
    """Emit structured JSON events to stderr and optional webhook."""

    def __init__(
        self,
        account: str,
        *,
        enabled: bool = True,
        webhook_url: str = "",
        stream: Any = None,
    ) -> None:
        self._account = account
        self._enabled = enabled
        self._webhook_url = webhook_url.strip()
        self._stream = stream or sys.stderr
        self._ALERT_EVENTS = {
            "orders_skipped",
            "error",
        }

    def _emit(self, event_type: str, **fields: Any) -> dict:
        record = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "event": event_type,
            "account": self._account,
            **fields,
        }
        if self._enabled:
            self._stream.write(json.dumps(record) + "\n")
            self._stream.flush()

        if self._webhook_url and event_type in self._ALERT_EVENTS:
            self._post_webhook(record)

        return record

    def _post_webhook(self, record: dict) -> None:
        try:
            data = json.dumps(record).encode("utf-8")
            req = urllib.request.Request(
                self._webhook_url,
                data=data,
                headers={"Content-Type": "application/json"},
                method="POST",
            )
            urllib.request.urlopen(req, timeout=5)
        except Exception as exc:
            logger.warning("Webhook POST failed: %s", exc)

    def fetch_start(self, start: str, end: str) -> dict:
        return self._emit("fetch_start", start=start, end=end)

    def orders_fetched(self, fetched: int, stored: int) -> dict:
        return self._emit("orders_fetched", fetched=fetched, stored=stored)

    def orders_skipped(self, order_ids: list[str | None], reasons: list[str]) -> dict:
        return self._emit(
            "orders_skipped",
            count=len(order_ids),
            order_ids=order_ids,
            reasons=reasons,
        )

    def analytics_complete(self, trades: int, total_pl: float, win_rate: float, profit_factor: float) -> dict:
        return self._emit(
            "analytics_complete",
            trades=trades,
            total_pl=round(total_pl, 2),
            win_rate=round(win_rate, 2),
            profit_factor=round(profit_factor, 4) if math.isfinite(profit_factor) else "inf",
        )

    def positions_snapshot(self, count: int, market_value: float, unrealized_pl: float, period_change: float) -> dict:
        return self._emit(
            "positions_snapshot",
            count=count,
            market_value=round(market_value, 2),
            unrealized_pl=round(unrealized_pl, 2),
            period_change=round(period_change, 2),
        )

    def error(self, message: str, detail: str = "") -> dict:
        return self._emit("error", message=message, detail=detail)
