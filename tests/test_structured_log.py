"""Tests for structured JSON event logger."""

import io
import json
import math
from unittest.mock import patch

import pytest

from cli.structured_log import StructuredEventLogger


@pytest.fixture
def buf() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def logger(buf: io.StringIO) -> StructuredEventLogger:
    return StructuredEventLogger("paper", enabled=True, stream=buf)


class TestEmit:
    """Basic event emission and format."""

    def test_fetch_start_json(self, logger: StructuredEventLogger, buf: io.StringIO) -> None:
        logger.fetch_start(start="2024-01-01T00:00:00+00:00", end="2024-02-01T00:00:00+00:00")
        record = json.loads(buf.getvalue().strip())
        assert record["event"] == "fetch_start"
        assert record["account"] == "paper"
        assert record["start"] == "2024-01-01T00:00:00+00:00"
        assert "ts" in record

    def test_orders_fetched(self, logger: StructuredEventLogger, buf: io.StringIO) -> None:
        logger.orders_fetched(fetched=12, stored=12)
        record = json.loads(buf.getvalue().strip())
        assert record["event"] == "orders_fetched"
        assert record["fetched"] == 12
        assert record["stored"] == 12

    def test_orders_skipped(self, logger: StructuredEventLogger, buf: io.StringIO) -> None:
        logger.orders_skipped(order_ids=["a", None], reasons=["missing filled_qty", "missing symbol"])
        record = json.loads(buf.getvalue().strip())
        assert record["event"] == "orders_skipped"
        assert record["count"] == 2
        assert record["order_ids"] == ["a", None]

    def test_analytics_complete(self, logger: StructuredEventLogger, buf: io.StringIO) -> None:
        logger.analytics_complete(trades=4, total_pl=123.456, win_rate=75.0, profit_factor=2.5)
        record = json.loads(buf.getvalue().strip())
        assert record["event"] == "analytics_complete"
        assert record["trades"] == 4
        assert record["total_pl"] == 123.46
        assert record["profit_factor"] == 2.5

    def test_analytics_complete_infinite_profit_factor(self, logger: StructuredEventLogger, buf: io.StringIO) -> None:
        logger.analytics_complete(trades=1, total_pl=50.0, win_rate=100.0, profit_factor=math.inf)
        record = json.loads(buf.getvalue().strip())
        assert record["profit_factor"] == "inf"

    def test_positions_snapshot(self, logger: StructuredEventLogger, buf: io.StringIO) -> None:
        logger.positions_snapshot(count=2, market_value=1500.004, unrealized_pl=-12.25, period_change=250.0)
        record = json.loads(buf.getvalue().strip())
        assert record["event"] == "positions_snapshot"
        assert record["count"] == 2
        assert record["market_value"] == 1500.0
        assert record["unrealized_pl"] == -12.25
        assert record["period_change"] == 250.0

    def test_error_event(self, logger: StructuredEventLogger, buf: io.StringIO) -> None:
        logger.error(message="Order fetch failed", detail="HTTP 429")
        record = json.loads(buf.getvalue().strip())
        assert record["event"] == "error"
        assert record["detail"] == "HTTP 429"


class TestDisabled:
    """When structured_logs=False, nothing is written to stream."""

    def test_no_output_when_disabled(self, buf: io.StringIO) -> None:
        logger = StructuredEventLogger("paper", enabled=False, stream=buf)
        logger.fetch_start(start="t0", end="t1")
        logger.orders_fetched(fetched=0, stored=0)
        logger.analytics_complete(trades=0, total_pl=0.0, win_rate=0.0, profit_factor=0.0)
        assert buf.getvalue() == ""


class TestWebhook:
    def test_alert_events_posted(self, buf: io.StringIO) -> None:
        logger = StructuredEventLogger("live", stream=buf, webhook_url="http://hooks.local/x")
        with patch("cli.structured_log.urllib.request.urlopen") as urlopen:
            logger.orders_fetched(fetched=1, stored=1)
            assert urlopen.call_count == 0
            logger.error(message="boom")
            assert urlopen.call_count == 1

    def test_webhook_failure_does_not_raise(self, buf: io.StringIO) -> None:
        logger = StructuredEventLogger("live", stream=buf, webhook_url="http://hooks.local/x")
        with patch("cli.structured_log.urllib.request.urlopen", side_effect=OSError("down")):
            record = logger.error(message="boom")
        assert record["event"] == "error"


class TestReturnValue:
    """Each method returns the record dict for testability."""

    def test_returns_record(self, logger: StructuredEventLogger) -> None:
        record = logger.orders_fetched(fetched=3, stored=3)
        assert isinstance(record, dict)
        assert record["event"] == "orders_fetched"
        assert record["account"] == "paper"
