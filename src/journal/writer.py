"""
Structured journal: append-only JSON lines. One line per round trip, skipped order or metrics snapshot.

Round trips and skipped orders already in the file are not written again, so
rerunning analytics over an overlapping window only appends what is new.
Metrics snapshots are always appended.
"""

import json
import math
from collections import Counter
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

from trade_core.contracts import PerformanceMetrics, RoundTrip, SkippedOrder


def _serialize(obj: Any) -> Any:
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, float) and not math.isfinite(obj):
        return str(obj)  # "inf" / "-inf" / "nan"
    if hasattr(obj, "__dict__") and not isinstance(obj, type):
        return {k: _serialize(v) for k, v in vars(obj).items() if not k.startswith("_")}
    if isinstance(obj, dict):
        return {k: _serialize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_serialize(x) for x in obj]
    return obj


def _trip_payload(trip: RoundTrip) -> dict:
    return {
        "symbol": trip.symbol,
        "qty": trip.qty,
        "buy_price": trip.buy_price,
        "sell_price": trip.sell_price,
        "pnl": trip.profit_loss,
        "pnl_pct": trip.profit_loss_pct,
        "buy_ts": trip.buy_timestamp,
        "sell_ts": trip.sell_timestamp,
    }


def _trip_key(payload: dict) -> tuple:
    return (payload["symbol"], payload["buy_ts"], payload["sell_ts"], payload["qty"], payload["buy_price"])


def _skipped_key(payload: dict) -> tuple:
    return (payload["order_id"], payload["symbol"], payload["reason"])


_KEYS = {"round_trip": _trip_key, "skipped_order": _skipped_key}


class JournalWriter:
    """Append-only journal. Each line is a JSON object with event type and payload."""

    def __init__(self, path: str | Path, *, echo_stdout: bool = False) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._echo = echo_stdout
        self._logged: Counter | None = None
        self._batch: Counter = Counter()

    def _load_logged(self) -> Counter:
        logged: Counter = Counter()
        if self._path.exists():
            with open(self._path) as f:
                for line in f:
                    if not line.strip():
                        continue
                    record = json.loads(line)
                    key_fn = _KEYS.get(record.get("event"))
                    if key_fn is not None:
                        logged[(record["event"], key_fn(record))] += 1
        return logged

    def _is_new(self, event_type: str, payload: dict) -> bool:
        """True unless this record is already in the file.

        Counts occurrences, so identical slices matched within one run are each kept.
        """
        if self._logged is None:
            self._logged = self._load_logged()
        key = (event_type, _KEYS[event_type](_serialize(payload)))
        self._batch[key] += 1
        return self._batch[key] > self._logged[key]

    def _write(self, event_type: str, payload: dict) -> None:
        record = {"ts_utc": datetime.now(timezone.utc).isoformat(), "event": event_type, **payload}
        line = json.dumps(_serialize(record)) + "\n"
        with open(self._path, "a") as f:
            f.write(line)
        if self._echo:
            print(line.rstrip())

    def round_trip(self, trip: RoundTrip, **extra: Any) -> bool:
        """Append a round trip unless it is already journaled. Returns True if written."""
        payload = _trip_payload(trip)
        if not self._is_new("round_trip", payload):
            return False
        self._write("round_trip", {**payload, **extra})
        return True

    def skipped_order(self, skipped: SkippedOrder, **extra: Any) -> bool:
        payload = {"order_id": skipped.order_id, "symbol": skipped.symbol, "reason": skipped.reason}
        if not self._is_new("skipped_order", payload):
            return False
        self._write("skipped_order", {**payload, **extra})
        return True

    def metrics(self, metrics: PerformanceMetrics, **extra: Any) -> None:
        payload = {
            "total_trades": metrics.total_trades,
            "winners": metrics.winners,
            "losers": metrics.losers,
            "win_rate": metrics.win_rate,
            "total_pl": metrics.total_pl,
            "avg_win": metrics.avg_win,
            "avg_loss": metrics.avg_loss,
            "profit_factor": metrics.profit_factor,
            "expectancy": metrics.expectancy,
            "largest_win": _trip_payload(metrics.largest_win) if metrics.largest_win else None,
            "largest_loss": _trip_payload(metrics.largest_loss) if metrics.largest_loss else None,
        }
        self._write("metrics", {**payload, **extra})
