"""Tests for unrealized P/L over open positions and equity change."""

import math

import pytest

from trade_core.contracts import InvalidPositionData, Position
from trade_core.positions import equity_change, parse_position, parse_positions, position_totals


def _raw(symbol: str, qty: str, entry: str, market_value: str | None = None,
         unrealized_pl: str | None = None, current_price: str | None = None) -> dict:
    """Brokerage-shaped position record: numbers as strings."""
    return {"symbol": symbol, "qty": qty, "avg_entry_price": entry, "market_value": market_value,
            "unrealized_pl": unrealized_pl, "current_price": current_price}


# ---------------------------------------------------------------------------
# Positions
# ---------------------------------------------------------------------------


class TestParsePosition:
    def test_string_numbers(self) -> None:
        p = parse_position(_raw("SPY", "10", "400.50", "4100", "95", "410"))
        assert p.symbol == "SPY"
        assert p.qty == 10.0
        assert p.cost_basis == pytest.approx(4005.0)
        assert p.current_price == 410.0
        assert p.unrealized_pl_pct == pytest.approx(95 / 4005 * 100)

    def test_missing_value_and_pl_default_to_zero(self) -> None:
        p = parse_position(_raw("SPY", "1", "10"))
        assert p.market_value == 0.0
        assert p.unrealized_pl == 0.0
        assert p.current_price is None

    def test_zero_cost_percent_is_zero(self) -> None:
        assert Position("FREE", 5, 0.0, 50.0, 50.0).unrealized_pl_pct == 0.0

    @pytest.mark.parametrize("field_name,value", [("qty", None), ("qty", "x"), ("avg_entry_price", ""),
                                                  ("market_value", "nan"), ("symbol", "")])
    def test_rejects_malformed(self, field_name: str, value) -> None:
        raw = _raw("SPY", "1", "10", "11", "1")
        raw[field_name] = value
        with pytest.raises(InvalidPositionData) as info:
            parse_position(raw)
        assert info.value.field_name == field_name

    def test_parse_positions_skips_malformed(self) -> None:
        positions, skipped = parse_positions([_raw("SPY", "1", "10"), _raw("BAD", "?", "10")])
        assert [p.symbol for p in positions] == ["SPY"]
        assert skipped == 1


class TestPositionTotals:
    def test_sums(self) -> None:
        totals = position_totals([
            _raw("AAPL", "10", "150", "1600", "100"),
            _raw("MSFT", "2", "400", "780", "-20"),
        ])
        assert totals.count == 2
        assert totals.market_value == pytest.approx(2380.0)
        assert totals.cost_basis == pytest.approx(2300.0)
        assert totals.unrealized_pl == pytest.approx(80.0)
        assert totals.unrealized_pl_pct == pytest.approx(80 / 2300 * 100)
        assert totals.skipped == 0

    def test_empty(self) -> None:
        totals = position_totals([])
        assert totals.count == 0
        assert totals.cost_basis == 0
        assert totals.unrealized_pl_pct == 0.0

    def test_malformed_counted_not_raised(self) -> None:
        totals = position_totals([_raw("AAPL", "1", "10", "12", "2"), {"symbol": "X"}])
        assert totals.count == 1
        assert totals.skipped == 1
        assert totals.unrealized_pl == pytest.approx(2.0)


# ---------------------------------------------------------------------------
# Equity history
# ---------------------------------------------------------------------------


class TestEquityChange:
    def test_first_vs_last(self) -> None:
        change = equity_change([100_000.0, 98_000.0, 104_500.0])
        assert change.start == 100_000.0
        assert change.end == 104_500.0
        assert change.change == pytest.approx(4_500.0)
        assert change.change_pct == pytest.approx(4.5)

    def test_empty_series(self) -> None:
        change = equity_change([])
        assert (change.start, change.end, change.change, change.change_pct) == (0.0, 0.0, 0.0, 0.0)

    def test_gaps_ignored(self) -> None:
        change = equity_change([None, 50.0, math.nan, 75.0, None])
        assert change.start == 50.0
        assert change.end == 75.0
        assert change.change_pct == pytest.approx(50.0)

    def test_zero_start_percent_is_zero(self) -> None:
        change = equity_change([0.0, 250.0])
        assert change.change == 250.0
        assert change.change_pct == 0.0
