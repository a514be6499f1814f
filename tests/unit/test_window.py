"""
Tests for app.aggregator.window and app.aggregator.precision.
"""
import pytest
from datetime import date
from decimal import Decimal

from app.aggregator.precision import decimal_sum, floor_count, format_money, to_decimal
from app.aggregator.window import (
    InvalidWindowError,
    iter_days,
    parse_day,
    resolve_window,
)

TODAY = date(2024, 3, 15)


class TestResolveWindow:
    """Tests for resolve_window function."""

    def test_explicit_dates_win(self):
        assert resolve_window("7d", "2024-01-01", "2024-01-31", today=TODAY) == (
            date(2024, 1, 1),
            date(2024, 1, 31),
        )

    def test_periods_end_today(self):
        assert resolve_window("7d", today=TODAY) == (date(2024, 3, 9), TODAY)
        assert resolve_window("30d", today=TODAY) == (date(2024, 2, 15), TODAY)
        assert resolve_window("90d", today=TODAY) == (date(2023, 12, 17), TODAY)

    def test_all_starts_at_earliest_sample(self):
        assert resolve_window("all", today=TODAY, earliest=date(2023, 6, 1)) == (
            date(2023, 6, 1),
            TODAY,
        )

    def test_all_without_samples_is_today(self):
        assert resolve_window("all", today=TODAY) == (TODAY, TODAY)

    def test_unknown_period_uses_default(self):
        """Default period is 30d."""
        assert resolve_window("fortnight", today=TODAY) == (date(2024, 2, 15), TODAY)

    def test_inverted_dates(self):
        with pytest.raises(InvalidWindowError):
            resolve_window(None, "2024-02-01", "2024-01-01", today=TODAY)

    def test_half_open_dates(self):
        with pytest.raises(InvalidWindowError) as exc_info:
            resolve_window(None, "2024-02-01", None, today=TODAY)
        assert "together" in str(exc_info.value)

    def test_invalid_date(self):
        with pytest.raises(InvalidWindowError) as exc_info:
            resolve_window(None, "2024-02-30", "2024-03-01", today=TODAY)
        assert "Invalid date" in str(exc_info.value)


class TestDays:
    """Tests for parse_day and iter_days."""

    def test_parse_day(self):
        assert parse_day("2024-02-29") == date(2024, 2, 29)
        assert parse_day(None) is None

    def test_single_day_window(self):
        assert list(iter_days(TODAY, TODAY)) == [TODAY]

    def test_iter_days_rejects_inversion(self):
        with pytest.raises(InvalidWindowError):
            list(iter_days(TODAY, date(2024, 3, 14)))

    def test_invalid_window_is_value_error(self):
        assert issubclass(InvalidWindowError, ValueError)


class TestPrecision:
    """Tests for decimal helpers."""

    def test_to_decimal(self):
        assert to_decimal("12.50") == Decimal("12.50")
        assert to_decimal(" 3 ") == Decimal("3")
        assert to_decimal(7) == Decimal("7")
        assert to_decimal(0.1) == Decimal("0.1")
        assert to_decimal(Decimal("1.5")) == Decimal("1.5")

    def test_to_decimal_rejects(self):
        for bad in (None, True, False, "abc", "nan", "inf", float("nan"), [], {}):
            assert to_decimal(bad) is None

    def test_decimal_sum_is_exact(self):
        assert decimal_sum([Decimal("0.1")] * 10) == Decimal("1.0")
        assert decimal_sum([]) == Decimal("0")

    def test_floor_count(self):
        assert floor_count(Decimal("4.99")) == 4
        assert floor_count(Decimal("5")) == 5

    def test_format_money_rounds_half_up(self):
        assert format_money(Decimal("10.005")) == 10.01
        assert format_money(Decimal("0")) == 0.0
