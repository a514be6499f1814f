"""
Tests for app.aggregator.timeseries_engine.
"""
import pytest
from datetime import date, timedelta
from decimal import Decimal

from app.aggregator.timeseries_engine import (
    compute_counter_series,
    compute_time_series,
    restrict_to_window,
)
from app.aggregator.total_engine import compute_total
from app.aggregator.window import InvalidWindowError
from app.models.sample_models import DayBucket

from conftest import raw, typed

JAN_1 = date(2024, 1, 1)
JAN_2 = date(2024, 1, 2)
JAN_3 = date(2024, 1, 3)


def _rows(buckets):
    return [(b.date, b.revenue, b.orders) for b in buckets]


class TestComputeTimeSeries:
    """Tests for compute_time_series function."""

    def test_granular_scenario(self, granular_samples):
        buckets = compute_time_series(granular_samples, JAN_1, JAN_2)
        assert _rows(buckets) == [
            (JAN_1, Decimal("100"), 1),
            (JAN_2, Decimal("50"), 1),
        ]

    def test_aggregate_scenario(self, aggregate_samples):
        buckets = compute_time_series(aggregate_samples, JAN_1, JAN_2)
        assert _rows(buckets) == [
            (JAN_1, Decimal("500"), 0),
            (JAN_2, Decimal("800"), 0),
        ]

    def test_empty_scenario(self):
        """Three-day window with no samples gives three zero buckets."""
        buckets = compute_time_series([], JAN_1, JAN_3)
        assert buckets == [
            DayBucket(date=JAN_1),
            DayBucket(date=JAN_2),
            DayBucket(date=JAN_3),
        ]

    def test_zero_fill_and_ordering(self):
        """N-day window always yields N ascending buckets."""
        start = date(2024, 2, 20)
        for n in (1, 7, 30, 90):
            end = start + timedelta(days=n - 1)
            buckets = compute_time_series([raw("order", "1", "2024-02-21")], start, end)
            assert len(buckets) == n
            assert [b.date for b in buckets] == [start + timedelta(days=i) for i in range(n)]

    def test_leap_day_is_a_bucket(self):
        buckets = compute_time_series([], date(2024, 2, 28), date(2024, 3, 1))
        assert [b.date for b in buckets] == [
            date(2024, 2, 28),
            date(2024, 2, 29),
            date(2024, 3, 1),
        ]

    def test_out_of_window_samples_dropped(self):
        samples = [
            raw("order", "10", "2023-12-31"),
            raw("order", "20", "2024-01-01"),
            raw("order", "30", "2024-01-04"),
        ]
        buckets = compute_time_series(samples, JAN_1, JAN_3)
        assert sum(b.revenue for b in buckets) == Decimal("20")
        assert sum(b.orders for b in buckets) == 1

    def test_mode_is_decided_on_in_window_samples(self):
        """An order outside the window does not suppress in-window aggregates."""
        samples = [raw("order", "10", "2023-12-31"), raw("revenue", "70", "2024-01-02")]
        buckets = compute_time_series(samples, JAN_1, JAN_3)
        assert _rows(buckets)[1] == (JAN_2, Decimal("70"), 0)

    def test_aggregate_order_count_overwrites(self):
        """Daily order counts are floored and the last one for a day wins."""
        samples = [
            raw("revenue", "500", "2024-01-01"),
            raw("orders", "3", "2024-01-01"),
            raw("orders", "4.9", "2024-01-01"),
        ]
        buckets = compute_time_series(samples, JAN_1, JAN_1)
        assert buckets[0].orders == 4

    def test_granular_ignores_order_counts(self):
        samples = [raw("order", "5", "2024-01-01"), raw("orders", "40", "2024-01-01")]
        assert compute_time_series(samples, JAN_1, JAN_1)[0].orders == 1

    def test_multiple_orders_same_day_accumulate(self):
        samples = [raw("order", "19.99", "2024-01-01T10:00:00Z") for _ in range(3)]
        bucket = compute_time_series(samples, JAN_1, JAN_1)[0]
        assert bucket.revenue == Decimal("59.97")
        assert bucket.orders == 3

    def test_timestamps_truncate_to_utc_day(self):
        """A late-evening order in UTC-5 lands on the next UTC day."""
        samples = [raw("order", "10", "2024-01-01T22:30:00-05:00")]
        buckets = compute_time_series(samples, JAN_1, JAN_2)
        assert _rows(buckets) == [(JAN_1, Decimal("0"), 0), (JAN_2, Decimal("10"), 1)]

    def test_inverted_window_raises(self):
        with pytest.raises(InvalidWindowError):
            compute_time_series([raw("order", "1", "2024-01-01")], JAN_2, JAN_1)

    def test_idempotent(self, granular_samples):
        assert compute_time_series(granular_samples, JAN_1, JAN_3) == compute_time_series(
            granular_samples, JAN_1, JAN_3
        )


class TestCrossConsistency:
    """Bucket revenue sums to the card total for the same window."""

    @pytest.mark.parametrize(
        "samples",
        [
            [],
            [raw("order", "100", "2024-01-01"), raw("order", "50", "2024-01-02")],
            [
                raw("order", "12.34", "2024-01-01"),
                raw("revenue", "999", "2024-01-02"),
                raw("orders", "5", "2024-01-02"),
                raw("order", "0.66", "2024-01-03"),
                raw("order", "40", "2024-01-09"),
            ],
            [raw("revenue", "640", "2024-01-02"), raw("customers", "3", "2024-01-02")],
            [raw("customers", "3", "2024-01-02"), raw("orders", "2", "2024-01-03")],
        ],
    )
    def test_bucket_sum_equals_total(self, samples):
        buckets = compute_time_series(samples, JAN_1, JAN_3)
        in_window = restrict_to_window([typed(
            s["metricType"], s["value"], date.fromisoformat(s["dateRecorded"])
        ) for s in samples], JAN_1, JAN_3)
        assert sum(b.revenue for b in buckets) == compute_total(in_window).total


class TestComputeCounterSeries:
    """Tests for compute_counter_series function."""

    def test_snapshot_counts_per_day(self):
        samples = [
            raw("customers_total", "10", "2024-01-01"),
            raw("customers_total", "12", "2024-01-01"),
            raw("customers", "15.7", "2024-01-03"),
            raw("order", "99", "2024-01-02"),
        ]
        series = compute_counter_series(
            samples, JAN_1, JAN_3, ("customers", "customers_total")
        )
        assert [(c.date, c.value) for c in series] == [(JAN_1, 12), (JAN_2, 0), (JAN_3, 15)]

    def test_inverted_window_raises(self):
        with pytest.raises(InvalidWindowError):
            compute_counter_series([], JAN_3, JAN_1, ("customers",))
