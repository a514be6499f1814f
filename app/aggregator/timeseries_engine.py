"""BizInsights — Time-Series Engine.

Builds one bucket per calendar day for charts and reports. The mode is
decided once for the whole window, so the chart never mixes granular and
aggregate accounting across sub-ranges.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Collection, Dict, Iterable, List

from app.aggregator.classifier import classify
from app.aggregator.precision import floor_count
from app.aggregator.sample_parser import coerce_samples
from app.aggregator.window import in_window, iter_days, validate_window
from app.models.sample_models import (
    CounterBucket,
    CounterSample,
    DayBucket,
    MetricSample,
    OrderCountAggregateSample,
    OrderSample,
    ReconciliationMode,
    RevenueAggregateSample,
)
from app.core.logging import get_logger

logger = get_logger("aggregator.timeseries")


def restrict_to_window(
    samples: Iterable[MetricSample], start: date, end: date
) -> List[MetricSample]:
    """Keep samples whose day falls inside [start, end]."""
    return [s for s in samples if in_window(s.date_recorded, start, end)]


def compute_time_series(
    records: Iterable[Any], start_date: date, end_date: date
) -> List[DayBucket]:
    """Return zero-filled daily revenue/order buckets in ascending date order.

    Raises InvalidWindowError when end_date is before start_date.
    """
    validate_window(start_date, end_date)

    samples, _ = coerce_samples(records)
    samples = restrict_to_window(samples, start_date, end_date)
    mode = classify(samples)

    revenue: Dict[date, Decimal] = {d: Decimal("0") for d in iter_days(start_date, end_date)}
    orders: Dict[date, int] = {d: 0 for d in revenue}

    for sample in samples:
        day = sample.date_recorded
        if isinstance(sample, OrderSample):
            if mode == ReconciliationMode.GRANULAR:
                revenue[day] += sample.value
                orders[day] += 1
        elif isinstance(sample, RevenueAggregateSample):
            if mode == ReconciliationMode.AGGREGATE:
                revenue[day] += sample.value
        elif isinstance(sample, OrderCountAggregateSample):
            # Already a daily count: overwrite, don't accumulate
            if mode == ReconciliationMode.AGGREGATE:
                orders[day] = floor_count(sample.value)
        elif isinstance(sample, CounterSample):
            continue
        else:
            raise TypeError(f"Unhandled sample kind: {type(sample).__name__}")

    buckets = [DayBucket(date=d, revenue=revenue[d], orders=orders[d]) for d in revenue]
    logger.debug(
        f"Built {len(buckets)} buckets {start_date} → {end_date}",
        extra={"mode": mode.value, "sample_count": len(samples)},
    )
    return buckets


def compute_counter_series(
    records: Iterable[Any],
    start_date: date,
    end_date: date,
    metric_types: Collection[str],
) -> List[CounterBucket]:
    """Daily series for snapshot counters such as customers.

    Each sample is a point-in-time count, so the last one seen for a day wins.
    """
    validate_window(start_date, end_date)

    samples, _ = coerce_samples(records)
    values: Dict[date, int] = {d: 0 for d in iter_days(start_date, end_date)}
    for sample in restrict_to_window(samples, start_date, end_date):
        if sample.metric_type in metric_types:
            values[sample.date_recorded] = floor_count(sample.value)

    return [CounterBucket(date=d, value=v) for d, v in values.items()]
