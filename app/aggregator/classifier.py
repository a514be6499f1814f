"""BizInsights — Metric Classifier.

Decides which representation of revenue a window is accounted in. Any
individual order in the window forces GRANULAR for the whole window:
orders and period aggregates describe the same underlying revenue, and the
finer-grained source always wins.
"""

from typing import Iterable

from app.models.sample_models import (
    CounterSample,
    MetricSample,
    OrderCountAggregateSample,
    OrderSample,
    ReconciliationMode,
    RevenueAggregateSample,
)


def classify(samples: Iterable[MetricSample]) -> ReconciliationMode:
    """Return the reconciliation mode for a set of typed samples."""
    has_revenue_aggregate = False
    for sample in samples:
        if isinstance(sample, OrderSample):
            return ReconciliationMode.GRANULAR
        elif isinstance(sample, RevenueAggregateSample):
            has_revenue_aggregate = True
        elif isinstance(sample, (OrderCountAggregateSample, CounterSample)):
            continue
        else:
            raise TypeError(f"Unhandled sample kind: {type(sample).__name__}")

    if has_revenue_aggregate:
        return ReconciliationMode.AGGREGATE
    return ReconciliationMode.EMPTY
