"""BizInsights — Total Engine.

Produces the single revenue figure shown on summary cards.

  GRANULAR  → sum of every individual order
  AGGREGATE → the most recent period revenue sample (not a sum: each
              aggregate is already a total produced upstream)
  EMPTY     → 0
"""

from decimal import Decimal
from typing import Any, Collection, Iterable, List, Optional

from app.aggregator.classifier import classify
from app.aggregator.precision import decimal_sum
from app.aggregator.sample_parser import coerce_samples
from app.models.sample_models import (
    MetricSample,
    OrderSample,
    ReconciliationMode,
    ReconciliationReport,
    RevenueAggregateSample,
    TotalResult,
)
from app.core.logging import get_logger

logger = get_logger("aggregator.total")


def latest_revenue_aggregate(
    samples: Iterable[MetricSample],
) -> Optional[RevenueAggregateSample]:
    """Most recent revenue aggregate; on equal days the later one in input order wins."""
    latest: Optional[RevenueAggregateSample] = None
    for sample in samples:
        if not isinstance(sample, RevenueAggregateSample):
            continue
        if latest is None or sample.date_recorded >= latest.date_recorded:
            latest = sample
    return latest


def reconcile_total(
    samples: List[MetricSample], mode: ReconciliationMode
) -> Decimal:
    """Apply the reconciliation policy for an already classified sample set."""
    if mode == ReconciliationMode.GRANULAR:
        return decimal_sum(s.value for s in samples if isinstance(s, OrderSample))
    if mode == ReconciliationMode.AGGREGATE:
        latest = latest_revenue_aggregate(samples)
        return latest.value if latest else Decimal("0")
    return Decimal("0")


def compute_total(
    records: Iterable[Any],
    window_metric_types: Optional[Collection[str]] = None,
) -> TotalResult:
    """Compute the card total for a window's samples.

    `window_metric_types` restricts the computation to those metric tags,
    the same way the store query can be narrowed by metric type.
    """
    samples, _ = coerce_samples(records)
    if window_metric_types is not None:
        samples = [s for s in samples if s.metric_type in window_metric_types]

    mode = classify(samples)
    total = reconcile_total(samples, mode)
    logger.debug(
        f"Total {total} ({mode.value})",
        extra={"mode": mode.value, "sample_count": len(samples)},
    )
    return TotalResult(total=total, mode=mode)


def build_reconciliation_report(records: Iterable[Any]) -> ReconciliationReport:
    """Show both revenue representations side by side for debugging.

    `aggregate_sum` is what summing every revenue aggregate would give; it
    is reported for comparison only and never used as the card total.
    """
    samples, skipped = coerce_samples(records)
    mode = classify(samples)

    orders = [s for s in samples if isinstance(s, OrderSample)]
    aggregates = [s for s in samples if isinstance(s, RevenueAggregateSample)]
    latest = latest_revenue_aggregate(aggregates)

    order_sum = decimal_sum(s.value for s in orders)
    aggregate_sum = decimal_sum(s.value for s in aggregates)

    return ReconciliationReport(
        mode=mode,
        total=reconcile_total(samples, mode),
        order_count=len(orders),
        order_sum=order_sum,
        aggregate_count=len(aggregates),
        aggregate_sum=aggregate_sum,
        latest_aggregate=latest.value if latest else None,
        latest_aggregate_date=latest.date_recorded if latest else None,
        discrepancy=abs(order_sum - aggregate_sum),
        skipped_samples=skipped,
        metric_types=sorted({s.metric_type for s in samples}),
    )
