"""BizInsights — Metric Sample Models.

Samples are a closed set of kinds. Each stored `metric_type` tag maps to
exactly one of them through the metric registry, so the engines can match
on the class instead of comparing strings.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Literal, Union

from pydantic import BaseModel, Field

from app.core.metric_registry import MetricKind, kind_of


class _SampleBase(BaseModel):
    """Fields shared by every sample kind."""

    model_config = {"frozen": True}

    organization_id: str = ""
    integration_id: str = ""
    metric_type: str
    value: Decimal = Field(ge=0)
    date_recorded: date
    metadata: Dict[str, Any] = Field(default_factory=dict)


class OrderSample(_SampleBase):
    """One individual transaction; value is its revenue."""

    kind: Literal[MetricKind.ORDER] = MetricKind.ORDER


class RevenueAggregateSample(_SampleBase):
    """Revenue already summed upstream for a period."""

    kind: Literal[MetricKind.REVENUE_AGGREGATE] = MetricKind.REVENUE_AGGREGATE


class OrderCountAggregateSample(_SampleBase):
    """Order count already counted upstream for a period."""

    kind: Literal[MetricKind.ORDER_COUNT_AGGREGATE] = MetricKind.ORDER_COUNT_AGGREGATE


class CounterSample(_SampleBase):
    """Any other metric (customers, ad spend, impressions ...)."""

    kind: Literal[MetricKind.COUNTER] = MetricKind.COUNTER


MetricSample = Union[
    OrderSample, RevenueAggregateSample, OrderCountAggregateSample, CounterSample
]

SAMPLE_CLASSES = {
    MetricKind.ORDER: OrderSample,
    MetricKind.REVENUE_AGGREGATE: RevenueAggregateSample,
    MetricKind.ORDER_COUNT_AGGREGATE: OrderCountAggregateSample,
    MetricKind.COUNTER: CounterSample,
}

SAMPLE_TYPES = tuple(SAMPLE_CLASSES.values())


def build_sample(
    metric_type: str,
    value: Decimal,
    date_recorded: date,
    organization_id: str = "",
    integration_id: str = "",
    metadata: Dict[str, Any] | None = None,
) -> MetricSample:
    """Instantiate the sample class registered for `metric_type`."""
    cls = SAMPLE_CLASSES[kind_of(metric_type)]
    return cls(
        organization_id=organization_id,
        integration_id=integration_id,
        metric_type=metric_type,
        value=value,
        date_recorded=date_recorded,
        metadata=metadata or {},
    )


# ─────────────────────────────────────────────
# ENGINE OUTPUTS
# ─────────────────────────────────────────────


class ReconciliationMode(str, Enum):
    """Which representation of revenue a computation trusts."""

    GRANULAR = "granular"  # Individual orders present; they win
    AGGREGATE = "aggregate"  # Only period revenue totals present
    EMPTY = "empty"  # Neither present


class TotalResult(BaseModel):
    """Scalar card total plus the mode that produced it."""

    total: Decimal = Decimal("0")
    mode: ReconciliationMode = ReconciliationMode.EMPTY


class DayBucket(BaseModel):
    """One day of chart data."""

    date: date
    revenue: Decimal = Decimal("0")
    orders: int = 0


class CounterBucket(BaseModel):
    """One day of a counter series (customers, traffic ...)."""

    date: date
    value: int = 0


class ReconciliationReport(BaseModel):
    """Side-by-side view of both revenue representations for one window."""

    mode: ReconciliationMode
    total: Decimal
    order_count: int = 0
    order_sum: Decimal = Decimal("0")
    aggregate_count: int = 0
    aggregate_sum: Decimal = Decimal("0")
    latest_aggregate: Decimal | None = None
    latest_aggregate_date: date | None = None
    discrepancy: Decimal = Decimal("0")
    skipped_samples: int = 0
    metric_types: List[str] = []
