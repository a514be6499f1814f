"""BizInsights — Unified Metric Registry.

Maps every stored `metric_type` tag to exactly one sample kind. The kind
decides how the aggregation engine reconciles a sample, so adding a new
connector metric means registering it here first.
"""

from enum import Enum
from typing import Dict


class MetricKind(str, Enum):
    """Granularity of a stored sample."""

    ORDER = "order"  # One record per transaction
    REVENUE_AGGREGATE = "revenue_aggregate"  # Pre-summed revenue per period
    ORDER_COUNT_AGGREGATE = "order_count_aggregate"  # Pre-counted orders per period
    COUNTER = "counter"  # Everything else, never reconciled


class MetricDefinition:
    """Describes a single metric."""

    def __init__(
        self,
        name: str,
        kind: MetricKind,
        unit: str = "",
        description: str = "",
        daily_snapshot: bool = False,
    ):
        self.name = name
        self.kind = kind
        self.unit = unit
        self.description = description
        # Snapshot metrics keep one row per day; re-syncs overwrite it
        self.daily_snapshot = daily_snapshot

    @property
    def is_aggregate(self) -> bool:
        return self.kind in (
            MetricKind.REVENUE_AGGREGATE,
            MetricKind.ORDER_COUNT_AGGREGATE,
        )

    def __repr__(self) -> str:
        return f"<Metric {self.name} ({self.kind.value})>"


# ─────────────────────────────────────────────
# RECONCILED METRICS
# ─────────────────────────────────────────────

ORDER = "order"
REVENUE = "revenue"
ORDERS = "orders"
TRAFFIC = "traffic"

RECONCILED_METRICS: Dict[str, MetricDefinition] = {
    ORDER: MetricDefinition(
        ORDER, MetricKind.ORDER, "currency", "Single transaction revenue"
    ),
    REVENUE: MetricDefinition(
        REVENUE,
        MetricKind.REVENUE_AGGREGATE,
        "currency",
        "Revenue total reported for a period",
    ),
    ORDERS: MetricDefinition(
        ORDERS,
        MetricKind.ORDER_COUNT_AGGREGATE,
        "count",
        "Order count reported for a period",
    ),
}


# ─────────────────────────────────────────────
# COUNTERS — Summed or snapshotted, never reconciled
# ─────────────────────────────────────────────

COUNTER_METRICS: Dict[str, MetricDefinition] = {
    "customers": MetricDefinition(
        "customers", MetricKind.COUNTER, "count", "Customers", daily_snapshot=True
    ),
    "customers_total": MetricDefinition(
        "customers_total",
        MetricKind.COUNTER,
        "count",
        "Customer base size",
        daily_snapshot=True,
    ),
    "conversion_rate": MetricDefinition(
        "conversion_rate",
        MetricKind.COUNTER,
        "%",
        "Store conversion rate",
        daily_snapshot=True,
    ),
    "products_total": MetricDefinition(
        "products_total", MetricKind.COUNTER, "count", "Catalog size", daily_snapshot=True
    ),
    "inventory_total": MetricDefinition(
        "inventory_total",
        MetricKind.COUNTER,
        "count",
        "Units in stock",
        daily_snapshot=True,
    ),
    "orders_total": MetricDefinition(
        "orders_total",
        MetricKind.COUNTER,
        "count",
        "Order count over the synced period",
        daily_snapshot=True,
    ),
    TRAFFIC: MetricDefinition(TRAFFIC, MetricKind.COUNTER, "count", "Sessions"),
    "ad_spend": MetricDefinition(
        "ad_spend", MetricKind.COUNTER, "currency", "Advertising spend"
    ),
    "impressions": MetricDefinition(
        "impressions", MetricKind.COUNTER, "count", "Ad impressions"
    ),
    "clicks": MetricDefinition("clicks", MetricKind.COUNTER, "count", "Ad clicks"),
    "conversions": MetricDefinition(
        "conversions", MetricKind.COUNTER, "count", "Attributed conversions"
    ),
    "payment": MetricDefinition(
        "payment", MetricKind.COUNTER, "currency", "Stripe charge"
    ),
    "stripe_refund": MetricDefinition(
        "stripe_refund", MetricKind.COUNTER, "currency", "Stripe refund"
    ),
    "stripe_mrr": MetricDefinition(
        "stripe_mrr",
        MetricKind.COUNTER,
        "currency",
        "Monthly recurring revenue",
        daily_snapshot=True,
    ),
}


# ─────────────────────────────────────────────
# HELPERS
# ─────────────────────────────────────────────

ALL_METRICS = {**RECONCILED_METRICS, **COUNTER_METRICS}

CUSTOMER_METRICS = ("customers", "customers_total")

# Both feed the orders card; only `orders` is a per-day bucket value
ORDER_COUNT_METRICS = (ORDERS, "orders_total")


def get_metric(name: str) -> MetricDefinition | None:
    """Look up a metric by name."""
    return ALL_METRICS.get(name)


def kind_of(metric_type: str) -> MetricKind:
    """Return the sample kind for a metric tag. Unregistered tags are counters."""
    metric = ALL_METRICS.get(metric_type)
    return metric.kind if metric else MetricKind.COUNTER


def is_upserted(metric_type: str) -> bool:
    """True when the store keeps at most one row per day for this tag."""
    metric = ALL_METRICS.get(metric_type)
    return bool(metric and (metric.is_aggregate or metric.daily_snapshot))
