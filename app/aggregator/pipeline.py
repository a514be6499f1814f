"""BizInsights — Dashboard Pipeline Orchestrator.

Runs the read path for one organization:
  resolve window → fetch samples from the store → run engines → DashboardOutput

The store is passed in; nothing here opens its own database connection.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from app.config import settings
from app.aggregator.precision import floor_count, format_money
from app.aggregator.sample_parser import coerce_samples
from app.aggregator.timeseries_engine import (
    compute_counter_series,
    compute_time_series,
    restrict_to_window,
)
from app.aggregator.total_engine import build_reconciliation_report, compute_total
from app.aggregator.window import ALL_TIME, resolve_window
from app.core.metric_registry import CUSTOMER_METRICS, ORDER_COUNT_METRICS, TRAFFIC
from app.models.dashboard_models import (
    ChartData,
    CustomerPoint,
    DashboardMetrics,
    DashboardOutput,
    DashboardSnapshot,
    IntegrationSummary,
    ReconciliationOutput,
    RevenuePoint,
    TrafficSource,
)
from app.models.sample_models import (
    MetricSample,
    OrderSample,
    ReconciliationMode,
)
from app.store.metric_store import MetricPointStore
from app.core.logging import get_logger

logger = get_logger("aggregator.pipeline")

SOURCE_COLORS = {
    "Organic Search": "#3b82f6",
    "Direct": "#10b981",
    "Social Media": "#f59e0b",
    "Email": "#ef4444",
    "Paid Search": "#8b5cf6",
    "Referral": "#06b6d4",
}
OTHER_SOURCE = "Other"


def _latest(samples: Iterable[MetricSample], metric_types: Iterable[str]) -> Optional[MetricSample]:
    """Most recent sample of the given tags; later input wins on equal days."""
    wanted = set(metric_types)
    latest = None
    for s in samples:
        if s.metric_type in wanted and (latest is None or s.date_recorded >= latest.date_recorded):
            latest = s
    return latest


def build_dashboard_metrics(
    records: Iterable[Any], start: date, end: date
) -> DashboardMetrics:
    """Summary card figures for the window, using the reconciled revenue total."""
    samples, _ = coerce_samples(records)
    samples = restrict_to_window(samples, start, end)

    result = compute_total(samples)

    if result.mode == ReconciliationMode.GRANULAR:
        orders = sum(1 for s in samples if isinstance(s, OrderSample))
    elif result.mode == ReconciliationMode.AGGREGATE:
        latest_count = _latest(samples, ORDER_COUNT_METRICS)
        orders = floor_count(latest_count.value) if latest_count else 0
    else:
        orders = 0

    customers = _latest(samples, CUSTOMER_METRICS)
    conversion = _latest(samples, ["conversion_rate"])
    aov = result.total / orders if orders > 0 else Decimal("0")

    return DashboardMetrics(
        revenue=format_money(result.total),
        orders=orders,
        customers=floor_count(customers.value) if customers else 0,
        conversion_rate=float(conversion.value) if conversion else 0.0,
        average_order_value=format_money(aov),
        mode=result.mode,
    )


def group_traffic_by_source(
    records: Iterable[Any], start: date, end: date
) -> List[TrafficSource]:
    """Sum in-window `traffic` samples per `metadata.source`, in first-seen order."""
    samples, _ = coerce_samples(records)
    visitors: Dict[str, Decimal] = {}
    for s in restrict_to_window(samples, start, end):
        if s.metric_type != TRAFFIC:
            continue
        source = str(s.metadata.get("source") or OTHER_SOURCE)
        visitors[source] = visitors.get(source, Decimal("0")) + s.value

    return [
        TrafficSource(
            source=source,
            visitors=floor_count(total),
            color=SOURCE_COLORS.get(source, "#6b7280"),
        )
        for source, total in visitors.items()
    ]


def build_chart_data(records: List[Any], start: date, end: date) -> ChartData:
    buckets = compute_time_series(records, start, end)
    customers = compute_counter_series(records, start, end, CUSTOMER_METRICS)
    return ChartData(
        revenue=[
            RevenuePoint(
                date=b.date.isoformat(),
                revenue=format_money(b.revenue),
                orders=b.orders,
            )
            for b in buckets
        ],
        customers=[
            CustomerPoint(date=c.date.isoformat(), customers=c.value) for c in customers
        ],
        traffic=group_traffic_by_source(records, start, end),
    )


def build_dashboard(
    store: MetricPointStore,
    organization_id: str,
    period: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    today: Optional[date] = None,
) -> DashboardOutput:
    """Assemble the dashboard payload for one organization.

    Raises InvalidWindowError for bad or inverted explicit dates.
    """
    period = period or settings.default_period
    earliest = store.earliest_sample_day(organization_id) if period == ALL_TIME else None
    start, end = resolve_window(period, start_date, end_date, today=today, earliest=earliest)

    integrations = store.list_integrations(organization_id)
    connected = store.connected_integrations(organization_id)

    output = DashboardOutput(
        schema_version=settings.snapshot_schema_version,
        generated_at=datetime.now(timezone.utc).isoformat(),
        organization_id=organization_id,
        currency=settings.currency,
        period=period if not start_date else "custom",
        date_range_start=start.isoformat(),
        date_range_end=end.isoformat(),
        integrations=[
            IntegrationSummary(
                id=i.id,
                platform=i.platform,
                status=i.status.value,
                last_sync_at=i.last_sync_at.isoformat() if i.last_sync_at else None,
            )
            for i in integrations
        ],
        has_active_integrations=bool(connected),
    )

    # Without a connected source, show nothing rather than stale numbers
    if not connected:
        logger.info(
            "No connected integrations; returning empty dashboard",
            extra={"organization_id": organization_id},
        )
        return output

    records = store.fetch_samples(organization_id, start, end)
    samples, skipped = coerce_samples(records)

    output.metrics = build_dashboard_metrics(samples, start, end)
    output.chart_data = build_chart_data(samples, start, end)
    output.skipped_samples = skipped

    logger.info(
        f"Dashboard built for {start} → {end}",
        extra={
            "organization_id": organization_id,
            "mode": output.metrics.mode.value,
            "sample_count": len(samples),
            "skipped": skipped,
        },
    )
    return output


def build_reconciliation(
    store: MetricPointStore,
    organization_id: str,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> ReconciliationOutput:
    """Compare order-level and aggregate revenue for an organization."""
    report = build_reconciliation_report(store.fetch_samples(organization_id, start, end))

    def money(value: Optional[Decimal]) -> Optional[float]:
        return format_money(value) if value is not None else None

    return ReconciliationOutput(
        organization_id=organization_id,
        mode=report.mode,
        total=format_money(report.total),
        order_count=report.order_count,
        order_sum=format_money(report.order_sum),
        aggregate_count=report.aggregate_count,
        aggregate_sum=format_money(report.aggregate_sum),
        latest_aggregate=money(report.latest_aggregate),
        latest_aggregate_date=(
            report.latest_aggregate_date.isoformat() if report.latest_aggregate_date else None
        ),
        discrepancy=format_money(report.discrepancy),
        skipped_samples=report.skipped_samples,
        metric_types=report.metric_types,
    )


def store_snapshot(store: MetricPointStore, output: DashboardOutput) -> DashboardSnapshot:
    """Persist a dashboard output as a versioned snapshot."""
    snapshot = DashboardSnapshot(
        organization_id=output.organization_id,
        schema_version=output.schema_version,
        date_range_start=output.date_range_start,
        date_range_end=output.date_range_end,
        result_json=output.model_dump_json(),
    )
    store.session.add(snapshot)
    store.session.commit()
    store.session.refresh(snapshot)
    return snapshot
