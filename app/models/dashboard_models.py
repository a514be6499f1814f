"""BizInsights — Dashboard Output Models (Versioned)."""

from datetime import datetime, timezone
from typing import List, Optional
from pydantic import BaseModel
from sqlmodel import SQLModel, Field

from app.models.sample_models import ReconciliationMode


# ─────────────────────────────────────────────
# DATABASE MODEL — Stores dashboard snapshots
# ─────────────────────────────────────────────


class DashboardSnapshot(SQLModel, table=True):
    """Versioned dashboard output written by the daily scheduler."""

    __tablename__ = "dashboard_snapshots"

    id: Optional[int] = Field(default=None, primary_key=True)
    organization_id: str = Field(index=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    schema_version: str = Field(description="e.g. 1.0.0")
    date_range_start: str = Field(default="", description="Window start")
    date_range_end: str = Field(default="", description="Window end")
    result_json: str = Field(description="Full DashboardOutput as JSON")


# ─────────────────────────────────────────────
# PYDANTIC SCHEMAS — Dashboard Output v1
# Money is float here: this is the display boundary.
# ─────────────────────────────────────────────


class DashboardMetrics(BaseModel):
    """Summary card figures."""

    revenue: float = 0.0
    orders: int = 0
    customers: int = 0
    conversion_rate: float = 0.0
    average_order_value: float = 0.0
    mode: ReconciliationMode = ReconciliationMode.EMPTY


class RevenuePoint(BaseModel):
    """One chart day."""

    date: str
    revenue: float = 0.0
    orders: int = 0


class CustomerPoint(BaseModel):
    date: str
    customers: int = 0


class TrafficSource(BaseModel):
    """Visitors summed per traffic source over the window."""

    source: str
    visitors: int = 0
    color: str = "#6b7280"


class ChartData(BaseModel):
    revenue: List[RevenuePoint] = []
    customers: List[CustomerPoint] = []
    traffic: List[TrafficSource] = []


class IntegrationSummary(BaseModel):
    id: str
    platform: str
    status: str
    last_sync_at: Optional[str] = None


class DashboardOutput(BaseModel):
    """Dashboard payload served to the UI and stored in snapshots."""

    schema_version: str = "1.0.0"
    generated_at: str = ""
    organization_id: str = ""
    currency: str = "USD"
    period: str = ""
    date_range_start: str = ""
    date_range_end: str = ""
    metrics: DashboardMetrics = DashboardMetrics()
    chart_data: ChartData = ChartData()
    integrations: List[IntegrationSummary] = []
    has_active_integrations: bool = False
    skipped_samples: int = 0


class ReconciliationOutput(BaseModel):
    """JSON view of a ReconciliationReport."""

    organization_id: str
    mode: ReconciliationMode
    total: float
    order_count: int
    order_sum: float
    aggregate_count: int
    aggregate_sum: float
    latest_aggregate: Optional[float] = None
    latest_aggregate_date: Optional[str] = None
    discrepancy: float
    skipped_samples: int = 0
    metric_types: List[str] = []
