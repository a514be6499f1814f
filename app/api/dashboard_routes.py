"""BizInsights — Dashboard API Routes."""

import json
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlmodel import select

from app.api.deps import get_store
from app.aggregator.pipeline import build_dashboard, build_reconciliation
from app.aggregator.precision import format_money
from app.aggregator.timeseries_engine import compute_time_series
from app.aggregator.total_engine import compute_total
from app.aggregator.window import (
    ALL_TIME,
    InvalidWindowError,
    parse_day,
    resolve_window,
    validate_window,
)
from app.models.dashboard_models import (
    DashboardOutput,
    DashboardSnapshot,
    ReconciliationOutput,
    RevenuePoint,
)
from app.models.sample_models import ReconciliationMode
from app.store.metric_store import MetricPointStore
from app.core.logging import get_logger

logger = get_logger("api.dashboard")

router = APIRouter(prefix="/organizations/{organization_id}", tags=["Dashboard"])


# ── Response Models ──


class DashboardResponse(BaseModel):
    status: str = "success"
    data: DashboardOutput


class TimeSeriesResponse(BaseModel):
    status: str = "success"
    start_date: str
    end_date: str
    mode: ReconciliationMode
    total: float
    buckets: List[RevenuePoint]


# ── Endpoints ──


@router.get("/dashboard", response_model=DashboardResponse)
def get_dashboard(
    organization_id: str,
    period: Optional[str] = Query(None, description="7d | 30d | 90d | all"),
    start_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    end_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    store: MetricPointStore = Depends(get_store),
):
    """Summary cards and chart data for an organization."""
    try:
        output = build_dashboard(store, organization_id, period, start_date, end_date)
    except InvalidWindowError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(
            f"Dashboard failed: {e}", extra={"organization_id": organization_id}
        )
        raise HTTPException(status_code=500, detail=f"Dashboard failed: {str(e)}")
    return DashboardResponse(data=output)


@router.get("/timeseries", response_model=TimeSeriesResponse)
def get_time_series(
    organization_id: str,
    start_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    end_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    period: Optional[str] = Query(None, description="7d | 30d | 90d | all"),
    store: MetricPointStore = Depends(get_store),
):
    """Daily revenue/order buckets plus the card total for the same window."""
    try:
        earliest = (
            store.earliest_sample_day(organization_id) if period == ALL_TIME else None
        )
        start, end = resolve_window(period, start_date, end_date, earliest=earliest)

        records = store.fetch_samples(organization_id, start, end)
        buckets = compute_time_series(records, start, end)
        result = compute_total(records)
    except InvalidWindowError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(
            f"Time series failed: {e}", extra={"organization_id": organization_id}
        )
        raise HTTPException(status_code=500, detail=f"Time series failed: {str(e)}")

    return TimeSeriesResponse(
        start_date=start.isoformat(),
        end_date=end.isoformat(),
        mode=result.mode,
        total=format_money(result.total),
        buckets=[
            RevenuePoint(
                date=b.date.isoformat(), revenue=format_money(b.revenue), orders=b.orders
            )
            for b in buckets
        ],
    )


@router.get("/revenue/reconciliation", response_model=ReconciliationOutput)
def get_revenue_reconciliation(
    organization_id: str,
    start_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    end_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    store: MetricPointStore = Depends(get_store),
):
    """Debug view: order-level vs aggregate revenue and which one the cards use."""
    try:
        start = parse_day(start_date)
        end = parse_day(end_date)
        if start and end:
            validate_window(start, end)
        return build_reconciliation(store, organization_id, start, end)
    except InvalidWindowError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(
            f"Reconciliation failed: {e}", extra={"organization_id": organization_id}
        )
        raise HTTPException(status_code=500, detail=f"Reconciliation failed: {str(e)}")


@router.get("/snapshots/latest")
def get_latest_snapshot(
    organization_id: str, store: MetricPointStore = Depends(get_store)
):
    """Get the most recent stored dashboard snapshot."""
    snapshot = store.session.exec(
        select(DashboardSnapshot)
        .where(DashboardSnapshot.organization_id == organization_id)
        .order_by(DashboardSnapshot.created_at.desc(), DashboardSnapshot.id.desc())  # type: ignore
        .limit(1)
    ).first()

    if not snapshot:
        return {"status": "no_data", "message": "No snapshot has been stored yet."}

    return {
        "status": "success",
        "id": snapshot.id,
        "created_at": snapshot.created_at.isoformat(),
        "schema_version": snapshot.schema_version,
        "dashboard": json.loads(snapshot.result_json),
    }
