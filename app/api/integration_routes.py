"""BizInsights — Integration & Ingestion API Routes."""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from app.api.deps import get_store
from app.aggregator.sample_parser import coerce_samples
from app.config import settings
from app.connectors.shopify.transformer import transform_orders
from app.models.datapoint_models import Integration, IntegrationStatus
from app.store.metric_store import MetricPointStore
from app.core.logging import get_logger

logger = get_logger("api.integrations")

router = APIRouter(prefix="/organizations/{organization_id}/integrations", tags=["Integrations"])


# ── Request / Response Models ──


class ConnectIntegrationRequest(BaseModel):
    platform: str
    """One of: "shopify", "woocommerce", "facebook_ads", "stripe"."""


class IngestDataPointsRequest(BaseModel):
    """Batch of raw samples from a sync job."""

    datapoints: List[Dict[str, Any]]

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "datapoints": [
                        {"metricType": "revenue", "value": "500.00", "dateRecorded": "2024-01-01"},
                        {"metricType": "orders", "value": 7, "dateRecorded": "2024-01-01"},
                    ]
                }
            ]
        }
    }


class ShopifyOrdersRequest(BaseModel):
    """Raw `orders` array as returned by the Shopify Admin API."""

    orders: List[Dict[str, Any]]
    currency: str = ""


class IngestResponse(BaseModel):
    status: str = "success"
    created: int = 0
    updated: int = 0
    skipped: int = 0


def _connected_integration(
    store: MetricPointStore, organization_id: str, integration_id: str
) -> Integration:
    integration = store.get_integration(organization_id, integration_id)
    if not integration:
        raise HTTPException(status_code=404, detail="Integration not found")
    if integration.status != IntegrationStatus.CONNECTED:
        raise HTTPException(status_code=409, detail="Integration is disconnected")
    return integration


# ── Endpoints ──


@router.post("")
def connect_integration(
    organization_id: str,
    request: ConnectIntegrationRequest,
    store: MetricPointStore = Depends(get_store),
):
    """Register a connected source platform."""
    integration = store.register_integration(organization_id, request.platform)
    return {
        "status": "success",
        "id": integration.id,
        "platform": integration.platform,
        "integration_status": integration.status.value,
    }


@router.delete("/{integration_id}")
def disconnect_integration(
    organization_id: str,
    integration_id: str,
    store: MetricPointStore = Depends(get_store),
):
    """Disconnect an integration and delete all of its data points."""
    integration = store.get_integration(organization_id, integration_id)
    if not integration:
        raise HTTPException(status_code=404, detail="Integration not found")
    deleted = store.disconnect_integration(integration)
    return {"status": "success", "deleted_datapoints": deleted}


@router.post("/{integration_id}/datapoints", response_model=IngestResponse)
def ingest_datapoints(
    organization_id: str,
    integration_id: str,
    request: IngestDataPointsRequest,
    store: MetricPointStore = Depends(get_store),
):
    """Store a batch of samples. Malformed entries are skipped, not rejected."""
    integration = _connected_integration(store, organization_id, integration_id)

    records = [
        {**dp, "organization_id": organization_id, "integration_id": integration.id}
        for dp in request.datapoints
    ]
    samples, skipped = coerce_samples(records)
    created, updated = store.save_samples(samples)
    store.mark_synced(integration)
    return IngestResponse(created=created, updated=updated, skipped=skipped)


@router.post("/{integration_id}/shopify/orders", response_model=IngestResponse)
def sync_shopify_orders(
    organization_id: str,
    integration_id: str,
    request: ShopifyOrdersRequest,
    store: MetricPointStore = Depends(get_store),
):
    """Full re-sync: replace the integration's data points with the given orders.

    Order samples are never upserted, so the previous rows are always cleared
    first; the swap is atomic.
    """
    integration = _connected_integration(store, organization_id, integration_id)
    if integration.platform != "shopify":
        raise HTTPException(status_code=400, detail="Integration is not a Shopify store")

    samples = transform_orders(
        request.orders,
        organization_id,
        integration.id,
        default_currency=request.currency or settings.currency,
    )
    try:
        deleted, created, updated = store.replace_integration_samples(
            organization_id, integration.id, samples
        )
    except Exception as e:
        logger.error(
            f"Shopify sync failed: {e}",
            extra={"organization_id": organization_id, "integration_id": integration.id},
        )
        raise HTTPException(status_code=500, detail=f"Shopify sync failed: {str(e)}")

    store.mark_synced(integration)
    logger.info(
        f"Shopify sync replaced {deleted} data points",
        extra={"organization_id": organization_id, "integration_id": integration.id},
    )
    return IngestResponse(created=created, updated=updated)
