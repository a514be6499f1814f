"""BizInsights — Stored Data Point Models.

`DataPoint` is the persisted form of a metric sample. Individual orders
get one row each; aggregate and snapshot metrics are upserted by the
store so there is at most one row per (organization, integration,
metric_type, day).
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field


class IntegrationStatus(str, Enum):
    CONNECTED = "CONNECTED"
    DISCONNECTED = "DISCONNECTED"


class Integration(SQLModel, table=True):
    """A connected source platform for an organization."""

    __tablename__ = "integrations"

    id: str = Field(
        default_factory=lambda: uuid.uuid4().hex, primary_key=True, max_length=64
    )
    organization_id: str = Field(index=True)
    platform: str = Field(description="shopify | woocommerce | facebook_ads | stripe")
    status: IntegrationStatus = Field(default=IntegrationStatus.CONNECTED)
    last_sync_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class DataPoint(SQLModel, table=True):
    """Universal stored sample."""

    __tablename__ = "data_points"

    id: Optional[int] = Field(default=None, primary_key=True)
    organization_id: str = Field(index=True)
    integration_id: str = Field(index=True)
    metric_type: str = Field(index=True, description="Metric tag from the registry")
    value: Decimal = Field(max_digits=18, decimal_places=4)
    date_recorded: datetime = Field(
        index=True,
        sa_type=DateTime(timezone=True),
        description="UTC midnight of the day the sample applies to",
    )
    metadata_json: str = Field(default="{}", description="Informational attributes")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
