"""
Pytest configuration and shared fixtures.
"""
import os

os.environ.setdefault("SCHEDULER_ENABLED", "false")

import pytest
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.models import dashboard_models, datapoint_models  # noqa: F401
from app.models.sample_models import build_sample
from app.store.metric_store import MetricPointStore

ORG_ID = "org_1"
INTEGRATION_ID = "int_1"


def raw(metric_type: str, value: Any, day: str, **extra) -> Dict[str, Any]:
    """Raw sample record in the camelCase shape sync jobs write."""
    record = {
        "organizationId": ORG_ID,
        "integrationId": INTEGRATION_ID,
        "metricType": metric_type,
        "value": value,
        "dateRecorded": day,
    }
    record.update(extra)
    return record


def typed(metric_type: str, value: str, day: date, integration_id: str = INTEGRATION_ID):
    """Typed sample for store and engine tests."""
    return build_sample(
        metric_type=metric_type,
        value=Decimal(value),
        date_recorded=day,
        organization_id=ORG_ID,
        integration_id=integration_id,
    )


@pytest.fixture
def granular_samples() -> List[Dict[str, Any]]:
    """Orders plus a stale revenue aggregate that must be ignored."""
    return [
        raw("order", "100", "2024-01-01"),
        raw("order", "50", "2024-01-02"),
        raw("revenue", "999", "2024-01-02"),
    ]


@pytest.fixture
def aggregate_samples() -> List[Dict[str, Any]]:
    """Only period revenue aggregates."""
    return [
        raw("revenue", "500", "2024-01-01"),
        raw("revenue", "800", "2024-01-02"),
    ]


@pytest.fixture
def engine():
    """In-memory SQLite shared across connections."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def store(session) -> MetricPointStore:
    return MetricPointStore(session)


@pytest.fixture
def client(session):
    """TestClient bound to the in-memory session (lifespan not started)."""
    from fastapi.testclient import TestClient

    from app.database import get_session
    from app.main import app

    def _override_session():
        yield session

    app.dependency_overrides[get_session] = _override_session
    yield TestClient(app)
    app.dependency_overrides.clear()
