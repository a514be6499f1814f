"""BizInsights — Shared route dependencies."""

from fastapi import Depends
from sqlmodel import Session

from app.database import get_session
from app.store.metric_store import MetricPointStore


def get_store(session: Session = Depends(get_session)) -> MetricPointStore:
    """Dependency — a store bound to the request's session."""
    return MetricPointStore(session)
