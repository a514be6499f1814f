"""BizInsights — Metric Point Store.

Read/write access to stored data points. A store wraps one injected
session; the aggregation engines never touch it and only receive the
materialized records it returns.
"""

import json
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Collection, Dict, List, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from app.aggregator.sample_parser import parse_sample_day
from app.core.metric_registry import is_upserted
from app.models.datapoint_models import DataPoint, Integration, IntegrationStatus
from app.models.sample_models import MetricSample
from app.core.logging import get_logger

logger = get_logger("store")


def _day_start(day: date) -> datetime:
    """Midnight UTC of `day`; stored timestamps are always timezone-aware."""
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def _to_record(row: DataPoint) -> Dict[str, Any]:
    """Row → raw sample mapping for the aggregation engines."""
    try:
        metadata = json.loads(row.metadata_json or "{}")
    except json.JSONDecodeError:
        logger.warning(f"Unreadable metadata on data point {row.id}")
        metadata = {}
    return {
        "organization_id": row.organization_id,
        "integration_id": row.integration_id,
        "metric_type": row.metric_type,
        "value": row.value,
        "date_recorded": row.date_recorded,
        "metadata": metadata,
    }


class MetricPointStore:
    """Data point and integration persistence for one session."""

    def __init__(self, session: Session):
        self.session = session

    # ── Integrations ──

    def register_integration(self, organization_id: str, platform: str) -> Integration:
        integration = Integration(organization_id=organization_id, platform=platform)
        self.session.add(integration)
        self.session.commit()
        self.session.refresh(integration)
        logger.info(
            f"Connected {platform} integration",
            extra={"organization_id": organization_id, "integration_id": integration.id},
        )
        return integration

    def get_integration(
        self, organization_id: str, integration_id: str
    ) -> Optional[Integration]:
        return self.session.exec(
            select(Integration).where(
                Integration.organization_id == organization_id,
                Integration.id == integration_id,
            )
        ).first()

    def list_integrations(self, organization_id: str) -> List[Integration]:
        return list(
            self.session.exec(
                select(Integration)
                .where(Integration.organization_id == organization_id)
                .order_by(Integration.created_at)
            ).all()
        )

    def connected_integrations(self, organization_id: str) -> List[Integration]:
        return [
            i
            for i in self.list_integrations(organization_id)
            if i.status == IntegrationStatus.CONNECTED
        ]

    def connected_organization_ids(self) -> List[str]:
        rows = self.session.exec(
            select(Integration.organization_id)
            .where(Integration.status == IntegrationStatus.CONNECTED)
            .distinct()
        ).all()
        return sorted(rows)

    def mark_synced(self, integration: Integration) -> None:
        integration.last_sync_at = datetime.now(timezone.utc)
        self.session.add(integration)
        self.session.commit()

    def disconnect_integration(self, integration: Integration) -> int:
        """Mark an integration disconnected and purge its samples."""
        integration.status = IntegrationStatus.DISCONNECTED
        self.session.add(integration)
        deleted = self.delete_integration_samples(
            integration.organization_id, integration.id
        )
        logger.info(
            f"Disconnected {integration.platform} integration, removed {deleted} data points",
            extra={
                "organization_id": integration.organization_id,
                "integration_id": integration.id,
            },
        )
        return deleted

    # ── Data points ──

    def delete_integration_samples(
        self, organization_id: str, integration_id: str, commit: bool = True
    ) -> int:
        rows = self.session.exec(
            select(DataPoint).where(
                DataPoint.organization_id == organization_id,
                DataPoint.integration_id == integration_id,
            )
        ).all()
        for row in rows:
            self.session.delete(row)
        if commit:
            self.session.commit()
        return len(rows)

    def _existing_for_day(self, sample: MetricSample) -> Optional[DataPoint]:
        start = _day_start(sample.date_recorded)
        return self.session.exec(
            select(DataPoint)
            .where(
                DataPoint.organization_id == sample.organization_id,
                DataPoint.integration_id == sample.integration_id,
                DataPoint.metric_type == sample.metric_type,
                DataPoint.date_recorded >= start,
                DataPoint.date_recorded < start + timedelta(days=1),
            )
            .order_by(DataPoint.id)
        ).first()

    def save_samples(
        self, samples: List[MetricSample], commit: bool = True
    ) -> tuple[int, int]:
        """Persist samples; returns (created, updated).

        Aggregate and snapshot metrics are upserted per day so re-syncs
        never leave two rows for the same key.
        """
        created = 0
        updated = 0
        for sample in samples:
            metadata_json = json.dumps(sample.metadata, default=str)
            existing = (
                self._existing_for_day(sample) if is_upserted(sample.metric_type) else None
            )
            if existing:
                existing.value = sample.value
                existing.metadata_json = metadata_json
                self.session.add(existing)
                updated += 1
            else:
                self.session.add(
                    DataPoint(
                        organization_id=sample.organization_id,
                        integration_id=sample.integration_id,
                        metric_type=sample.metric_type,
                        value=sample.value,
                        date_recorded=_day_start(sample.date_recorded),
                        metadata_json=metadata_json,
                    )
                )
                created += 1
            # Make pending rows visible to the next upsert lookup
            self.session.flush()

        if commit:
            self.session.commit()
        logger.info(
            f"Stored {created} new and {updated} updated data points",
            extra={"sample_count": len(samples)},
        )
        return created, updated

    def replace_integration_samples(
        self, organization_id: str, integration_id: str, samples: List[MetricSample]
    ) -> tuple[int, int, int]:
        """Swap an integration's data points for `samples` in one transaction.

        Returns (deleted, created, updated). On any failure the previous data
        points are kept.
        """
        try:
            deleted = self.delete_integration_samples(
                organization_id, integration_id, commit=False
            )
            created, updated = self.save_samples(samples, commit=False)
            self.session.commit()
        except Exception:
            self.session.rollback()
            logger.error(
                "Re-sync failed, previous data points kept",
                extra={"organization_id": organization_id, "integration_id": integration_id},
            )
            raise
        return deleted, created, updated

    def fetch_samples(
        self,
        organization_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
        integration_id: Optional[str] = None,
        metric_types: Optional[Collection[str]] = None,
    ) -> List[Dict[str, Any]]:
        """Raw sample records ordered by recorded time, then insertion."""
        query = select(DataPoint).where(DataPoint.organization_id == organization_id)
        if start is not None:
            query = query.where(DataPoint.date_recorded >= _day_start(start))
        if end is not None:
            query = query.where(DataPoint.date_recorded < _day_start(end + timedelta(days=1)))
        if integration_id is not None:
            query = query.where(DataPoint.integration_id == integration_id)
        if metric_types is not None:
            query = query.where(DataPoint.metric_type.in_(list(metric_types)))  # type: ignore

        rows = self.session.exec(
            query.order_by(DataPoint.date_recorded, DataPoint.id)
        ).all()
        return [_to_record(r) for r in rows]

    def earliest_sample_day(self, organization_id: str) -> Optional[date]:
        earliest = self.session.exec(
            select(func.min(DataPoint.date_recorded)).where(
                DataPoint.organization_id == organization_id
            )
        ).first()
        return parse_sample_day(earliest) if earliest else None
