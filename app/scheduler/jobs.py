"""BizInsights — Scheduler Jobs.

APScheduler daily job that stores a dashboard snapshot for every
organization with a connected integration.
"""

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlmodel import Session

from app.config import settings
from app.database import get_engine
from app.aggregator.pipeline import build_dashboard, store_snapshot
from app.store.metric_store import MetricPointStore
from app.core.logging import get_logger

logger = get_logger("scheduler")

scheduler = AsyncIOScheduler()


def snapshot_all_organizations(store: MetricPointStore) -> int:
    """Build and store a snapshot per connected organization; returns how many were stored."""
    stored = 0
    for organization_id in store.connected_organization_ids():
        try:
            output = build_dashboard(store, organization_id, settings.snapshot_period)
            snapshot = store_snapshot(store, output)
            stored += 1
            logger.info(
                f"Stored snapshot {snapshot.id}",
                extra={"organization_id": organization_id, "mode": output.metrics.mode.value},
            )
        except Exception as e:
            store.session.rollback()
            logger.error(
                f"Snapshot failed: {e}", extra={"organization_id": organization_id}
            )
    return stored


def daily_snapshot_job():
    """Snapshot every connected organization's dashboard.

    Plain function: the scheduler runs it in its thread pool, off the event loop.
    """
    logger.info("Scheduled daily snapshot starting...")
    try:
        with Session(get_engine()) as session:
            stored = snapshot_all_organizations(MetricPointStore(session))
        logger.info(f"Scheduled snapshot complete. Stored {stored} snapshots")
    except Exception as e:
        logger.error(f"Scheduled snapshot failed: {e}")


def start_scheduler():
    """Configure and start the scheduler."""
    if not settings.scheduler_enabled:
        logger.info("Scheduler disabled via config")
        return

    scheduler.add_job(
        daily_snapshot_job,
        "cron",
        hour=settings.snapshot_hour,
        minute=0,
        id="daily_snapshot",
        replace_existing=True,
        misfire_grace_time=3600,
    )
    scheduler.start()
    logger.info(f"Scheduler started. Daily snapshot at {settings.snapshot_hour}:00 UTC")


def stop_scheduler():
    """Shutdown the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
