"""BizInsights — Raw Record → MetricSample coercion.

Records arrive from the store, from ingestion payloads or from tests as
mappings in either snake_case or the camelCase shape the sync jobs write.
Anything that cannot become a valid sample is skipped and logged; dirty
rows never abort an aggregation.
"""

from datetime import date, datetime, timezone
from typing import Any, Iterable, List, Mapping, Optional

from pydantic import ValidationError

from app.aggregator.precision import to_decimal
from app.models.sample_models import SAMPLE_TYPES, MetricSample, build_sample
from app.core.logging import get_logger

logger = get_logger("aggregator.parser")

# snake_case field → accepted keys, in lookup order
FIELD_ALIASES = {
    "organization_id": ("organization_id", "organizationId"),
    "integration_id": ("integration_id", "integrationId"),
    "metric_type": ("metric_type", "metricType"),
    "value": ("value",),
    "date_recorded": ("date_recorded", "dateRecorded"),
    "metadata": ("metadata",),
}


def _lookup(record: Mapping[str, Any], field: str) -> Any:
    for key in FIELD_ALIASES[field]:
        if key in record:
            return record[key]
    return None


def parse_sample_day(value: Any) -> Optional[date]:
    """Truncate a date, datetime or ISO string to its UTC calendar day."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value:
        text = value.strip()
        try:
            if len(text) == 10:
                return date.fromisoformat(text)
            return parse_sample_day(datetime.fromisoformat(text.replace("Z", "+00:00")))
        except ValueError:
            return None
    return None


def coerce_sample(record: Any) -> Optional[MetricSample]:
    """Return a typed sample for `record`, or None if it is malformed."""
    if isinstance(record, SAMPLE_TYPES):
        return record
    if not isinstance(record, Mapping):
        logger.warning(f"Skipping sample of unsupported type {type(record).__name__}")
        return None

    metric_type = _lookup(record, "metric_type")
    value = to_decimal(_lookup(record, "value"))
    day = parse_sample_day(_lookup(record, "date_recorded"))

    if not metric_type or not isinstance(metric_type, str):
        logger.warning("Skipping sample without metric type")
        return None
    if value is None:
        logger.warning(f"Skipping {metric_type} sample with non-numeric value")
        return None
    if value < 0:
        logger.warning(f"Skipping {metric_type} sample with negative value {value}")
        return None
    if day is None:
        logger.warning(f"Skipping {metric_type} sample without a valid date")
        return None

    metadata = _lookup(record, "metadata")
    try:
        return build_sample(
            metric_type=metric_type,
            value=value,
            date_recorded=day,
            organization_id=str(_lookup(record, "organization_id") or ""),
            integration_id=str(_lookup(record, "integration_id") or ""),
            metadata=dict(metadata) if isinstance(metadata, Mapping) else {},
        )
    except ValidationError as e:
        logger.warning(f"Skipping invalid {metric_type} sample: {e.error_count()} errors")
        return None


def coerce_samples(records: Iterable[Any]) -> tuple[List[MetricSample], int]:
    """Coerce a batch, returning (valid samples in input order, skipped count)."""
    samples: List[MetricSample] = []
    skipped = 0
    for record in records:
        sample = coerce_sample(record)
        if sample is None:
            skipped += 1
        else:
            samples.append(sample)
    if skipped:
        logger.warning(
            f"Skipped {skipped} malformed samples",
            extra={"skipped": skipped, "sample_count": len(samples)},
        )
    return samples, skipped
