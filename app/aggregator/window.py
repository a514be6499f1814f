"""BizInsights — Calendar windows.

Resolves dashboard periods into inclusive `[start, end]` day ranges and
validates caller-supplied windows.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Iterator, Optional

from app.config import settings

PERIOD_DAYS = {"7d": 7, "30d": 30, "90d": 90}
ALL_TIME = "all"


class InvalidWindowError(ValueError):
    """Raised when a caller passes an unusable date window."""


def parse_day(value: Optional[str]) -> Optional[date]:
    """Parse a YYYY-MM-DD string; None for empty input.

    Raises InvalidWindowError for anything that is not a real calendar day.
    """
    if not value:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise InvalidWindowError(f"Invalid date '{value}', expected YYYY-MM-DD")


def validate_window(start: date, end: date) -> None:
    if end < start:
        raise InvalidWindowError(
            f"Window end {end.isoformat()} is before start {start.isoformat()}"
        )


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every calendar day from start to end inclusive."""
    validate_window(start, end)
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)


def in_window(day: date, start: date, end: date) -> bool:
    return start <= day <= end


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def resolve_window(
    period: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    today: Optional[date] = None,
    earliest: Optional[date] = None,
) -> tuple[date, date]:
    """Resolve request parameters into an inclusive (start, end) window.

    Explicit dates win and must come as a pair. Otherwise `period` picks the
    last N days ending today; "all" starts at `earliest` (the oldest sample
    day, or today when there is none). Unknown periods fall back to the
    configured default.
    """
    today = today or utc_today()

    start = parse_day(start_date)
    end = parse_day(end_date)
    if start or end:
        if not (start and end):
            raise InvalidWindowError("start_date and end_date must be given together")
        validate_window(start, end)
        return start, end

    period = period or settings.default_period
    if period == ALL_TIME:
        start = min(earliest, today) if earliest else today
        return start, today

    days = PERIOD_DAYS.get(period) or PERIOD_DAYS.get(settings.default_period, 30)
    return today - timedelta(days=days - 1), today
