"""Restricts play events to a time window relative to a reference instant."""
import logging
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Dict, List, Optional, Sequence

from listening_facts.models.listening_data import PlayEvent

logger = logging.getLogger(__name__)


class TimeRange(str, Enum):
    ALL = "all"
    YEAR = "year"
    SIX_MONTHS = "6mo"
    THREE_MONTHS = "3mo"
    MONTH = "month"
    WEEK = "week"


RANGE_LABELS: Dict[str, str] = {
    TimeRange.YEAR.value: "Last Year",
    TimeRange.SIX_MONTHS.value: "Last 6 Months",
    TimeRange.THREE_MONTHS.value: "Last 3 Months",
    TimeRange.MONTH.value: "Last Month",
    TimeRange.WEEK.value: "Last Week",
}

_MONTHS_BACK = {
    TimeRange.YEAR.value: 12,
    TimeRange.SIX_MONTHS.value: 6,
    TimeRange.THREE_MONTHS.value: 3,
    TimeRange.MONTH.value: 1,
}


def _months_before(day: date, months: int) -> date:
    """Calendar month subtraction; a day past the target month's end rolls into the next month."""
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    return date(year, month + 1, 1) + timedelta(days=day.day - 1)


def range_cutoff(range_name: str, now: datetime) -> Optional[datetime]:
    """Midnight (UTC wall clock) of the first day included in the range, or None for no cutoff."""
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    today = now.date()
    if range_name == TimeRange.WEEK.value:
        start = today - timedelta(days=7)
    elif range_name in _MONTHS_BACK:
        start = _months_before(today, _MONTHS_BACK[range_name])
    else:
        return None
    return datetime(start.year, start.month, start.day)


def filter_by_range(events: Sequence[PlayEvent], range_name: str, now: datetime) -> List[PlayEvent]:
    cutoff = range_cutoff(range_name, now)
    if cutoff is None:
        if range_name != TimeRange.ALL.value:
            logger.warning(f"Unrecognized range '{range_name}', using all events.")
        return list(events)

    filtered = []
    for event in events:
        played_at = event.played_at
        if played_at is not None and played_at >= cutoff:
            filtered.append(event)
    logger.info(f"Range '{range_name}' (from {cutoff:%Y-%m-%d}) kept {len(filtered)} of {len(events)} events.")
    return filtered
