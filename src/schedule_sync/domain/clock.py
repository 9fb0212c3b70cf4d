"""Wall-clock parsing shared by the matcher and the declaration store.

Stored instants and candidate dates are compared as naive wall-clock values:
an explicit offset is dropped rather than converted, so a block persisted as
``2026-10-19T09:00:00+00:00`` and a candidate date ``2026-10-19 09:00`` refer
to the same minute.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Any, Optional

MINUTES_PER_DAY = 24 * 60

_WALL_CLOCK = re.compile(
    r"^(\d{4}-\d{2}-\d{2})[ T](\d{2}:\d{2}(?::\d{2})?)(?:\.\d+)?(?:Z|[+-]\d{2}:?\d{2})?$"
)
_TIME_OF_DAY = re.compile(r"^(\d{1,2}):(\d{2})(?::\d{2})?$")


def parse_wall_clock(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        text = value.strip()
        match = _WALL_CLOCK.match(text)
        if match:
            return datetime.fromisoformat(f"{match.group(1)}T{match.group(2)}")
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).replace(tzinfo=None)
        except ValueError:
            pass
    raise ValueError(f"Unsupported datetime value: {value!r}")


def format_wall_clock(value: datetime) -> str:
    """Render a wall-clock value the way it is persisted (labelled UTC, not converted)."""

    return value.replace(tzinfo=timezone.utc, microsecond=0).isoformat()


def parse_time_of_day(value: Any) -> Optional[int]:
    """Return minutes since midnight, ``1440`` for ``24:00``, or None when invalid."""

    if not isinstance(value, str):
        return None
    match = _TIME_OF_DAY.match(value.strip())
    if not match:
        return None
    hours = int(match.group(1))
    minutes = int(match.group(2))
    if hours == 24 and minutes == 0:
        return MINUTES_PER_DAY
    if hours > 23 or minutes > 59:
        return None
    return hours * 60 + minutes


def format_time_of_day(minutes: int) -> str:
    if minutes == MINUTES_PER_DAY:
        return "24:00"
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def weekday_index(value: datetime) -> int:
    """Weekday with Sunday as 0, matching the stored template rows."""

    return (value.weekday() + 1) % 7


def minutes_of_day(value: datetime) -> int:
    return value.hour * 60 + value.minute


def date_key(value: datetime) -> str:
    return value.date().isoformat()
