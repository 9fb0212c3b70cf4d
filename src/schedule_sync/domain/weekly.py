from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Tuple

from .clock import MINUTES_PER_DAY, format_time_of_day, parse_time_of_day
from .matching import ScheduleValidationError


@dataclass(frozen=True)
class WeeklyRow:
    weekday: int
    start_minutes: int
    end_minutes: int
    availability: bool

    @property
    def start_time(self) -> str:
        return format_time_of_day(self.start_minutes)

    @property
    def end_time(self) -> str:
        return format_time_of_day(self.end_minutes)

    @property
    def key(self) -> str:
        return f"{self.weekday}_{self.start_time}-{self.end_time}"


def normalize_template_range(start_time: Any, end_time: Any) -> Optional[Tuple[int, int]]:
    """Minutes for a weekly range; an ``00:00`` end after a later start means ``24:00``."""

    start = parse_time_of_day(start_time)
    end = parse_time_of_day(end_time)
    if start is None or end is None:
        return None
    if end == 0 and start > 0:
        end = MINUTES_PER_DAY
    if start >= end:
        return None
    return start, end


def normalize_weekly_row(weekday: Any, start_time: Any, end_time: Any, availability: Any) -> Optional[WeeklyRow]:
    if not isinstance(weekday, int) or isinstance(weekday, bool) or not 0 <= weekday <= 6:
        return None
    minutes = normalize_template_range(start_time, end_time)
    if minutes is None:
        return None
    return WeeklyRow(weekday=weekday, start_minutes=minutes[0], end_minutes=minutes[1], availability=bool(availability))


def validate_weekly_row(weekday: Any, start_time: Any, end_time: Any, availability: Any) -> WeeklyRow:
    if not isinstance(weekday, int) or isinstance(weekday, bool) or not 0 <= weekday <= 6:
        raise ScheduleValidationError("The weekday must be between 0 (Sunday) and 6 (Saturday).")
    row = normalize_weekly_row(weekday, start_time, end_time, availability)
    if row is None:
        raise ScheduleValidationError("The time range is not valid.")
    return row


def compact_weekly_rows(existing: Iterable[WeeklyRow], incoming: Iterable[WeeklyRow]) -> List[WeeklyRow]:
    """Overlay ``incoming`` rows on ``existing`` ones and merge the result per weekday.

    Each weekday is cut at every row boundary. A segment covered by incoming
    rows takes the availability of the last such row; otherwise a segment
    covered by existing rows is busy if any of them is busy. Adjacent
    segments with equal availability are merged back together.
    """

    existing_rows = list(existing)
    incoming_rows = list(incoming)
    result: List[WeeklyRow] = []

    for weekday in range(7):
        day_existing = [row for row in existing_rows if row.weekday == weekday]
        day_incoming = [row for row in incoming_rows if row.weekday == weekday]
        if not day_existing and not day_incoming:
            continue

        boundaries = sorted(
            {row.start_minutes for row in day_existing + day_incoming}
            | {row.end_minutes for row in day_existing + day_incoming}
        )

        segments: List[List[Any]] = []
        for start, end in zip(boundaries, boundaries[1:]):
            incoming_cover = [row for row in day_incoming if row.start_minutes <= start and end <= row.end_minutes]
            if incoming_cover:
                availability = incoming_cover[-1].availability
            else:
                existing_cover = [row for row in day_existing if row.start_minutes <= start and end <= row.end_minutes]
                if not existing_cover:
                    continue
                availability = all(row.availability for row in existing_cover)

            if segments and segments[-1][1] == start and segments[-1][2] == availability:
                segments[-1][1] = end
            else:
                segments.append([start, end, availability])

        result.extend(
            WeeklyRow(weekday=weekday, start_minutes=start, end_minutes=end, availability=availability)
            for start, end, availability in segments
        )

    return result
