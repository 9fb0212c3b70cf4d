"""Interval and weekly-template matching for availability auto-fill.

Every function here is pure. Blocks are compared on full wall-clock instants;
templates on ``(weekday, minutes-of-day)`` with the calendar date ignored.

``predict`` applies the rules in strict priority order:

1. an unavailable block overlapping the target wins (``False``);
2. available blocks covering the whole target give ``True``;
3. an unavailable template overlapping the target's weekday slot gives ``False``;
4. an available template containing the target's weekday slot gives ``True``;
5. otherwise there is no opinion (``None``).

Busy signals count on any overlap, free signals only on full coverage.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from .clock import MINUTES_PER_DAY, minutes_of_day, parse_time_of_day, parse_wall_clock, weekday_index
from .models import ScheduleBlock, ScheduleTemplate


class ScheduleValidationError(ValueError):
    """Raised when a declared range cannot be stored."""


@dataclass(frozen=True)
class TimeRange:
    start: datetime
    end: datetime

    @classmethod
    def from_values(cls, start: Any, end: Any) -> "TimeRange":
        return cls(start=parse_wall_clock(start), end=parse_wall_clock(end))


@dataclass(frozen=True)
class TimeOfDayRange:
    weekday: int
    start_minutes: int
    end_minutes: int

    @classmethod
    def from_range(cls, target: TimeRange) -> "TimeOfDayRange":
        end_minutes = minutes_of_day(target.end)
        if target.end.date() > target.start.date():
            # Ranges running past midnight are clipped to the end of their first day.
            end_minutes = MINUTES_PER_DAY
        return cls(
            weekday=weekday_index(target.start),
            start_minutes=minutes_of_day(target.start),
            end_minutes=end_minutes,
        )

    @classmethod
    def from_template(cls, template: ScheduleTemplate) -> Optional["TimeOfDayRange"]:
        start = parse_time_of_day(template.start_time)
        end = parse_time_of_day(template.end_time)
        if start is None or end is None:
            return None
        return cls(weekday=template.weekday, start_minutes=start, end_minutes=end)


def overlaps(a: TimeRange, b: TimeRange) -> bool:
    return a.start < b.end and a.end > b.start


def contains(inner: TimeRange, outer: TimeRange) -> bool:
    return inner.start >= outer.start and inner.end <= outer.end


def time_of_day_overlaps(a: TimeOfDayRange, b: TimeOfDayRange) -> bool:
    if a.weekday != b.weekday:
        return False
    return a.start_minutes < b.end_minutes and a.end_minutes > b.start_minutes


def time_of_day_contains(inner: TimeOfDayRange, outer: TimeOfDayRange) -> bool:
    if inner.weekday != outer.weekday:
        return False
    return inner.start_minutes >= outer.start_minutes and inner.end_minutes <= outer.end_minutes


def is_covered(target: TimeRange, ranges: Iterable[TimeRange]) -> bool:
    """True when the union of ``ranges`` spans ``target`` with no gap."""

    clipped = sorted(
        (
            (max(item.start, target.start), min(item.end, target.end))
            for item in ranges
        ),
        key=lambda pair: pair[0],
    )
    clipped = [pair for pair in clipped if pair[0] < pair[1]]
    if not clipped:
        return False

    covered_until = target.start
    for start, end in clipped:
        if start > covered_until:
            return False
        if end > covered_until:
            covered_until = end
        if covered_until >= target.end:
            return True
    return covered_until >= target.end


def _block_range(block: ScheduleBlock) -> TimeRange:
    return TimeRange(start=parse_wall_clock(block.start_time), end=parse_wall_clock(block.end_time))


def predict(
    target: TimeRange,
    blocks: Sequence[ScheduleBlock],
    templates: Sequence[ScheduleTemplate],
) -> Optional[bool]:
    for block in blocks:
        if not block.availability and overlaps(target, _block_range(block)):
            return False

    available = [_block_range(block) for block in blocks if block.availability]
    if is_covered(target, available):
        return True

    slot = TimeOfDayRange.from_range(target)
    template_ranges: List[Tuple[ScheduleTemplate, TimeOfDayRange]] = []
    for template in templates:
        day_range = TimeOfDayRange.from_template(template)
        if day_range is not None:
            template_ranges.append((template, day_range))

    for template, day_range in template_ranges:
        if not template.availability and time_of_day_overlaps(slot, day_range):
            return False

    for template, day_range in template_ranges:
        if template.availability and time_of_day_contains(slot, day_range):
            return True

    return None


def normalize_block_range(start: Any, end: Any) -> TimeRange:
    """Parse a block range, rolling a same-day ``00:00`` end over to the next midnight.

    Raises ``ScheduleValidationError`` for unparseable input or an empty range.
    """

    try:
        target = TimeRange.from_values(start, end)
    except (TypeError, ValueError) as exc:
        raise ScheduleValidationError("The time range is not valid.") from exc

    is_midnight_end = target.end.time() == datetime.min.time()
    if target.end.date() == target.start.date() and is_midnight_end and target.end <= target.start:
        target = TimeRange(start=target.start, end=target.end + timedelta(days=1))

    if target.start >= target.end:
        raise ScheduleValidationError("The end of the time range must be after its start.")
    return target


def split_range(target: TimeRange, slot_minutes: int) -> List[TimeRange]:
    """Cut ``target`` into consecutive slots; ``slot_minutes <= 0`` keeps it whole."""

    if target.start >= target.end:
        return []
    if slot_minutes <= 0:
        return [target]

    step = timedelta(minutes=slot_minutes)
    slots: List[TimeRange] = []
    cursor = target.start
    while cursor < target.end:
        chunk_end = min(cursor + step, target.end)
        slots.append(TimeRange(start=cursor, end=chunk_end))
        cursor = chunk_end
    return slots
