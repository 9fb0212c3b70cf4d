from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .clock import format_time_of_day, format_wall_clock, parse_time_of_day, parse_wall_clock
from .enums import BlockSource, TemplateSource


def _normalize_time(value: Any) -> str:
    minutes = parse_time_of_day(value)
    if minutes is None:
        return str(value)
    return format_time_of_day(minutes)


@dataclass(slots=True)
class ScheduleTemplate:
    id: Optional[str]
    user_id: str
    weekday: int
    start_time: str
    end_time: str
    availability: bool
    source: TemplateSource = TemplateSource.MANUAL
    sample_count: int = 1

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "ScheduleTemplate":
        return cls(
            id=str(record["id"]) if record.get("id") is not None else None,
            user_id=str(record["user_id"]),
            weekday=int(record["weekday"]),
            start_time=_normalize_time(record["start_time"]),
            end_time=_normalize_time(record["end_time"]),
            availability=bool(record["availability"]),
            source=TemplateSource(record.get("source") or TemplateSource.MANUAL),
            sample_count=int(record.get("sample_count") or 0),
        )

    def to_record(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {
            "user_id": self.user_id,
            "weekday": self.weekday,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "availability": self.availability,
            "source": self.source.value,
            "sample_count": self.sample_count,
        }
        if self.id:
            record["id"] = self.id
        return record

    @property
    def is_read_only(self) -> bool:
        return self.source is TemplateSource.LEARNED


@dataclass(slots=True)
class ScheduleBlock:
    id: Optional[str]
    user_id: str
    start_time: datetime
    end_time: datetime
    availability: bool
    source: BlockSource = BlockSource.MANUAL
    event_id: Optional[str] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "ScheduleBlock":
        return cls(
            id=str(record["id"]) if record.get("id") is not None else None,
            user_id=str(record["user_id"]),
            start_time=parse_wall_clock(record["start_time"]),
            end_time=parse_wall_clock(record["end_time"]),
            availability=bool(record["availability"]),
            source=BlockSource(record.get("source") or BlockSource.MANUAL),
            event_id=record.get("event_id"),
            updated_at=parse_wall_clock(record["updated_at"]) if record.get("updated_at") else None,
        )

    def to_record(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {
            "user_id": self.user_id,
            "start_time": format_wall_clock(self.start_time),
            "end_time": format_wall_clock(self.end_time),
            "availability": self.availability,
            "source": self.source.value,
            "event_id": self.event_id,
        }
        if self.id:
            record["id"] = self.id
        return record


@dataclass(slots=True)
class AvailabilityOverride:
    user_id: str
    event_id: str
    event_date_id: str
    availability: bool
    reason: str = "conflict_override"

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "AvailabilityOverride":
        return cls(
            user_id=str(record["user_id"]),
            event_id=str(record["event_id"]),
            event_date_id=str(record["event_date_id"]),
            availability=bool(record.get("availability")),
            reason=record.get("reason") or "conflict_override",
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "event_id": self.event_id,
            "event_date_id": self.event_date_id,
            "availability": self.availability,
            "reason": self.reason,
        }


@dataclass(slots=True)
class EventLink:
    user_id: str
    event_id: str
    participant_id: Optional[str] = None

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "EventLink":
        participant = record.get("participant_id")
        return cls(
            user_id=str(record["user_id"]),
            event_id=str(record["event_id"]),
            participant_id=str(participant) if participant else None,
        )


@dataclass(slots=True)
class EventSummary:
    id: str
    title: str
    public_token: Optional[str] = None
    is_finalized: bool = False

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "EventSummary":
        return cls(
            id=str(record["id"]),
            title=str(record.get("title") or ""),
            public_token=record.get("public_token"),
            is_finalized=bool(record.get("is_finalized")),
        )


@dataclass(slots=True)
class EventDate:
    id: str
    start_time: datetime
    end_time: datetime
    event_id: Optional[str] = None

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "EventDate":
        return cls(
            id=str(record["id"]),
            event_id=str(record["event_id"]) if record.get("event_id") else None,
            start_time=parse_wall_clock(record["start_time"]),
            end_time=parse_wall_clock(record["end_time"]),
        )


@dataclass(slots=True)
class EventDateAnswer:
    participant_id: str
    event_id: str
    event_date_id: str
    availability: bool

    def to_record(self) -> Dict[str, Any]:
        return {
            "participant_id": self.participant_id,
            "event_id": self.event_id,
            "event_date_id": self.event_date_id,
            "availability": self.availability,
        }


@dataclass(slots=True)
class SyncDateRow:
    event_date_id: str
    start_time: datetime
    end_time: datetime
    current_availability: bool
    desired_availability: Optional[bool]
    will_change: bool
    is_protected: bool

    @property
    def conflicts(self) -> bool:
        return self.desired_availability is not None and self.desired_availability != self.current_availability


@dataclass(slots=True)
class SyncChangeCounts:
    total: int = 0
    available_to_unavailable: int = 0
    unavailable_to_available: int = 0
    protected: int = 0

    @classmethod
    def from_rows(cls, rows: List[SyncDateRow]) -> "SyncChangeCounts":
        counts = cls()
        for row in rows:
            if row.will_change:
                counts.total += 1
                if row.current_availability:
                    counts.available_to_unavailable += 1
                else:
                    counts.unavailable_to_available += 1
            elif row.is_protected and row.conflicts:
                counts.protected += 1
        return counts

    def add(self, other: "SyncChangeCounts") -> None:
        self.total += other.total
        self.available_to_unavailable += other.available_to_unavailable
        self.unavailable_to_available += other.unavailable_to_available
        self.protected += other.protected


@dataclass(slots=True)
class SyncDiff:
    event_id: str
    title: str
    participant_id: str
    public_token: Optional[str] = None
    is_finalized: bool = False
    dates: List[SyncDateRow] = field(default_factory=list)
    changes: SyncChangeCounts = field(default_factory=SyncChangeCounts)

    @property
    def has_changes(self) -> bool:
        return self.changes.total > 0

    def changed_rows(self) -> List[SyncDateRow]:
        return [row for row in self.dates if row.will_change]


@dataclass(slots=True)
class SyncPreview:
    """Outcome of a preview call; ``failed`` keeps lookup errors apart from "nothing to sync"."""

    events: List[SyncDiff] = field(default_factory=list)
    failed: bool = False
    message: Optional[str] = None

    @property
    def totals(self) -> SyncChangeCounts:
        totals = SyncChangeCounts()
        for diff in self.events:
            totals.add(diff.changes)
        return totals

    @property
    def is_synced(self) -> bool:
        return not self.failed and not self.events


@dataclass(slots=True)
class ActionResult:
    success: bool
    message: Optional[str] = None
    updated_count: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"success": self.success}
        if self.message is not None:
            payload["message"] = self.message
        if self.updated_count is not None:
            payload["updated_count"] = self.updated_count
        return payload


@dataclass(slots=True)
class ScheduleContext:
    is_authenticated: bool = False
    has_sync_target_events: bool = False
    locked_date_ids: List[str] = field(default_factory=list)
    autofill: Dict[str, bool] = field(default_factory=dict)
    daily_autofill_date_ids: List[str] = field(default_factory=list)
    override_date_ids: List[str] = field(default_factory=list)
    covered_date_ids: List[str] = field(default_factory=list)
    uncovered_date_keys: List[str] = field(default_factory=list)
    uncovered_day_count: int = 0
    require_weekly_step: bool = False
    has_account_seed_data: bool = False
