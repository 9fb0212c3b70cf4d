from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..domain import (
    EventDate,
    ScheduleBlock,
    ScheduleContext,
    ScheduleTemplate,
    SyncChangeCounts,
    SyncDateRow,
    SyncDiff,
    SyncPreview,
)
from ..domain.clock import parse_wall_clock


class TemplatePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = Field(default=None)
    weekday: int
    start_time: str
    end_time: str
    availability: bool
    source: str
    sample_count: int = Field(default=0)

    @classmethod
    def from_domain(cls, template: ScheduleTemplate) -> "TemplatePayload":
        return cls(
            id=template.id,
            weekday=template.weekday,
            start_time=template.start_time,
            end_time=template.end_time,
            availability=template.availability,
            source=template.source.value,
            sample_count=template.sample_count,
        )


class BlockPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = Field(default=None)
    start_time: str
    end_time: str
    availability: bool
    source: str
    event_id: Optional[str] = Field(default=None)
    updated_at: Optional[str] = Field(default=None)

    @classmethod
    def from_domain(cls, block: ScheduleBlock) -> "BlockPayload":
        return cls(
            id=block.id,
            start_time=_iso(block.start_time),
            end_time=_iso(block.end_time),
            availability=block.availability,
            source=block.source.value,
            event_id=block.event_id,
            updated_at=_iso(block.updated_at),
        )


class SyncDatePayload(BaseModel):
    event_date_id: str
    start_time: str
    end_time: str
    current_availability: bool
    desired_availability: Optional[bool] = Field(default=None)
    will_change: bool
    is_protected: bool

    @classmethod
    def from_domain(cls, row: SyncDateRow) -> "SyncDatePayload":
        return cls(
            event_date_id=row.event_date_id,
            start_time=_iso(row.start_time),
            end_time=_iso(row.end_time),
            current_availability=row.current_availability,
            desired_availability=row.desired_availability,
            will_change=row.will_change,
            is_protected=row.is_protected,
        )


class SyncChangesPayload(BaseModel):
    total: int = 0
    available_to_unavailable: int = 0
    unavailable_to_available: int = 0
    protected: int = 0

    @classmethod
    def from_domain(cls, counts: SyncChangeCounts) -> "SyncChangesPayload":
        return cls(
            total=counts.total,
            available_to_unavailable=counts.available_to_unavailable,
            unavailable_to_available=counts.unavailable_to_available,
            protected=counts.protected,
        )


class SyncDiffPayload(BaseModel):
    event_id: str
    title: str
    public_token: Optional[str] = Field(default=None)
    is_finalized: bool = False
    changes: SyncChangesPayload
    dates: List[SyncDatePayload] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, diff: SyncDiff) -> "SyncDiffPayload":
        return cls(
            event_id=diff.event_id,
            title=diff.title,
            public_token=diff.public_token,
            is_finalized=diff.is_finalized,
            changes=SyncChangesPayload.from_domain(diff.changes),
            dates=[SyncDatePayload.from_domain(row) for row in diff.dates],
        )


class SyncPreviewPayload(BaseModel):
    events: List[SyncDiffPayload] = Field(default_factory=list)
    totals: SyncChangesPayload
    failed: bool = False
    message: Optional[str] = Field(default=None)

    @classmethod
    def from_domain(cls, preview: SyncPreview) -> "SyncPreviewPayload":
        return cls(
            events=[SyncDiffPayload.from_domain(diff) for diff in preview.events],
            totals=SyncChangesPayload.from_domain(preview.totals),
            failed=preview.failed,
            message=preview.message,
        )


class ScheduleContextPayload(BaseModel):
    is_authenticated: bool
    has_sync_target_events: bool
    locked_date_ids: List[str]
    autofill: Dict[str, bool]
    daily_autofill_date_ids: List[str]
    override_date_ids: List[str]
    covered_date_ids: List[str]
    uncovered_date_keys: List[str]
    uncovered_day_count: int
    require_weekly_step: bool
    has_account_seed_data: bool

    @classmethod
    def from_domain(cls, context: ScheduleContext) -> "ScheduleContextPayload":
        return cls(
            is_authenticated=context.is_authenticated,
            has_sync_target_events=context.has_sync_target_events,
            locked_date_ids=list(context.locked_date_ids),
            autofill=dict(context.autofill),
            daily_autofill_date_ids=list(context.daily_autofill_date_ids),
            override_date_ids=list(context.override_date_ids),
            covered_date_ids=list(context.covered_date_ids),
            uncovered_date_keys=list(context.uncovered_date_keys),
            uncovered_day_count=context.uncovered_day_count,
            require_weekly_step=context.require_weekly_step,
            has_account_seed_data=context.has_account_seed_data,
        )


class EventDateInput(BaseModel):
    """Candidate date supplied by the event subsystem."""

    id: str
    start_time: datetime
    end_time: datetime

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _wall_clock(cls, value: object) -> datetime:
        return parse_wall_clock(value)

    def to_domain(self, event_id: Optional[str] = None) -> EventDate:
        return EventDate(id=self.id, event_id=event_id, start_time=self.start_time, end_time=self.end_time)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None
