"""Domain models and matching rules for availability sync."""

from __future__ import annotations

from .enums import BlockSource, TemplateSource
from .matching import ScheduleValidationError, TimeRange, predict
from .models import (
    ActionResult,
    AvailabilityOverride,
    EventDate,
    EventDateAnswer,
    EventLink,
    EventSummary,
    ScheduleBlock,
    ScheduleContext,
    ScheduleTemplate,
    SyncChangeCounts,
    SyncDateRow,
    SyncDiff,
    SyncPreview,
)

__all__ = [
    "ActionResult",
    "AvailabilityOverride",
    "BlockSource",
    "EventDate",
    "EventDateAnswer",
    "EventLink",
    "EventSummary",
    "ScheduleBlock",
    "ScheduleContext",
    "ScheduleTemplate",
    "ScheduleValidationError",
    "SyncChangeCounts",
    "SyncDateRow",
    "SyncDiff",
    "SyncPreview",
    "TemplateSource",
    "TimeRange",
    "predict",
]
