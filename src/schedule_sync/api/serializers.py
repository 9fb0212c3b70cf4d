from __future__ import annotations

from typing import Any, Dict

from ..domain import ScheduleBlock, ScheduleContext, ScheduleTemplate, SyncPreview
from .models import BlockPayload, ScheduleContextPayload, SyncPreviewPayload, TemplatePayload


def serialize_template(template: ScheduleTemplate) -> Dict[str, Any]:
    return TemplatePayload.from_domain(template).model_dump()


def serialize_block(block: ScheduleBlock) -> Dict[str, Any]:
    return BlockPayload.from_domain(block).model_dump()


def serialize_preview(preview: SyncPreview) -> Dict[str, Any]:
    return SyncPreviewPayload.from_domain(preview).model_dump()


def serialize_schedule_context(context: ScheduleContext) -> Dict[str, Any]:
    return ScheduleContextPayload.from_domain(context).model_dump()
