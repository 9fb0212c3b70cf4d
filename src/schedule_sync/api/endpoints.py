from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from ..domain import BlockSource, EventDate
from ..domain.clock import parse_wall_clock
from .models import EventDateInput
from .registry import register_api
from .serializers import serialize_block, serialize_preview, serialize_schedule_context, serialize_template
from .state import api_state


def _parse_instant(value: Optional[str], name: str) -> Optional[datetime]:
    if value is None:
        return None
    try:
        return parse_wall_clock(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an ISO date or timestamp: {value}") from exc


def _event_dates(event_id: str, event_dates: List[Dict[str, Any]]) -> List[EventDate]:
    return [EventDateInput.model_validate(item).to_domain(event_id) for item in event_dates]


@register_api(
    "list_schedule_templates",
    description="List the user's weekly templates, split into manual and learned groups.",
    category="declarations",
)
def list_schedule_templates(user_id: Optional[str]) -> Dict[str, List[dict]]:
    groups = api_state.declarations.list_templates(user_id)
    return {name: [serialize_template(item) for item in items] for name, items in groups.items()}


@register_api(
    "upsert_manual_template",
    description="Create or update a manual weekly template (weekday 0 = Sunday).",
    category="declarations",
    writes=True,
)
def upsert_manual_template(
    user_id: Optional[str],
    weekday: int,
    start_time: str,
    end_time: str,
    availability: bool,
) -> Dict[str, Any]:
    result = api_state.declarations.upsert_manual_template(
        user_id,
        weekday=weekday,
        start_time=start_time,
        end_time=end_time,
        availability=availability,
    )
    return result.to_dict()


@register_api(
    "save_weekly_templates",
    description="Merge weekday selections into the user's manual weekly templates.",
    category="declarations",
    writes=True,
)
def save_weekly_templates(user_id: Optional[str], templates: List[Dict[str, Any]]) -> Dict[str, Any]:
    return api_state.declarations.save_weekly_templates(user_id, templates).to_dict()


@register_api(
    "remove_template",
    description="Remove one of the user's weekly templates.",
    category="declarations",
    writes=True,
)
def remove_template(user_id: Optional[str], template_id: str) -> Dict[str, Any]:
    return api_state.declarations.remove_template(user_id, template_id).to_dict()


@register_api(
    "list_schedule_blocks",
    description="List the user's schedule blocks, optionally limited to a date window.",
    category="declarations",
)
def list_schedule_blocks(
    user_id: Optional[str],
    window_start: Optional[str] = None,
    window_end: Optional[str] = None,
) -> Dict[str, List[dict]]:
    blocks = api_state.declarations.list_blocks(
        user_id,
        window_start=_parse_instant(window_start, "window_start"),
        window_end=_parse_instant(window_end, "window_end"),
    )
    return {"blocks": [serialize_block(block) for block in blocks]}


@register_api(
    "upsert_schedule_block",
    description="Save an absolute schedule block; a same-day 00:00 end means the following midnight.",
    category="declarations",
    writes=True,
)
def upsert_schedule_block(
    user_id: Optional[str],
    start_time: str,
    end_time: str,
    availability: bool,
    source: str = BlockSource.MANUAL.value,
    event_id: Optional[str] = None,
    replace_block_id: Optional[str] = None,
) -> Dict[str, Any]:
    result = api_state.declarations.upsert_block(
        user_id,
        start_time=start_time,
        end_time=end_time,
        availability=availability,
        source=source,
        event_id=event_id,
        replace_block_id=replace_block_id,
    )
    return result.to_dict()


@register_api(
    "remove_schedule_block",
    description="Remove one of the user's schedule blocks.",
    category="declarations",
    writes=True,
)
def remove_schedule_block(user_id: Optional[str], block_id: str) -> Dict[str, Any]:
    return api_state.declarations.remove_block(user_id, block_id).to_dict()


@register_api(
    "record_event_answers",
    description="Copy an answer given on an event into the user's schedule blocks.",
    category="declarations",
    writes=True,
)
def record_event_answers(
    user_id: Optional[str],
    event_id: str,
    event_dates: List[Dict[str, Any]],
    selected_date_ids: List[str],
) -> Dict[str, Any]:
    result = api_state.declarations.record_event_answers(
        user_id,
        event_id=event_id,
        event_dates=_event_dates(event_id, event_dates),
        selected_date_ids=selected_date_ids,
    )
    return result.to_dict()


@register_api(
    "preview_sync",
    description="Show which answered events would change under the user's current schedule.",
    category="sync",
)
def preview_sync(user_id: Optional[str], exclude_event_id: Optional[str] = None) -> Dict[str, Any]:
    preview = api_state.preview.preview(user_id, exclude_event_id=exclude_event_id)
    return serialize_preview(preview)


@register_api(
    "apply_sync",
    description="Write the previewed answer changes for one event.",
    category="sync",
    writes=True,
)
def apply_sync(
    user_id: Optional[str],
    event_id: str,
    date_ids: Optional[List[str]] = None,
) -> Dict[str, Any]:
    return api_state.apply.apply(user_id, event_id, date_ids=date_ids).to_dict()


@register_api(
    "save_overrides",
    description="Replace the set of answers on an event that auto-fill must not change.",
    category="sync",
    writes=True,
)
def save_overrides(
    user_id: Optional[str],
    event_id: str,
    protected_date_ids: List[str],
    selected_date_ids: Optional[List[str]] = None,
) -> Dict[str, Any]:
    result = api_state.overrides.save(
        user_id,
        event_id,
        protected_date_ids,
        selected_date_ids=selected_date_ids,
    )
    return result.to_dict()


@register_api(
    "autofill_context",
    description="Predict answers for the candidate dates of an event the user is answering.",
    category="sync",
)
def autofill_context(
    user_id: Optional[str],
    event_id: str,
    event_dates: List[Dict[str, Any]],
) -> Dict[str, Any]:
    context = api_state.autofill.context_for_event(user_id, event_id, _event_dates(event_id, event_dates))
    return serialize_schedule_context(context)
