from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set

from ..data import DataSourceError
from ..domain import EventDate, ScheduleContext, TimeRange, predict
from ..domain.clock import date_key
from .context import ServiceContext
from .preview import is_locked

logger = logging.getLogger(__name__)


def _slot_key(event_date: EventDate) -> str:
    return f"{event_date.start_time:%H:%M}-{event_date.end_time:%H:%M}"


@dataclass(slots=True)
class AutofillService:
    """Predicts answers for the candidate dates of an event the user is about to answer."""

    context: ServiceContext

    def context_for_event(
        self,
        user_id: Optional[str],
        event_id: str,
        event_dates: Sequence[EventDate],
    ) -> ScheduleContext:
        if not user_id:
            return ScheduleContext()
        if not event_dates:
            return ScheduleContext(is_authenticated=True)
        try:
            return self._build(user_id, event_id, event_dates)
        except DataSourceError:
            logger.exception("Building auto-fill context for event %s failed", event_id)
            return ScheduleContext(is_authenticated=True)

    def _build(self, user_id: str, event_id: str, event_dates: Sequence[EventDate]) -> ScheduleContext:
        window_start = min(event_date.start_time for event_date in event_dates)
        window_end = max(event_date.end_time for event_date in event_dates)
        blocks = self.context.blocks.list_for_user(user_id, window_start=window_start, window_end=window_end)
        templates = self.context.matching_templates(user_id)

        links = self.context.links.list_for_user(user_id)
        has_sync_targets = any(link.event_id != event_id and link.participant_id for link in links)
        busy_dates = self.context.events.finalized_dates(link.event_id for link in links)
        override_ids = [item.event_date_id for item in self.context.overrides.list_for_event(user_id, event_id)]

        locked_ids = [event_date.id for event_date in event_dates if is_locked(event_date, event_id, busy_dates)]
        locked = set(locked_ids)
        block_decided: Set[str] = set(locked_ids)
        autofill: Dict[str, bool] = {}
        daily_autofill: List[str] = []

        for event_date in event_dates:
            target = TimeRange(start=event_date.start_time, end=event_date.end_time)
            from_blocks = predict(target, blocks, [])
            if from_blocks is not None:
                block_decided.add(event_date.id)
            if event_date.id in locked:
                continue
            result = predict(target, blocks, templates)
            if result is None:
                continue
            autofill[event_date.id] = result
            if from_blocks is not None:
                daily_autofill.append(event_date.id)

        covered_ids = [event_date.id for event_date in event_dates if event_date.id in locked or event_date.id in autofill]
        uncovered = [event_date for event_date in event_dates if event_date.id not in block_decided]
        uncovered_keys = sorted({date_key(event_date.start_time) for event_date in uncovered})
        slot_count = len({_slot_key(event_date) for event_date in event_dates})

        return ScheduleContext(
            is_authenticated=True,
            has_sync_target_events=has_sync_targets,
            locked_date_ids=locked_ids,
            autofill=autofill,
            daily_autofill_date_ids=daily_autofill,
            override_date_ids=override_ids,
            covered_date_ids=covered_ids,
            uncovered_date_keys=uncovered_keys,
            uncovered_day_count=len(uncovered_keys),
            require_weekly_step=len(uncovered) > 7 * slot_count,
            has_account_seed_data=bool(blocks) or bool(templates) or bool(locked_ids),
        )
