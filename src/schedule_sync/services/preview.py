from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

from ..data import DataSourceError
from ..domain import (
    EventDate,
    EventLink,
    EventSummary,
    ScheduleBlock,
    ScheduleTemplate,
    SyncChangeCounts,
    SyncDateRow,
    SyncDiff,
    SyncPreview,
    TimeRange,
    predict,
)
from ..domain.matching import overlaps
from .context import SIGN_IN_MESSAGE, ServiceContext

logger = logging.getLogger(__name__)

PREVIEW_FAILED_MESSAGE = "Your linked events could not be checked. Reload to try again."


def is_locked(event_date: EventDate, event_id: str, busy_dates: Iterable[EventDate]) -> bool:
    """True when ``event_date`` overlaps a finalized date of another event."""

    target = TimeRange(start=event_date.start_time, end=event_date.end_time)
    return any(
        busy.event_id != event_id and overlaps(target, TimeRange(start=busy.start_time, end=busy.end_time))
        for busy in busy_dates
    )


def desired_availability(
    event_date: EventDate,
    event_id: str,
    *,
    blocks: Sequence[ScheduleBlock],
    templates: Sequence[ScheduleTemplate],
    busy_dates: Sequence[EventDate],
) -> Optional[bool]:
    if is_locked(event_date, event_id, busy_dates):
        return False
    return predict(TimeRange(start=event_date.start_time, end=event_date.end_time), blocks, templates)


@dataclass(slots=True)
class SyncPreviewService:
    """Compares stored answers with what the user's declarations now imply."""

    context: ServiceContext

    def preview(self, user_id: Optional[str], *, exclude_event_id: Optional[str] = None) -> SyncPreview:
        if not user_id:
            return SyncPreview(failed=True, message=SIGN_IN_MESSAGE)
        try:
            diffs = self.build_diffs(user_id, exclude_event_id=exclude_event_id)
        except DataSourceError:
            logger.exception("Building sync preview failed for user %s", user_id)
            return SyncPreview(failed=True, message=PREVIEW_FAILED_MESSAGE)
        return SyncPreview(events=[diff for diff in diffs if diff.has_changes])

    def build_diffs(
        self,
        user_id: str,
        *,
        exclude_event_id: Optional[str] = None,
        only_event_id: Optional[str] = None,
        include_finalized: bool = False,
    ) -> List[SyncDiff]:
        """Diff every answered event of ``user_id``; raises ``DataSourceError`` on read failures."""

        links = self.context.links.list_for_user(user_id)
        targets = [
            link
            for link in links
            if link.participant_id
            and link.event_id != exclude_event_id
            and (only_event_id is None or link.event_id == only_event_id)
        ]
        if not targets:
            return []

        events = self.context.events.fetch_many(link.event_id for link in targets)
        targets = [
            link
            for link in targets
            if link.event_id in events and (include_finalized or not events[link.event_id].is_finalized)
        ]
        if not targets:
            return []

        blocks = self.context.blocks.list_for_user(user_id)
        templates = self.context.matching_templates(user_id)
        busy_dates = self.context.events.finalized_dates(link.event_id for link in links)

        diffs = [
            self._diff_for_event(
                user_id,
                link,
                events[link.event_id],
                blocks=blocks,
                templates=templates,
                busy_dates=busy_dates,
            )
            for link in targets
        ]
        return sorted(diffs, key=lambda diff: (diff.title.casefold(), diff.event_id))

    def _diff_for_event(
        self,
        user_id: str,
        link: EventLink,
        event: EventSummary,
        *,
        blocks: Sequence[ScheduleBlock],
        templates: Sequence[ScheduleTemplate],
        busy_dates: Sequence[EventDate],
    ) -> SyncDiff:
        participant_id = str(link.participant_id)
        event_dates = self.context.events.list_dates(event.id)
        protected = {override.event_date_id for override in self.context.overrides.list_for_event(user_id, event.id)}
        current: Dict[str, bool] = self.context.answers.current_for_participant(participant_id)

        rows: List[SyncDateRow] = []
        for event_date in event_dates:
            current_value = current.get(event_date.id, False)
            desired = desired_availability(
                event_date, event.id, blocks=blocks, templates=templates, busy_dates=busy_dates
            )
            is_protected = event_date.id in protected
            rows.append(
                SyncDateRow(
                    event_date_id=event_date.id,
                    start_time=event_date.start_time,
                    end_time=event_date.end_time,
                    current_availability=current_value,
                    desired_availability=desired,
                    will_change=desired is not None and not is_protected and desired != current_value,
                    is_protected=is_protected,
                )
            )

        return SyncDiff(
            event_id=event.id,
            title=event.title,
            participant_id=participant_id,
            public_token=event.public_token,
            is_finalized=event.is_finalized,
            dates=rows,
            changes=SyncChangeCounts.from_rows(rows),
        )
