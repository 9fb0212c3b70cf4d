from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from ..data import DataSourceError
from ..domain import ActionResult, EventDateAnswer
from .context import SIGN_IN_MESSAGE, ServiceContext
from .preview import SyncPreviewService

logger = logging.getLogger(__name__)

NOT_UPDATED_MESSAGE = "The event was not updated. Reload and try again."


@dataclass(slots=True)
class SyncApplyService:
    """Writes the previewed answer changes of a single event in one batch."""

    context: ServiceContext
    preview: SyncPreviewService = field(init=False)

    def __post_init__(self) -> None:
        self.preview = SyncPreviewService(self.context)

    def apply(
        self,
        user_id: Optional[str],
        event_id: str,
        *,
        date_ids: Optional[Iterable[str]] = None,
    ) -> ActionResult:
        if not user_id:
            return ActionResult(success=False, message=SIGN_IN_MESSAGE, updated_count=0)

        try:
            diffs = self.preview.build_diffs(user_id, only_event_id=event_id, include_finalized=True)
        except DataSourceError:
            logger.exception("Recomputing diff for event %s failed", event_id)
            return ActionResult(success=False, message=NOT_UPDATED_MESSAGE, updated_count=0)

        if not diffs:
            return ActionResult(success=True, message="There are no changes to apply for this event.", updated_count=0)
        diff = diffs[0]
        if diff.is_finalized:
            return ActionResult(
                success=False,
                message="This event has been finalized; its answers can no longer change.",
                updated_count=0,
            )

        changed = diff.changed_rows()
        if date_ids is not None:
            requested = set(date_ids)
            changed = [row for row in changed if row.event_date_id in requested]
        if not changed:
            return ActionResult(success=True, message="There are no changes to apply for this event.", updated_count=0)

        answers = [
            EventDateAnswer(
                participant_id=diff.participant_id,
                event_id=diff.event_id,
                event_date_id=row.event_date_id,
                availability=bool(row.desired_availability),
            )
            for row in changed
        ]
        try:
            written = self.context.answers.upsert_many(answers)
        except DataSourceError:
            logger.exception("Writing synced answers for event %s failed", event_id)
            return ActionResult(success=False, message=NOT_UPDATED_MESSAGE, updated_count=0)

        if written != len(answers):
            logger.error(
                "Partial answer write for event %s: %d of %d rows confirmed", event_id, written, len(answers)
            )
            return ActionResult(success=False, message=NOT_UPDATED_MESSAGE, updated_count=0)

        logger.info("Applied %d synced answers to event %s for user %s", written, event_id, user_id)
        return ActionResult(success=True, message="The event was updated.", updated_count=written)
