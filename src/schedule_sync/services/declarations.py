from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from ..data import DataSourceError
from ..domain import (
    ActionResult,
    BlockSource,
    EventDate,
    ScheduleBlock,
    ScheduleTemplate,
    ScheduleValidationError,
    TemplateSource,
    TimeRange,
)
from ..domain.matching import normalize_block_range, split_range
from ..domain.weekly import WeeklyRow, compact_weekly_rows, normalize_weekly_row, validate_weekly_row
from .context import SIGN_IN_MESSAGE, ServiceContext

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DeclarationService:
    """Validated reads and writes of a user's weekly templates and schedule blocks."""

    context: ServiceContext

    # Templates -----------------------------------------------------------

    def list_templates(self, user_id: Optional[str]) -> Dict[str, List[ScheduleTemplate]]:
        if not user_id:
            return {"manual": [], "learned": []}
        templates = self.context.templates.list_for_user(user_id)
        return {
            "manual": [item for item in templates if item.source is TemplateSource.MANUAL],
            "learned": [item for item in templates if item.source is TemplateSource.LEARNED],
        }

    def upsert_manual_template(
        self,
        user_id: Optional[str],
        *,
        weekday: int,
        start_time: str,
        end_time: str,
        availability: bool,
    ) -> ActionResult:
        if not user_id:
            return ActionResult(success=False, message=SIGN_IN_MESSAGE)
        try:
            row = validate_weekly_row(weekday, start_time, end_time, availability)
        except ScheduleValidationError as exc:
            return ActionResult(success=False, message=str(exc))

        try:
            self.context.templates.upsert_many([self._template_from_row(user_id, row)])
        except DataSourceError:
            logger.exception("Saving template failed for user %s", user_id)
            return ActionResult(success=False, message="The weekly schedule could not be saved.")
        return ActionResult(success=True)

    def save_weekly_templates(self, user_id: Optional[str], rows: Iterable[Mapping[str, Any]]) -> ActionResult:
        """Merge a batch of weekday selections into the user's manual templates."""

        if not user_id:
            return ActionResult(success=False, message=SIGN_IN_MESSAGE, updated_count=0)
        requested = list(rows)
        if not requested:
            return ActionResult(success=False, message="There is nothing to save.", updated_count=0)

        incoming = [
            row
            for row in (
                normalize_weekly_row(
                    item.get("weekday"),
                    item.get("start_time"),
                    item.get("end_time"),
                    item.get("availability"),
                )
                for item in requested
            )
            if row is not None
        ]
        if not incoming:
            return ActionResult(success=False, message="The weekly selections are not valid.", updated_count=0)

        try:
            existing = self.context.templates.list_for_user(user_id, source=TemplateSource.MANUAL)
        except DataSourceError:
            logger.exception("Loading manual templates failed for user %s", user_id)
            return ActionResult(
                success=False,
                message="The weekly schedule could not be loaded. Please try again later.",
                updated_count=0,
            )

        existing_rows = {
            template.id: normalize_weekly_row(
                template.weekday, template.start_time, template.end_time, template.availability
            )
            for template in existing
        }
        compacted = compact_weekly_rows([row for row in existing_rows.values() if row is not None], incoming)
        if not compacted:
            return ActionResult(success=False, message="The weekly selections are not valid.", updated_count=0)

        try:
            self.context.templates.upsert_many(self._template_from_row(user_id, row) for row in compacted)
        except DataSourceError:
            logger.exception("Saving weekly templates failed for user %s", user_id)
            return ActionResult(
                success=False,
                message="The weekly schedule could not be saved. Reload the page and try again.",
                updated_count=0,
            )

        keep = {row.key for row in compacted}
        stale_ids = [
            template_id
            for template_id, row in existing_rows.items()
            if template_id and (row is None or row.key not in keep)
        ]
        try:
            self.context.templates.delete_many(user_id, stale_ids, source=TemplateSource.MANUAL)
        except DataSourceError:
            logger.exception("Removing stale templates failed for user %s", user_id)
            return ActionResult(
                success=True,
                message="The weekly schedule was saved, but some old entries could not be cleaned up. Reload the page later.",
                updated_count=len(compacted),
            )
        return ActionResult(success=True, updated_count=len(compacted))

    def remove_template(self, user_id: Optional[str], template_id: str) -> ActionResult:
        if not user_id:
            return ActionResult(success=False, message=SIGN_IN_MESSAGE)
        try:
            removed = self.context.templates.delete(user_id, template_id)
        except DataSourceError:
            logger.exception("Removing template %s failed", template_id)
            return ActionResult(success=False)
        if not removed:
            logger.debug("Template %s not found for user %s; nothing removed", template_id, user_id)
        return ActionResult(success=True)

    # Blocks --------------------------------------------------------------

    def list_blocks(
        self,
        user_id: Optional[str],
        *,
        window_start: Optional[datetime] = None,
        window_end: Optional[datetime] = None,
    ) -> List[ScheduleBlock]:
        if not user_id:
            return []
        return self.context.blocks.list_for_user(user_id, window_start=window_start, window_end=window_end)

    def upsert_block(
        self,
        user_id: Optional[str],
        *,
        start_time: Union[str, datetime],
        end_time: Union[str, datetime],
        availability: bool,
        source: Union[BlockSource, str] = BlockSource.MANUAL,
        event_id: Optional[str] = None,
        replace_block_id: Optional[str] = None,
    ) -> ActionResult:
        if not user_id:
            return ActionResult(success=False, message=SIGN_IN_MESSAGE)
        try:
            target = normalize_block_range(start_time, end_time)
            block_source = BlockSource(source)
        except ScheduleValidationError as exc:
            return ActionResult(success=False, message=str(exc))
        except ValueError:
            return ActionResult(success=False, message=f"Unknown block source: {source!r}.")

        blocks = self._blocks_for_range(
            user_id, target, availability=bool(availability), source=block_source, event_id=event_id
        )
        try:
            saved = self.context.blocks.upsert_many(blocks)
        except DataSourceError:
            logger.exception("Saving schedule block failed for user %s", user_id)
            return ActionResult(success=False, message="The schedule block could not be saved.")

        # The replaced row stays untouched until its successor is stored.
        if replace_block_id and replace_block_id not in {block.id for block in saved}:
            try:
                self.context.blocks.delete(user_id, replace_block_id)
            except DataSourceError:
                logger.exception("Removing replaced block %s failed", replace_block_id)
                return ActionResult(
                    success=True,
                    message="The schedule block was saved, but the previous one could not be removed. Reload the page later.",
                )
        return ActionResult(success=True)

    def record_event_answers(
        self,
        user_id: Optional[str],
        *,
        event_id: str,
        event_dates: Iterable[EventDate],
        selected_date_ids: Iterable[str],
    ) -> ActionResult:
        """Copy an answer the user gave on ``event_id`` into event-sourced blocks."""

        if not user_id:
            return ActionResult(success=False, message=SIGN_IN_MESSAGE)
        selected = set(selected_date_ids)
        blocks: List[ScheduleBlock] = []
        for event_date in event_dates:
            target = TimeRange(start=event_date.start_time, end=event_date.end_time)
            blocks.extend(
                self._blocks_for_range(
                    user_id,
                    target,
                    availability=event_date.id in selected,
                    source=BlockSource.EVENT,
                    event_id=event_id,
                )
            )
        if not blocks:
            return ActionResult(success=True, updated_count=0)
        try:
            saved = self.context.blocks.upsert_many(blocks)
        except DataSourceError:
            logger.exception("Recording answers of event %s as blocks failed", event_id)
            return ActionResult(success=False, message="The answers could not be copied to your schedule.")
        return ActionResult(success=True, updated_count=len(saved))

    def remove_block(self, user_id: Optional[str], block_id: str) -> ActionResult:
        if not user_id:
            return ActionResult(success=False, message=SIGN_IN_MESSAGE)
        try:
            self.context.blocks.delete(user_id, block_id)
        except DataSourceError:
            logger.exception("Removing schedule block %s failed", block_id)
            return ActionResult(success=False)
        return ActionResult(success=True)

    # Helpers -------------------------------------------------------------

    @staticmethod
    def _template_from_row(user_id: str, row: WeeklyRow) -> ScheduleTemplate:
        return ScheduleTemplate(
            id=None,
            user_id=user_id,
            weekday=row.weekday,
            start_time=row.start_time,
            end_time=row.end_time,
            availability=row.availability,
            source=TemplateSource.MANUAL,
            sample_count=1,
        )

    def _blocks_for_range(
        self,
        user_id: str,
        target: TimeRange,
        *,
        availability: bool,
        source: BlockSource,
        event_id: Optional[str],
    ) -> List[ScheduleBlock]:
        slot_minutes = self.context.settings.sync.block_slot_minutes
        return [
            ScheduleBlock(
                id=None,
                user_id=user_id,
                start_time=slot.start,
                end_time=slot.end,
                availability=availability,
                source=source,
                event_id=event_id,
            )
            for slot in split_range(target, slot_minutes)
        ]
