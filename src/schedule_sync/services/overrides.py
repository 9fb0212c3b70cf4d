from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Set

from ..data import DataSourceError
from ..domain import ActionResult, AvailabilityOverride
from .context import SIGN_IN_MESSAGE, ServiceContext

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class OverrideService:
    context: ServiceContext

    def save(
        self,
        user_id: Optional[str],
        event_id: str,
        protected_date_ids: Iterable[str],
        *,
        selected_date_ids: Optional[Iterable[str]] = None,
    ) -> ActionResult:
        """Replace the set of protected dates of ``event_id`` with ``protected_date_ids``.

        Each override remembers the answer it protects: membership in
        ``selected_date_ids`` when given, otherwise the stored answer.
        """

        if not user_id:
            return ActionResult(success=False, message=SIGN_IN_MESSAGE)
        protected = list(dict.fromkeys(protected_date_ids))

        try:
            if not protected:
                self.context.overrides.delete_for_event(user_id, event_id)
                return ActionResult(success=True)

            selected = (
                set(selected_date_ids)
                if selected_date_ids is not None
                else self._stored_selection(user_id, event_id)
            )
            self.context.overrides.upsert_many(
                AvailabilityOverride(
                    user_id=user_id,
                    event_id=event_id,
                    event_date_id=date_id,
                    availability=date_id in selected,
                )
                for date_id in protected
            )

            keep = set(protected)
            stale = [
                override.event_date_id
                for override in self.context.overrides.list_for_event(user_id, event_id)
                if override.event_date_id not in keep
            ]
            if stale:
                self.context.overrides.delete_for_event(user_id, event_id, stale)
        except DataSourceError:
            logger.exception("Saving overrides for event %s failed", event_id)
            return ActionResult(success=False, message="Your protected answers could not be saved.")
        return ActionResult(success=True)

    def _stored_selection(self, user_id: str, event_id: str) -> Set[str]:
        link = self.context.links.fetch(user_id, event_id)
        if link is None or not link.participant_id:
            return set()
        answers = self.context.answers.current_for_participant(link.participant_id)
        return {date_id for date_id, available in answers.items() if available}
