from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from ..config import AppSettings, get_settings
from ..data import SupabaseGateway
from ..data.repositories import (
    AnswerRepository,
    BlockRepository,
    EventLinkRepository,
    EventRepository,
    OverrideRepository,
    TemplateRepository,
)
from ..domain import ScheduleTemplate, TemplateSource

SIGN_IN_MESSAGE = "Please sign in to continue."


@dataclass(slots=True)
class ServiceContext:
    """Aggregate root for services to share settings, the gateway and repositories."""

    settings: AppSettings = field(default_factory=get_settings)
    gateway: Optional[SupabaseGateway] = None
    templates: TemplateRepository = field(init=False)
    blocks: BlockRepository = field(init=False)
    overrides: OverrideRepository = field(init=False)
    links: EventLinkRepository = field(init=False)
    events: EventRepository = field(init=False)
    answers: AnswerRepository = field(init=False)

    def __post_init__(self) -> None:
        if self.gateway is None:
            self.gateway = SupabaseGateway(self.settings.supabase)
        storage = self.settings.storage
        self.templates = TemplateRepository(gateway=self.gateway, table_name=storage.templates_table)
        self.blocks = BlockRepository(gateway=self.gateway, table_name=storage.blocks_table)
        self.overrides = OverrideRepository(gateway=self.gateway, table_name=storage.overrides_table)
        self.links = EventLinkRepository(gateway=self.gateway, table_name=storage.links_table)
        self.events = EventRepository(
            gateway=self.gateway,
            events_table=storage.events_table,
            dates_table=storage.event_dates_table,
            finalized_table=storage.finalized_dates_table,
        )
        self.answers = AnswerRepository(gateway=self.gateway, table_name=storage.answers_table)

    def matching_templates(self, user_id: str) -> List[ScheduleTemplate]:
        """Templates that feed auto-fill; learned rows only when enabled in settings."""

        if self.settings.sync.use_learned_templates:
            return self.templates.list_for_user(user_id)
        return self.templates.list_for_user(user_id, source=TemplateSource.MANUAL)
