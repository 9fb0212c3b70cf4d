from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class SupabaseSettings:
    url: Optional[str]
    key: Optional[str]

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.key)

    @property
    def missing_env_vars(self) -> list[str]:
        missing = []
        if not self.url:
            missing.append("SUPABASE_URL")
        if not self.key:
            missing.append("SUPABASE_SERVICE_ROLE_KEY")
        return missing


@dataclass(frozen=True)
class StorageSettings:
    templates_table: str = "user_schedule_templates"
    blocks_table: str = "user_schedule_blocks"
    overrides_table: str = "user_event_availability_overrides"
    links_table: str = "user_event_links"
    events_table: str = "events"
    event_dates_table: str = "event_dates"
    finalized_dates_table: str = "finalized_dates"
    answers_table: str = "availabilities"


@dataclass(frozen=True)
class SyncSettings:
    block_slot_minutes: int = 60
    use_learned_templates: bool = False


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"
    app_name: str = "Schedule Sync"
    app_author: str = "ScheduleSync"


@dataclass(frozen=True)
class AppSettings:
    supabase: SupabaseSettings
    storage: StorageSettings
    sync: SyncSettings
    logging: LoggingSettings


def _bool_from_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    supabase = SupabaseSettings(
        url=os.getenv("SUPABASE_URL"),
        key=os.getenv("SUPABASE_SERVICE_ROLE_KEY") or os.getenv("SUPABASE_ANON_KEY"),
    )

    storage = StorageSettings(
        templates_table=os.getenv("SUPABASE_TEMPLATES_TABLE", "user_schedule_templates"),
        blocks_table=os.getenv("SUPABASE_BLOCKS_TABLE", "user_schedule_blocks"),
        overrides_table=os.getenv("SUPABASE_OVERRIDES_TABLE", "user_event_availability_overrides"),
        links_table=os.getenv("SUPABASE_LINKS_TABLE", "user_event_links"),
        events_table=os.getenv("SUPABASE_EVENTS_TABLE", "events"),
        event_dates_table=os.getenv("SUPABASE_EVENT_DATES_TABLE", "event_dates"),
        finalized_dates_table=os.getenv("SUPABASE_FINALIZED_DATES_TABLE", "finalized_dates"),
        answers_table=os.getenv("SUPABASE_ANSWERS_TABLE", "availabilities"),
    )

    sync = SyncSettings(
        block_slot_minutes=max(0, _int_from_env("SYNC_BLOCK_SLOT_MINUTES", 60)),
        use_learned_templates=_bool_from_env("SYNC_USE_LEARNED_TEMPLATES", False),
    )

    logging_settings = LoggingSettings(
        level=os.getenv("SCHEDULE_SYNC_LOG_LEVEL", "INFO").upper(),
        app_name=os.getenv("SCHEDULE_SYNC_APP_NAME", "Schedule Sync"),
        app_author=os.getenv("SCHEDULE_SYNC_APP_AUTHOR", "ScheduleSync"),
    )

    return AppSettings(supabase=supabase, storage=storage, sync=sync, logging=logging_settings)
