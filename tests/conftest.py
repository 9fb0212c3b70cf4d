from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Tuple

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT / "src") not in sys.path:
    sys.path.insert(0, str(ROOT / "src"))
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from schedule_sync.config import AppSettings, LoggingSettings, StorageSettings, SupabaseSettings, SyncSettings  # noqa: E402
from schedule_sync.data import SupabaseGateway  # noqa: E402
from schedule_sync.domain.clock import format_wall_clock, parse_wall_clock  # noqa: E402
from schedule_sync.services import ServiceContext  # noqa: E402
from tests.fakes import FakeSupabase  # noqa: E402

USER = "user-1"
OTHER_USER = "user-2"

# 2026-10-19 is a Monday (weekday 1 with Sunday as 0).
MONDAY = "2026-10-19"
TUESDAY = "2026-10-20"


def stamp(value: str) -> str:
    return format_wall_clock(parse_wall_clock(value))


@dataclass
class Seeder:
    db: FakeSupabase
    storage: StorageSettings

    def event(
        self,
        event_id: str,
        title: str,
        dates: Iterable[Tuple[str, str, str]],
        *,
        finalized: bool = False,
        finalized_date_id: str | None = None,
    ) -> None:
        self.db.rows(self.storage.events_table).append(
            {"id": event_id, "title": title, "public_token": f"tok-{event_id}", "is_finalized": finalized}
        )
        for date_id, start, end in dates:
            self.db.rows(self.storage.event_dates_table).append(
                {"id": date_id, "event_id": event_id, "start_time": stamp(start), "end_time": stamp(end)}
            )
        if finalized_date_id:
            self.db.rows(self.storage.finalized_dates_table).append(
                {"event_id": event_id, "event_date_id": finalized_date_id}
            )

    def link(self, user_id: str, event_id: str, participant_id: str | None) -> None:
        self.db.rows(self.storage.links_table).append(
            {"user_id": user_id, "event_id": event_id, "participant_id": participant_id}
        )

    def answer(self, participant_id: str, event_id: str, date_id: str, availability: bool) -> None:
        self.db.rows(self.storage.answers_table).append(
            {
                "participant_id": participant_id,
                "event_id": event_id,
                "event_date_id": date_id,
                "availability": availability,
            }
        )

    def block(self, user_id: str, start: str, end: str, availability: bool, *, source: str = "manual") -> None:
        self.db.rows(self.storage.blocks_table).append(
            {
                "id": f"block-{len(self.db.rows(self.storage.blocks_table)) + 1}",
                "user_id": user_id,
                "start_time": stamp(start),
                "end_time": stamp(end),
                "availability": availability,
                "source": source,
                "event_id": None,
            }
        )

    def template(
        self,
        user_id: str,
        weekday: int,
        start: str,
        end: str,
        availability: bool,
        *,
        source: str = "manual",
        sample_count: int = 1,
    ) -> None:
        self.db.rows(self.storage.templates_table).append(
            {
                "id": f"tpl-{len(self.db.rows(self.storage.templates_table)) + 1}",
                "user_id": user_id,
                "weekday": weekday,
                "start_time": start,
                "end_time": end,
                "availability": availability,
                "source": source,
                "sample_count": sample_count,
            }
        )

    def override(self, user_id: str, event_id: str, date_id: str, availability: bool = True) -> None:
        self.db.rows(self.storage.overrides_table).append(
            {
                "user_id": user_id,
                "event_id": event_id,
                "event_date_id": date_id,
                "availability": availability,
                "reason": "conflict_override",
            }
        )


def make_settings(**sync_options) -> AppSettings:
    return AppSettings(
        supabase=SupabaseSettings(url=None, key=None),
        storage=StorageSettings(),
        sync=SyncSettings(**sync_options),
        logging=LoggingSettings(),
    )


@pytest.fixture
def db() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def settings() -> AppSettings:
    return make_settings()


@pytest.fixture
def context(db: FakeSupabase, settings: AppSettings) -> ServiceContext:
    gateway = SupabaseGateway(settings.supabase, _client=db)
    return ServiceContext(settings=settings, gateway=gateway)


@pytest.fixture
def seed(db: FakeSupabase, settings: AppSettings) -> Seeder:
    return Seeder(db=db, storage=settings.storage)


@pytest.fixture
def unconfigured_context(settings: AppSettings) -> ServiceContext:
    return ServiceContext(settings=settings, gateway=SupabaseGateway(settings.supabase))
