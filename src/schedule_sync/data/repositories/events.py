from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ...domain import EventDate, EventDateAnswer, EventLink, EventSummary
from ..supabase import SupabaseGateway, map_rows, rows, run_query


def _answer_entry(record: Dict[str, Any]) -> Tuple[str, bool]:
    return str(record["event_date_id"]), bool(record["availability"])


@dataclass(slots=True)
class EventLinkRepository:
    gateway: SupabaseGateway
    table_name: str

    def list_for_user(self, user_id: str) -> List[EventLink]:
        response = run_query(
            self.gateway.table(self.table_name)
            .select("user_id,event_id,participant_id")
            .eq("user_id", user_id),
            "Loading event links",
        )
        return map_rows(response, EventLink.from_record, "Loading event links")

    def fetch(self, user_id: str, event_id: str) -> Optional[EventLink]:
        response = run_query(
            self.gateway.table(self.table_name)
            .select("user_id,event_id,participant_id")
            .eq("user_id", user_id)
            .eq("event_id", event_id)
            .limit(1),
            "Loading event link",
        )
        links = map_rows(response, EventLink.from_record, "Loading event link")
        return links[0] if links else None


@dataclass(slots=True)
class EventRepository:
    gateway: SupabaseGateway
    events_table: str
    dates_table: str
    finalized_table: str

    def fetch_many(self, event_ids: Iterable[str]) -> Dict[str, EventSummary]:
        identifiers = list(dict.fromkeys(event_ids))
        if not identifiers:
            return {}
        response = run_query(
            self.gateway.table(self.events_table)
            .select("id,title,public_token,is_finalized")
            .in_("id", identifiers),
            "Loading events",
        )
        events = map_rows(response, EventSummary.from_record, "Loading events")
        return {event.id: event for event in events}

    def list_dates(self, event_id: str) -> List[EventDate]:
        response = run_query(
            self.gateway.table(self.dates_table)
            .select("id,event_id,start_time,end_time")
            .eq("event_id", event_id)
            .order("start_time", desc=False),
            "Loading event dates",
        )
        return map_rows(response, EventDate.from_record, "Loading event dates")

    def finalized_dates(self, event_ids: Iterable[str]) -> List[EventDate]:
        """Dates the organizers of ``event_ids`` locked in, tagged with their event id."""

        identifiers = list(dict.fromkeys(event_ids))
        if not identifiers:
            return []
        response = run_query(
            self.gateway.table(self.finalized_table)
            .select("event_id,event_date_id")
            .in_("event_id", identifiers),
            "Loading finalized dates",
        )
        date_ids = [str(record["event_date_id"]) for record in rows(response) if record.get("event_date_id")]
        if not date_ids:
            return []
        response = run_query(
            self.gateway.table(self.dates_table)
            .select("id,event_id,start_time,end_time")
            .in_("id", date_ids),
            "Loading finalized date ranges",
        )
        return map_rows(response, EventDate.from_record, "Loading finalized date ranges")


@dataclass(slots=True)
class AnswerRepository:
    gateway: SupabaseGateway
    table_name: str

    def current_for_participant(self, participant_id: str) -> Dict[str, bool]:
        response = run_query(
            self.gateway.table(self.table_name)
            .select("event_date_id,availability")
            .eq("participant_id", participant_id),
            "Loading answers",
        )
        return dict(map_rows(response, _answer_entry, "Loading answers"))

    def upsert_many(self, answers: Iterable[EventDateAnswer]) -> int:
        payload = [answer.to_record() for answer in answers]
        if not payload:
            return 0
        response = run_query(
            self.gateway.table(self.table_name).upsert(payload, on_conflict="participant_id,event_date_id"),
            "Saving answers",
        )
        return len(rows(response))
