from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

from ...domain import AvailabilityOverride
from ..supabase import SupabaseGateway, map_rows, rows, run_query


@dataclass(slots=True)
class OverrideRepository:
    gateway: SupabaseGateway
    table_name: str

    def list_for_event(self, user_id: str, event_id: str) -> List[AvailabilityOverride]:
        response = run_query(
            self.gateway.table(self.table_name)
            .select("*")
            .eq("user_id", user_id)
            .eq("event_id", event_id),
            "Loading availability overrides",
        )
        return map_rows(response, AvailabilityOverride.from_record, "Loading availability overrides")

    def upsert_many(self, overrides: Iterable[AvailabilityOverride]) -> int:
        payload = [override.to_record() for override in overrides]
        if not payload:
            return 0
        response = run_query(
            self.gateway.table(self.table_name).upsert(payload, on_conflict="user_id,event_id,event_date_id"),
            "Saving availability overrides",
        )
        return len(rows(response))

    def delete_for_event(self, user_id: str, event_id: str, date_ids: Optional[List[str]] = None) -> int:
        query = (
            self.gateway.table(self.table_name)
            .delete()
            .eq("user_id", user_id)
            .eq("event_id", event_id)
        )
        if date_ids is not None:
            if not date_ids:
                return 0
            query = query.in_("event_date_id", date_ids)
        response = run_query(query, "Removing availability overrides")
        return len(rows(response))
