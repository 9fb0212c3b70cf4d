from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from ...domain import ScheduleBlock, ScheduleTemplate, TemplateSource
from ...domain.clock import format_wall_clock
from ..supabase import SupabaseGateway, map_rows, rows, run_query

TEMPLATE_CONFLICT_KEY = "user_id,weekday,start_time,end_time,source"
BLOCK_CONFLICT_KEY = "user_id,start_time,end_time"


@dataclass(slots=True)
class TemplateRepository:
    gateway: SupabaseGateway
    table_name: str

    def list_for_user(self, user_id: str, *, source: Optional[TemplateSource] = None) -> List[ScheduleTemplate]:
        query = (
            self.gateway.table(self.table_name)
            .select("*")
            .eq("user_id", user_id)
        )
        if source is not None:
            query = query.eq("source", source.value)
        response = run_query(query.order("weekday", desc=False), "Loading schedule templates")
        return map_rows(response, ScheduleTemplate.from_record, "Loading schedule templates")

    def upsert_many(self, templates: Iterable[ScheduleTemplate]) -> List[ScheduleTemplate]:
        payload = [template.to_record() for template in templates]
        if not payload:
            return []
        response = run_query(
            self.gateway.table(self.table_name).upsert(payload, on_conflict=TEMPLATE_CONFLICT_KEY),
            "Saving schedule templates",
        )
        return map_rows(response, ScheduleTemplate.from_record, "Saving schedule templates")

    def delete(self, user_id: str, template_id: str) -> bool:
        response = run_query(
            self.gateway.table(self.table_name)
            .delete()
            .eq("id", template_id)
            .eq("user_id", user_id),
            "Removing schedule template",
        )
        return bool(rows(response))

    def delete_many(self, user_id: str, template_ids: List[str], *, source: TemplateSource) -> int:
        if not template_ids:
            return 0
        response = run_query(
            self.gateway.table(self.table_name)
            .delete()
            .eq("user_id", user_id)
            .eq("source", source.value)
            .in_("id", template_ids),
            "Removing stale schedule templates",
        )
        return len(rows(response))


@dataclass(slots=True)
class BlockRepository:
    gateway: SupabaseGateway
    table_name: str

    def list_for_user(
        self,
        user_id: str,
        *,
        window_start: Optional[datetime] = None,
        window_end: Optional[datetime] = None,
    ) -> List[ScheduleBlock]:
        query = (
            self.gateway.table(self.table_name)
            .select("*")
            .eq("user_id", user_id)
        )
        if window_end is not None:
            query = query.lt("start_time", format_wall_clock(window_end))
        if window_start is not None:
            query = query.gt("end_time", format_wall_clock(window_start))
        response = run_query(query.order("start_time", desc=False), "Loading schedule blocks")
        return map_rows(response, ScheduleBlock.from_record, "Loading schedule blocks")

    def upsert_many(self, blocks: Iterable[ScheduleBlock]) -> List[ScheduleBlock]:
        payload = [block.to_record() for block in blocks]
        if not payload:
            return []
        response = run_query(
            self.gateway.table(self.table_name).upsert(payload, on_conflict=BLOCK_CONFLICT_KEY),
            "Saving schedule blocks",
        )
        return map_rows(response, ScheduleBlock.from_record, "Saving schedule blocks")

    def delete(self, user_id: str, block_id: str) -> bool:
        response = run_query(
            self.gateway.table(self.table_name)
            .delete()
            .eq("id", block_id)
            .eq("user_id", user_id),
            "Removing schedule block",
        )
        return bool(rows(response))
