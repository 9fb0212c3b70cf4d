"""Supabase repositories for declarations, events, answers and overrides."""

from __future__ import annotations

from .declarations import BlockRepository, TemplateRepository
from .events import AnswerRepository, EventLinkRepository, EventRepository
from .overrides import OverrideRepository

__all__ = [
    "AnswerRepository",
    "BlockRepository",
    "EventLinkRepository",
    "EventRepository",
    "OverrideRepository",
    "TemplateRepository",
]
