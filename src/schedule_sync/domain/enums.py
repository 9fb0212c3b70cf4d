from __future__ import annotations

from enum import Enum


class TemplateSource(str, Enum):
    MANUAL = "manual"
    LEARNED = "learned"


class BlockSource(str, Enum):
    MANUAL = "manual"
    EVENT = "event"
