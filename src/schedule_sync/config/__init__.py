"""Configuration models and helpers."""

from __future__ import annotations

from .settings import (
    AppSettings,
    LoggingSettings,
    StorageSettings,
    SupabaseSettings,
    SyncSettings,
    get_settings,
)

__all__ = [
    "AppSettings",
    "LoggingSettings",
    "StorageSettings",
    "SupabaseSettings",
    "SyncSettings",
    "get_settings",
]
