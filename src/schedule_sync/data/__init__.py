"""Data access layer."""

from __future__ import annotations

from .supabase import DataSourceError, SupabaseGateway, SupabaseNotInitializedError

__all__ = [
    "DataSourceError",
    "SupabaseGateway",
    "SupabaseNotInitializedError",
]
