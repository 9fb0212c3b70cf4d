from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, TypeVar

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client

from ..config.settings import SupabaseSettings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DataSourceError(RuntimeError):
    """Raised when a Supabase read or write fails."""


class SupabaseNotInitializedError(DataSourceError):
    """Raised when accessing the Supabase client before it can be created."""


def run_query(query: Any, action: str) -> Any:
    """Execute a PostgREST query, translating client errors into ``DataSourceError``."""

    try:
        return query.execute()
    except APIError as exc:
        raise DataSourceError(f"{action} failed: {exc.message or exc}") from exc
    except httpx.HTTPError as exc:
        raise DataSourceError(f"{action} failed: {exc}") from exc


def rows(response: Any) -> list[dict]:
    if response is None:
        return []
    return list(getattr(response, "data", None) or [])


def map_rows(response: Any, factory: Callable[[dict], T], action: str) -> List[T]:
    """Build domain objects from ``response``; a malformed row surfaces as ``DataSourceError``."""

    try:
        return [factory(record) for record in rows(response)]
    except (KeyError, TypeError, ValueError) as exc:
        raise DataSourceError(f"{action} returned an unreadable row: {exc}") from exc


@dataclass
class SupabaseGateway:
    """Thin wrapper around the Supabase Python client."""

    settings: SupabaseSettings
    _client: Optional[Client] = None

    def ensure_client(self) -> Client:
        if self._client is not None:
            return self._client
        if not self.settings.is_configured:
            missing = ", ".join(self.settings.missing_env_vars)
            raise SupabaseNotInitializedError(f"Supabase settings are incomplete; set {missing}.")
        self._client = create_client(self.settings.url, self.settings.key)
        return self._client

    def table(self, name: str):
        return self.ensure_client().table(name)

    def user_id_for_token(self, access_token: str) -> Optional[str]:
        """Resolve a Supabase access token to its user id, or None if it is not valid."""

        try:
            response = self.ensure_client().auth.get_user(access_token)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Could not resolve access token: %s", exc)
            return None
        user = getattr(response, "user", None)
        identifier = getattr(user, "id", None)
        return str(identifier) if identifier else None
