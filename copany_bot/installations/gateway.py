"""Thin async wrapper over the Supabase PostgREST table API.

Exposes the six row operations the store needs and nothing else:
insert, get-by-field, update-by-field, delete-by-field, select where an
array column contains a value, and select where a column is in a list.

Every failure (PostgREST error response or transport error) is raised as
`PersistenceError` so callers have one exception type to handle.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

import httpx
from postgrest.exceptions import APIError
from supabase import AsyncClient, acreate_client

from copany_bot.core.config import ConfigurationError, Settings

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """Raised when a Supabase call fails.

    Carries the operation and table so log lines are self-describing.
    """

    def __init__(self, operation: str, table: str, detail: str):
        self.operation = operation
        self.table = table
        self.detail = detail
        super().__init__(f"{operation} on {table} failed: {detail}")


class SupabaseGateway:
    def __init__(self, client: AsyncClient):
        self._client = client

    async def _execute(self, operation: str, table: str, query) -> list[dict[str, Any]]:
        try:
            response = await query.execute()
        except APIError as exc:
            raise PersistenceError(operation, table, exc.message or str(exc)) from exc
        except httpx.HTTPError as exc:
            raise PersistenceError(operation, table, str(exc)) from exc
        return list(response.data or [])

    async def insert(self, table: str, record: dict[str, Any]) -> dict[str, Any]:
        rows = await self._execute(
            "insert", table, self._client.table(table).insert(record)
        )
        return rows[0] if rows else record

    async def get_one(self, table: str, field: str, value: Any) -> Optional[dict[str, Any]]:
        rows = await self._execute(
            "select",
            table,
            self._client.table(table).select("*").eq(field, value).limit(1),
        )
        return rows[0] if rows else None

    async def update(
        self, table: str, field: str, value: Any, changes: dict[str, Any]
    ) -> list[dict[str, Any]]:
        return await self._execute(
            "update", table, self._client.table(table).update(changes).eq(field, value)
        )

    async def delete(self, table: str, field: str, value: Any) -> list[dict[str, Any]]:
        return await self._execute(
            "delete", table, self._client.table(table).delete().eq(field, value)
        )

    async def select_containing(
        self, table: str, field: str, value: Any, columns: str = "*"
    ) -> list[dict[str, Any]]:
        """Rows whose array column `field` contains `value`."""
        return await self._execute(
            "select",
            table,
            self._client.table(table).select(columns).contains(field, [value]),
        )

    async def select_in(
        self, table: str, field: str, values: Sequence[Any], columns: str = "*"
    ) -> list[dict[str, Any]]:
        if not values:
            return []
        return await self._execute(
            "select",
            table,
            self._client.table(table).select(columns).in_(field, list(values)),
        )


async def create_gateway(settings: Settings) -> SupabaseGateway:
    """Build the process-wide gateway from settings.

    Raises:
        ConfigurationError: If SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY is empty.
    """
    if not settings.supabase_configured:
        raise ConfigurationError(
            "Missing Supabase settings: SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY"
        )
    client = await acreate_client(settings.supabase_url, settings.supabase_service_role_key)
    logger.info("Supabase client created for %s", settings.supabase_url)
    return SupabaseGateway(client)
