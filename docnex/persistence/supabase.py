"""Supabase client.

Implements the DatabaseClient protocol on top of supabase-py's async client,
translating Filter and Order values into postgrest query builder calls.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import httpx
from postgrest.exceptions import APIError
from supabase import AsyncClient, AsyncClientOptions, acreate_client

from docnex.core.config import Settings, get_settings
from docnex.core.exceptions import DatabaseClientError
from docnex.core.logging import get_logger
from docnex.persistence.database import Filter, Order, Row


logger = get_logger(__name__)

_HEALTH_TABLE = "projects"


def _format_scalar(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def apply_filter(query: Any, f: Filter) -> Any:
    """Apply a Filter to a postgrest filter builder and return the builder.

    ``in`` values are quoted by postgrest when they contain reserved
    characters.
    """
    if f.op == "in":
        return query.in_(f.column, [_format_scalar(v) for v in f.value])
    if f.op == "is":
        return query.is_(f.column, _format_scalar(f.value))
    if f.op == "ilike":
        return query.ilike(f.column, f.value)
    return getattr(query, f.op)(f.column, _format_scalar(f.value))


def _apply_filters(query: Any, filters: Sequence[Filter]) -> Any:
    for f in filters:
        query = apply_filter(query, f)
    return query


class SupabaseClient:
    """Async client for the Supabase database.

    The supabase-py client is created lazily on first use so constructing
    the client never touches the network.

    Attributes:
        base_url: Supabase project URL
        timeout: Postgrest request timeout in seconds
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        settings: Settings | None = None,
        client: AsyncClient | None = None,
    ) -> None:
        settings = settings or get_settings()
        self.base_url = (base_url or settings.supabase_url).rstrip("/")
        self._api_key = api_key if api_key is not None else settings.supabase_key.get_secret_value()
        self.timeout = timeout or settings.supabase_timeout_seconds
        self._client = client

    async def _get_client(self) -> AsyncClient:
        """Get or create the supabase-py client."""
        if self._client is None:
            self._client = await acreate_client(
                self.base_url,
                self._api_key,
                options=AsyncClientOptions(postgrest_client_timeout=self.timeout),
            )
        return self._client

    async def close(self) -> None:
        """Close the postgrest HTTP session."""
        if self._client is not None:
            await self._client.postgrest.aclose()
            self._client = None

    async def health_check(self) -> bool:
        """Return True if the database answers a minimal query."""
        client = await self._get_client()
        try:
            await client.table(_HEALTH_TABLE).select("id").limit(1).execute()
        except httpx.HTTPError as e:
            logger.warning("Supabase health check failed", error=str(e))
            return False
        except APIError as e:
            # The backend answered, the query itself was rejected
            logger.warning("Supabase health check query rejected", code=e.code, detail=e.message)
        return True

    async def _execute(self, query: Any, method: str, table: str) -> list[Row]:
        try:
            response = await query.execute()
        except APIError as e:
            logger.error(
                "Supabase request failed",
                table=table,
                method=method,
                code=e.code,
                detail=e.message,
            )
            raise DatabaseClientError(
                f"{method} {table} failed: {e.code}: {e.message}",
                table=table,
                code=e.code,
            ) from e
        except httpx.HTTPError as e:
            logger.error("Supabase request error", table=table, method=method, error=str(e))
            raise DatabaseClientError(f"{method} {table} failed: {e}", table=table) from e

        data = response.data
        if not data:
            return []
        return data if isinstance(data, list) else [data]

    async def select(
        self,
        table: str,
        filters: Sequence[Filter] = (),
        columns: str = "*",
        order: Sequence[Order] = (),
        limit: int | None = None,
    ) -> list[Row]:
        client = await self._get_client()
        query = _apply_filters(client.table(table).select(columns), filters)
        for o in order:
            query = query.order(o.column, desc=not o.ascending)
        if limit is not None:
            query = query.limit(limit)
        return await self._execute(query, "select", table)

    async def insert(self, table: str, rows: Row | Sequence[Row]) -> list[Row]:
        client = await self._get_client()
        payload = [rows] if isinstance(rows, dict) else list(rows)
        return await self._execute(client.table(table).insert(payload), "insert", table)

    async def update(self, table: str, values: Row, filters: Sequence[Filter]) -> list[Row]:
        client = await self._get_client()
        query = _apply_filters(client.table(table).update(values), filters)
        return await self._execute(query, "update", table)

    async def upsert(
        self,
        table: str,
        rows: Row | Sequence[Row],
        on_conflict: str | None = None,
    ) -> list[Row]:
        client = await self._get_client()
        payload = [rows] if isinstance(rows, dict) else list(rows)
        query = client.table(table).upsert(payload, on_conflict=on_conflict or "")
        return await self._execute(query, "upsert", table)

    async def delete(self, table: str, filters: Sequence[Filter]) -> None:
        if not filters:
            raise DatabaseClientError("Refusing to delete without filters", table=table)
        client = await self._get_client()
        await self._execute(_apply_filters(client.table(table).delete(), filters), "delete", table)
