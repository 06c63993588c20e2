"""Relational store adapter for the hosted Supabase backend.

Translates the generic store contract into PostgREST query-builder calls and
realtime channel subscriptions. Row-level security is enforced by the backend;
this adapter only shapes requests and wraps failures.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import httpx
from postgrest.exceptions import APIError
from supabase import AsyncClient, acreate_client

from popcorn_social.core.settings import settings
from popcorn_social.store.base import (
    ChangeHandler,
    Filter,
    Order,
    ProcedureUnavailableError,
    Row,
    StoreError,
)

logger = logging.getLogger(__name__)

__all__ = ["SupabaseStore"]

# PostgREST and Postgres codes for an unknown function.
_UNDEFINED_FUNCTION_CODES = {"PGRST202", "42883"}


class _ChannelSubscription:
    """Realtime channel wrapper satisfying the ``Subscription`` protocol."""

    def __init__(self, client: AsyncClient, channel: Any) -> None:
        self._client = client
        self._channel = channel

    async def unsubscribe(self) -> None:
        await self._client.remove_channel(self._channel)


class SupabaseStore:
    """Generic table access over an async Supabase client."""

    def __init__(self, client: AsyncClient) -> None:
        """Initialize the store with an already-created client."""
        self.client = client

    @classmethod
    async def connect(cls, url: str | None = None, key: str | None = None) -> SupabaseStore:
        """Create a client from explicit credentials or the configured settings."""
        url = url or settings.supabase_url
        key = key or settings.supabase_anon_key
        if not url or not key:
            raise StoreError("Supabase URL and anon key are required")
        client = await acreate_client(url, key)
        return cls(client)

    @staticmethod
    def _apply_filters(query: Any, filters: Sequence[Filter]) -> Any:
        for item in filters:
            if item.op == "eq":
                query = query.is_(item.column, "null") if item.value is None else query.eq(
                    item.column, item.value
                )
            else:
                query = query.in_(item.column, list(item.value))
        return query

    async def _execute(self, query: Any, action: str) -> list[Row]:
        try:
            response = await query.execute()
        except APIError as exc:
            raise StoreError(f"{action} failed: {exc.message}") from exc
        except httpx.HTTPError as exc:
            raise StoreError(f"{action} failed: {exc}") from exc
        return list(response.data or [])

    async def select_rows(
        self,
        table: str,
        filters: Sequence[Filter] = (),
        order: Order | None = None,
        range_: tuple[int, int] | None = None,
        columns: str = "*",
    ) -> list[Row]:
        """Return rows of ``table`` matching every filter."""
        query = self._apply_filters(self.client.table(table).select(columns), filters)
        if order is not None:
            query = query.order(order.column, desc=order.descending)
        if range_ is not None:
            query = query.range(range_[0], range_[1])
        return await self._execute(query, f"select from {table}")

    async def insert_row(self, table: str, values: Row) -> Row:
        """Insert one row and return it as stored."""
        rows = await self._execute(self.client.table(table).insert(values), f"insert into {table}")
        if not rows:
            raise StoreError(f"insert into {table} returned no row")
        return rows[0]

    async def update_row(self, table: str, filters: Sequence[Filter], values: Row) -> Row | None:
        """Update matching rows and return the first updated row, if any."""
        query = self._apply_filters(self.client.table(table).update(values), filters)
        rows = await self._execute(query, f"update of {table}")
        return rows[0] if rows else None

    async def delete_row(self, table: str, filters: Sequence[Filter]) -> int:
        """Delete matching rows and return how many were removed."""
        query = self._apply_filters(self.client.table(table).delete(), filters)
        rows = await self._execute(query, f"delete from {table}")
        return len(rows)

    async def call_procedure(self, name: str, args: Row) -> list[Row]:
        """Invoke a Postgres function through PostgREST."""
        try:
            response = await self.client.rpc(name, args).execute()
        except APIError as exc:
            if exc.code in _UNDEFINED_FUNCTION_CODES:
                raise ProcedureUnavailableError(f"procedure {name!r} is not installed") from exc
            raise StoreError(f"procedure {name} failed: {exc.message}") from exc
        except httpx.HTTPError as exc:
            raise StoreError(f"procedure {name} failed: {exc}") from exc
        return list(response.data or [])

    async def subscribe_to_changes(
        self,
        table: str,
        filter_column: str,
        filter_value: Any,
        on_event: ChangeHandler,
    ) -> _ChannelSubscription:
        """Subscribe to Postgres changes for rows where the column matches."""
        channel = self.client.channel(f"{table}:{filter_column}={filter_value}")
        channel.on_postgres_changes(
            "*",
            schema="public",
            table=table,
            filter=f"{filter_column}=eq.{filter_value}",
            callback=on_event,
        )
        await channel.subscribe()
        logger.debug("Subscribed to %s changes where %s=%s", table, filter_column, filter_value)
        return _ChannelSubscription(self.client, channel)
