"""Relational store adapter backed by SQLAlchemy.

Serves self-hosted deployments and local development. Precomputed procedures
are not installed unless registered explicitly, so callers exercise their
fallback query paths against this adapter. Change subscriptions are delivered
in-process after each successful write.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import Table, delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

import popcorn_social.models  # noqa: F401  # populate metadata
from popcorn_social.db.session import Base
from popcorn_social.store.base import (
    ChangeHandler,
    Filter,
    Order,
    ProcedureUnavailableError,
    Row,
    StoreError,
)

logger = logging.getLogger(__name__)

__all__ = ["Procedure", "SqlStore"]

Procedure = Callable[["SqlStore", Row], Awaitable[list[Row]]]


@dataclass
class _Listener:
    column: str
    value: Any
    handler: ChangeHandler


@dataclass
class _LocalSubscription:
    store: SqlStore
    table: str
    listener: _Listener
    active: bool = field(default=True)

    async def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        listeners = self.store._listeners.get(self.table, [])
        if self.listener in listeners:
            listeners.remove(self.listener)


class SqlStore:
    """Generic table access over an async SQLAlchemy engine."""

    def __init__(
        self,
        engine: AsyncEngine,
        procedures: dict[str, Procedure] | None = None,
    ) -> None:
        """Initialize the store with an engine and optional procedures."""
        self.engine = engine
        self._procedures: dict[str, Procedure] = dict(procedures or {})
        self._listeners: dict[str, list[_Listener]] = defaultdict(list)

    def register_procedure(self, name: str, procedure: Procedure) -> None:
        """Install a Python callable under a procedure name."""
        self._procedures[name] = procedure

    def _table(self, name: str) -> Table:
        try:
            return Base.metadata.tables[name]
        except KeyError as exc:
            raise StoreError(f"unknown table {name!r}") from exc

    @staticmethod
    def _where(table: Table, filters: Sequence[Filter]) -> list[Any]:
        clauses = []
        for item in filters:
            column = table.c[item.column]
            if item.op == "eq":
                clauses.append(column.is_(None) if item.value is None else column == item.value)
            else:
                clauses.append(column.in_(list(item.value)))
        return clauses

    async def select_rows(
        self,
        table: str,
        filters: Sequence[Filter] = (),
        order: Order | None = None,
        range_: tuple[int, int] | None = None,
        columns: str = "*",
    ) -> list[Row]:
        """Return rows of ``table`` matching every filter."""
        tbl = self._table(table)
        if columns.strip() == "*":
            stmt = select(tbl)
        else:
            names = [name.strip() for name in columns.split(",") if name.strip()]
            stmt = select(*(tbl.c[name] for name in names))
        stmt = stmt.where(*self._where(tbl, filters))
        if order is not None:
            column = tbl.c[order.column]
            stmt = stmt.order_by(column.desc() if order.descending else column.asc())
        if range_ is not None:
            start, end = range_
            stmt = stmt.offset(start).limit(max(0, end - start + 1))
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(stmt)
                return [dict(row) for row in result.mappings()]
        except SQLAlchemyError as exc:
            raise StoreError(f"select from {table} failed: {exc}") from exc

    async def insert_row(self, table: str, values: Row) -> Row:
        """Insert one row and return it as stored."""
        tbl = self._table(table)
        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(insert(tbl).values(**values).returning(tbl))
                row = dict(result.mappings().one())
        except SQLAlchemyError as exc:
            raise StoreError(f"insert into {table} failed: {exc}") from exc
        self._notify(table, "INSERT", new=row, old=None)
        return row

    async def update_row(self, table: str, filters: Sequence[Filter], values: Row) -> Row | None:
        """Update matching rows and return the first updated row, if any."""
        tbl = self._table(table)
        stmt = update(tbl).where(*self._where(tbl, filters)).values(**values).returning(tbl)
        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(stmt)
                rows = [dict(row) for row in result.mappings()]
        except SQLAlchemyError as exc:
            raise StoreError(f"update of {table} failed: {exc}") from exc
        for row in rows:
            self._notify(table, "UPDATE", new=row, old=None)
        return rows[0] if rows else None

    async def delete_row(self, table: str, filters: Sequence[Filter]) -> int:
        """Delete matching rows and return how many were removed."""
        tbl = self._table(table)
        stmt = delete(tbl).where(*self._where(tbl, filters)).returning(tbl)
        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(stmt)
                rows = [dict(row) for row in result.mappings()]
        except SQLAlchemyError as exc:
            raise StoreError(f"delete from {table} failed: {exc}") from exc
        for row in rows:
            self._notify(table, "DELETE", new=None, old=row)
        return len(rows)

    async def call_procedure(self, name: str, args: Row) -> list[Row]:
        """Invoke a registered procedure."""
        procedure = self._procedures.get(name)
        if procedure is None:
            raise ProcedureUnavailableError(f"procedure {name!r} is not installed")
        return await procedure(self, args)

    async def subscribe_to_changes(
        self,
        table: str,
        filter_column: str,
        filter_value: Any,
        on_event: ChangeHandler,
    ) -> _LocalSubscription:
        """Deliver in-process change events for matching rows."""
        self._table(table)
        listener = _Listener(filter_column, filter_value, on_event)
        self._listeners[table].append(listener)
        return _LocalSubscription(self, table, listener)

    def _notify(self, table: str, event_type: str, *, new: Row | None, old: Row | None) -> None:
        for listener in list(self._listeners.get(table, ())):
            row = new if new is not None else old
            if row is None or row.get(listener.column) != listener.value:
                continue
            try:
                listener.handler({"eventType": event_type, "table": table, "new": new, "old": old})
            except Exception:
                logger.error("Change listener for %s raised", table, exc_info=True)
