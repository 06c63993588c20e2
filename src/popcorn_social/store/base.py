"""Relational store contract shared by every backend adapter.

The social core never talks to a database driver directly. It issues generic
``select / insert / update / delete`` calls with filter predicates, ordering
and inclusive range pagination, plus an optional precomputed procedure call.
Adapters translate these into their own query builder and wrap every driver
failure into :class:`StoreError`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any, Literal, Protocol, TypeVar

from popcorn_social.core.settings import settings

logger = logging.getLogger(__name__)

__all__ = [
    "ChangeEvent",
    "ChangeHandler",
    "Filter",
    "Order",
    "ProcedureUnavailableError",
    "RelationalStore",
    "Row",
    "StoreError",
    "StoreTimeoutError",
    "Subscription",
    "eq",
    "in_",
    "with_timeout",
]

Row = dict[str, Any]
ChangeEvent = dict[str, Any]
ChangeHandler = Callable[[ChangeEvent], None]

T = TypeVar("T")


class StoreError(RuntimeError):
    """Base exception raised for relational store failures."""


class ProcedureUnavailableError(StoreError):
    """Raised when a remote procedure is missing or cannot be executed."""


class StoreTimeoutError(StoreError):
    """Raised when a store call exceeds the configured timeout."""


FilterOp = Literal["eq", "in"]


@dataclass(frozen=True)
class Filter:
    """A single column predicate applied to a query."""

    column: str
    op: FilterOp
    value: Any

    def matches(self, row: Row) -> bool:
        """Evaluate the predicate against an in-memory row."""
        current = row.get(self.column)
        if self.op == "eq":
            return current == self.value
        return current in self.value


@dataclass(frozen=True)
class Order:
    """Ordering applied to a select query."""

    column: str
    descending: bool = False


def eq(column: str, value: Any) -> Filter:
    """Return an equality predicate."""
    return Filter(column, "eq", value)


def in_(column: str, values: Iterable[Any]) -> Filter:
    """Return a membership predicate."""
    return Filter(column, "in", tuple(values))


class Subscription(Protocol):
    """Handle returned by :meth:`RelationalStore.subscribe_to_changes`."""

    async def unsubscribe(self) -> None:
        """Stop delivering change events."""


class RelationalStore(Protocol):
    """Query operations consumed from the hosted relational store."""

    async def select_rows(
        self,
        table: str,
        filters: Sequence[Filter] = (),
        order: Order | None = None,
        range_: tuple[int, int] | None = None,
        columns: str = "*",
    ) -> list[Row]:
        """Return rows of ``table`` matching every filter."""

    async def insert_row(self, table: str, values: Row) -> Row:
        """Insert one row and return it as stored."""

    async def update_row(self, table: str, filters: Sequence[Filter], values: Row) -> Row | None:
        """Update matching rows and return the first updated row, if any."""

    async def delete_row(self, table: str, filters: Sequence[Filter]) -> int:
        """Delete matching rows and return how many were removed."""

    async def call_procedure(self, name: str, args: Row) -> list[Row]:
        """Invoke a remote procedure returning rows."""

    async def subscribe_to_changes(
        self,
        table: str,
        filter_column: str,
        filter_value: Any,
        on_event: ChangeHandler,
    ) -> Subscription:
        """Deliver change events for rows where ``filter_column == filter_value``."""


async def with_timeout(awaitable: Awaitable[T], seconds: float | None = None) -> T:
    """Await a store call, failing with :class:`StoreTimeoutError` after ``seconds``.

    Used by the generic profile/follow helpers. Feed and comment queries are not
    wrapped.
    """
    limit = settings.store_timeout_seconds if seconds is None else seconds
    try:
        return await asyncio.wait_for(awaitable, timeout=limit)
    except asyncio.TimeoutError as exc:
        logger.warning("Store call timed out after %.1fs", limit)
        raise StoreTimeoutError(f"store call exceeded {limit:.1f}s") from exc
