"""Relational store contract and backend adapters."""

from .base import (
    Filter,
    Order,
    ProcedureUnavailableError,
    RelationalStore,
    Row,
    StoreError,
    StoreTimeoutError,
    Subscription,
    eq,
    in_,
    with_timeout,
)
from .sql_store import SqlStore

__all__ = [
    "Filter",
    "Order",
    "ProcedureUnavailableError",
    "RelationalStore",
    "Row",
    "SqlStore",
    "StoreError",
    "StoreTimeoutError",
    "Subscription",
    "eq",
    "in_",
    "with_timeout",
]
