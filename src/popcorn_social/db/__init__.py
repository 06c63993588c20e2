"""Database configuration and utilities."""

from .session import Base, create_engine, create_tables, drop_tables

__all__ = ["Base", "create_engine", "create_tables", "drop_tables"]
