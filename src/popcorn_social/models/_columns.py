"""Column helpers shared by the ORM models."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone


def new_id() -> str:
    """Return a new string primary key."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Return the current UTC time."""
    return datetime.now(timezone.utc)
