"""Versioned API router wiring for v1.

Composes the version 1 API surface from the sub-routers. Contains no
endpoint definitions.
"""
from __future__ import annotations

from typing import Final

from fastapi import APIRouter

from . import routes_comments, routes_feed, routes_people

api_v1: Final[APIRouter] = APIRouter()
api_v1.include_router(routes_feed.router)
api_v1.include_router(routes_comments.router)
api_v1.include_router(routes_people.router)
api_v1.include_router(routes_people.session_router)

__all__ = ["api_v1"]
