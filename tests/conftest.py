# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Iterator
from datetime import datetime, timedelta, timezone
from itertools import count
from typing import Any

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

from popcorn_social.schemas.comment import Comment
from popcorn_social.services.social_session import SessionRegistry, SocialSession
from tests.fakes import FRIEND_ID, STRANGER_ID, VIEWER_ID, InMemoryStore

_COMMENT_COUNTER = count(1)
_BASE_TIME = datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture()
def store() -> InMemoryStore:
    """Store with three profiles where the viewer follows the friend."""
    store = InMemoryStore()
    store.add("profiles", id=VIEWER_ID, username="viewer", avatar_url=None)
    store.add("profiles", id=FRIEND_ID, username="friend", avatar_url="https://img/friend.png")
    store.add("profiles", id=STRANGER_ID, username="stranger", avatar_url=None)
    store.add("follows", follower_id=VIEWER_ID, following_id=FRIEND_ID)
    return store


@pytest.fixture()
def session(store: InMemoryStore) -> Iterator[SocialSession]:
    social = SocialSession(store, VIEWER_ID, page_size=5, initial_visible=5)
    yield social
    social.dispose()


@pytest.fixture()
def make_comment() -> Callable[..., Comment]:
    """Build a comment with increasing creation time."""

    def _make(comment_id: str, parent: str | None = None, **overrides: Any) -> Comment:
        n = next(_COMMENT_COUNTER)
        data = {
            "id": comment_id,
            "post_id": "post-1",
            "user_id": FRIEND_ID,
            "content": f"comment {comment_id}",
            "parent_comment_id": parent,
            "created_at": _BASE_TIME + timedelta(seconds=n),
        }
        data.update(overrides)
        return Comment(**data)

    return _make


@pytest.fixture()
def seed_post(store: InMemoryStore) -> Callable[..., dict[str, Any]]:
    """Insert a post row and return it."""

    def _seed(author: str = FRIEND_ID, content: str = "Just watched Dune", **extra: Any):
        return store.add("posts", user_id=author, content=content, **extra)

    return _seed


@pytest.fixture()
def client(store: InMemoryStore) -> Iterator[TestClient]:
    """API client bound to the in-memory store; startup hooks are not run."""
    from popcorn_social.main import app

    app.state.registry = SessionRegistry(store)
    yield TestClient(app)
    del app.state.registry


@pytest.fixture()
def viewer_headers() -> dict[str, str]:
    return {"X-Viewer-Id": VIEWER_ID}
