"""Optimistic like toggling."""

from datetime import datetime, timezone

import pytest

from popcorn_social.schemas.post import Post
from popcorn_social.services.likes import toggle_like
from tests.fakes import FRIEND_ID, VIEWER_ID


def _post(**overrides):
    data = {
        "id": "post-1",
        "user_id": FRIEND_ID,
        "content": "Rewatching Alien",
        "created_at": datetime(2024, 2, 2, tzinfo=timezone.utc),
        "likes_count": 4,
        "is_liked": False,
    }
    data.update(overrides)
    return Post(**data)


@pytest.mark.asyncio
async def test_like_inserts_row_and_bumps_count(store):
    post = _post()

    assert await toggle_like(store, post, VIEWER_ID) is True

    assert post.is_liked is True
    assert post.likes_count == 5
    assert store.count("post_likes", post_id="post-1", user_id=VIEWER_ID) == 1


@pytest.mark.asyncio
async def test_unlike_deletes_row(store):
    store.add("post_likes", post_id="post-1", user_id=VIEWER_ID)
    post = _post(is_liked=True, likes_count=1)

    assert await toggle_like(store, post, VIEWER_ID) is True

    assert post.is_liked is False
    assert post.likes_count == 0
    assert store.count("post_likes", post_id="post-1") == 0


@pytest.mark.asyncio
async def test_unlike_never_goes_negative(store):
    post = _post(is_liked=True, likes_count=0)

    await toggle_like(store, post, VIEWER_ID)

    assert post.likes_count == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(("liked", "count", "operation"), [
    (False, 4, "insert"),
    (True, 4, "delete"),
])
async def test_failure_restores_previous_values(store, liked, count, operation):
    store.fail(operation, "post_likes")
    post = _post(is_liked=liked, likes_count=count)

    assert await toggle_like(store, post, VIEWER_ID) is False

    assert post.is_liked is liked
    assert post.likes_count == count


@pytest.mark.asyncio
async def test_duplicate_like_rolls_back(store):
    store.add("post_likes", post_id="post-1", user_id=VIEWER_ID)
    post = _post(is_liked=False, likes_count=1)

    assert await toggle_like(store, post, VIEWER_ID) is False
    assert post.likes_count == 1


@pytest.mark.asyncio
async def test_on_change_sees_flip_then_rollback(store):
    store.fail("insert", "post_likes")
    post = _post()
    seen = []

    await toggle_like(store, post, VIEWER_ID, on_change=lambda p: seen.append((p.is_liked, p.likes_count)))

    assert seen == [(True, 5), (False, 4)]


@pytest.mark.asyncio
async def test_count_changes_before_store_call(store, mocker):
    post = _post()
    observed = {}

    async def _insert(table, values):
        observed["is_liked"] = post.is_liked
        observed["likes_count"] = post.likes_count
        return {"id": "like-1", **values}

    mocker.patch.object(store, "insert_row", side_effect=_insert)

    await toggle_like(store, post, VIEWER_ID)

    assert observed == {"is_liked": True, "likes_count": 5}
