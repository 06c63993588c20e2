"""Optimistic like/unlike with rollback on failure."""

from __future__ import annotations

import logging
from collections.abc import Callable

from popcorn_social.schemas.post import Post
from popcorn_social.store.base import RelationalStore, StoreError, eq

logger = logging.getLogger(__name__)

__all__ = ["toggle_like"]


async def toggle_like(
    store: RelationalStore,
    post: Post,
    viewer_id: str,
    on_change: Callable[[Post], None] | None = None,
) -> bool:
    """Flip the viewer's like on ``post`` before the store confirms it.

    The post's ``is_liked`` and ``likes_count`` change synchronously, then the
    ``post_likes`` row is inserted or deleted. If the store call fails both
    fields are restored to their values before the toggle. There is no retry.

    ``on_change`` is called after the optimistic flip and again after a
    rollback.

    Returns:
        True when the store accepted the change.

    Notes:
        Concurrent toggles on the same post are not serialized; the last call
        to settle decides the remote state.
    """
    was_liked = post.is_liked
    previous_count = post.likes_count

    post.is_liked = not was_liked
    post.likes_count = max(0, previous_count - 1) if was_liked else previous_count + 1
    if on_change is not None:
        on_change(post)

    try:
        if was_liked:
            await store.delete_row(
                "post_likes",
                [eq("post_id", post.id), eq("user_id", viewer_id)],
            )
        else:
            await store.insert_row("post_likes", {"post_id": post.id, "user_id": viewer_id})
    except StoreError:
        post.is_liked = was_liked
        post.likes_count = previous_count
        logger.error("Error toggling like on post %s", post.id, exc_info=True)
        if on_change is not None:
            on_change(post)
        return False
    return True
