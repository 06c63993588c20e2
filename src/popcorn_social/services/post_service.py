"""Service-level helpers for creating and deleting posts."""

from __future__ import annotations

import logging

from popcorn_social.store.base import RelationalStore, Row, StoreError, eq

logger = logging.getLogger(__name__)

__all__ = ["PostService"]


class PostService:
    """Author-side post mutations."""

    def __init__(self, store: RelationalStore) -> None:
        self.store = store

    async def create_post(
        self,
        author_id: str,
        content: str,
        media_entry_id: str | None = None,
        image_url: str | None = None,
    ) -> Row | None:
        """Insert a post for ``author_id``.

        Blank content is rejected before any store call. Returns the stored row
        or ``None``.
        """
        text = content.strip()
        if not text:
            return None
        values = {
            "user_id": author_id,
            "content": text,
            "media_entry_id": media_entry_id,
            "image_url": (image_url or "").strip() or None,
        }
        try:
            return await self.store.insert_row("posts", values)
        except StoreError:
            logger.error("Error creating post for %s", author_id, exc_info=True)
            return None

    async def delete_post(self, post_id: str, author_id: str) -> bool:
        """Delete a post only if ``author_id`` wrote it."""
        try:
            deleted = await self.store.delete_row(
                "posts", [eq("id", post_id), eq("user_id", author_id)]
            )
        except StoreError:
            logger.error("Error deleting post %s", post_id, exc_info=True)
            return False
        return deleted > 0
