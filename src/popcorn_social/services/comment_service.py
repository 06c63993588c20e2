"""Comment fetching, tree caching and comment mutations."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from popcorn_social.schemas.comment import Comment
from popcorn_social.schemas.post import ProfileRow
from popcorn_social.services.comment_tree import CommentTree, build_comment_tree
from popcorn_social.store.base import Order, RelationalStore, StoreError, eq, in_

logger = logging.getLogger(__name__)

__all__ = ["CommentService"]


class CommentService:
    """Load comment trees per post and apply comment mutations."""

    def __init__(self, store: RelationalStore) -> None:
        self.store = store
        self._trees: dict[str, CommentTree] = {}

    def cached_tree(self, post_id: str) -> CommentTree | None:
        return self._trees.get(post_id)

    def clear(self) -> None:
        self._trees.clear()

    def post_id_of(self, comment_id: str) -> str | None:
        """Post id of a comment found in any cached tree."""
        for post_id, tree in self._trees.items():
            if comment_id in tree.by_id:
                return post_id
        return None

    async def fetch_comments(self, post_id: str) -> list[Comment]:
        """Return the post's comments, oldest first, with author summaries.

        Raises:
            StoreError: If the comments or their authors cannot be loaded.
        """
        rows = await self.store.select_rows(
            "post_comments",
            [eq("post_id", post_id)],
            order=Order("created_at"),
        )
        user_ids = list(dict.fromkeys(row["user_id"] for row in rows))
        profiles: dict[str, ProfileRow] = {}
        if user_ids:
            profile_rows = await self.store.select_rows(
                "profiles", [in_("id", user_ids)], columns="id, username, avatar_url"
            )
            try:
                profiles = {p.id: p for p in map(ProfileRow.model_validate, profile_rows)}
            except ValidationError as exc:
                raise StoreError(f"malformed profiles row: {exc}") from exc
        try:
            comments = []
            for row in rows:
                profile = profiles.get(row["user_id"])
                data = {**row, "author": profile.summary() if profile else None, "replies": []}
                comments.append(Comment.model_validate(data))
        except ValidationError as exc:
            raise StoreError(f"malformed post_comments row: {exc}") from exc
        return comments

    async def load_tree(self, post_id: str) -> CommentTree:
        """Fetch and rebuild the post's tree, replacing the cached copy.

        Raises:
            StoreError: If the comments cannot be loaded.
        """
        tree = build_comment_tree(await self.fetch_comments(post_id))
        self._trees[post_id] = tree
        return tree

    async def refresh_tree(self, post_id: str) -> CommentTree | None:
        """Reload the post's tree; ``None`` when the fetch failed.

        A failed fetch leaves the cached tree in place.
        """
        try:
            return await self.load_tree(post_id)
        except StoreError:
            logger.error("Error fetching comments for post %s", post_id, exc_info=True)
            return None

    async def create_comment(
        self,
        post_id: str,
        author_id: str,
        text: str,
        image_url: str | None = None,
        parent_comment_id: str | None = None,
    ) -> Comment | None:
        """Insert a comment or reply.

        Blank text is rejected before any store call. Returns the created
        comment, or ``None`` when rejected or when the insert failed.
        """
        content = text.strip()
        if not content:
            return None
        values = {
            "post_id": post_id,
            "user_id": author_id,
            "content": content,
            "image_url": image_url or None,
            "parent_comment_id": parent_comment_id,
        }
        try:
            row = await self.store.insert_row("post_comments", values)
            return Comment.model_validate({**row, "replies": []})
        except StoreError:
            logger.error("Error posting comment on post %s", post_id, exc_info=True)
        except ValidationError:
            logger.error("Store returned a malformed comment for post %s", post_id, exc_info=True)
        return None

    async def edit_comment(self, comment_id: str, new_text: str) -> bool:
        """Replace a comment's text. Blank text is a no-op."""
        content = new_text.strip()
        if not content:
            return False
        try:
            row = await self.store.update_row(
                "post_comments", [eq("id", comment_id)], {"content": content}
            )
        except StoreError:
            logger.error("Error editing comment %s", comment_id, exc_info=True)
            return False
        return row is not None

    async def delete_comment(self, comment_id: str) -> bool:
        """Delete a comment; replies are removed by the store's cascade."""
        try:
            deleted = await self.store.delete_row("post_comments", [eq("id", comment_id)])
        except StoreError:
            logger.error("Error deleting comment %s", comment_id, exc_info=True)
            return False
        return deleted > 0
