"""Focused thread view over a post's comment tree.

The viewer isolates one comment, its ancestor chain and its direct replies.
After every mutation the tree is rebuilt from the store and the focused
comment is located again by id; if it no longer exists the view closes.

State machine::

    CLOSED -> OPEN(focused=C) -> OPEN(focused=C') -> CLOSED
"""

from __future__ import annotations

import enum
import logging

from popcorn_social.schemas.comment import Comment, ThreadOut
from popcorn_social.services.comment_service import CommentService
from popcorn_social.services.comment_tree import CommentTree, ancestor_chain
from popcorn_social.store.base import StoreError

logger = logging.getLogger(__name__)

__all__ = ["ThreadStatus", "ThreadViewer"]


class ThreadStatus(enum.Enum):
    """Lifecycle states of the thread view."""

    CLOSED = "closed"
    OPEN = "open"


class ThreadViewer:
    """Focus one comment and keep it in sync with the store."""

    def __init__(self, comments: CommentService) -> None:
        self.comments = comments
        self.status = ThreadStatus.CLOSED
        self.post_id: str | None = None
        self.focused_id: str | None = None
        self.tree = CommentTree()
        # False while the tree is a cached copy kept after a failed fetch.
        self.synced = False
        self._generation = 0

    @property
    def is_open(self) -> bool:
        return self.status is ThreadStatus.OPEN

    @property
    def focused(self) -> Comment | None:
        if self.focused_id is None:
            return None
        return self.tree.get(self.focused_id)

    @property
    def ancestors(self) -> list[Comment]:
        """Ancestors of the focused comment, furthest first."""
        focused = self.focused
        return ancestor_chain(focused, self.tree.by_id) if focused else []

    @property
    def children(self) -> list[Comment]:
        focused = self.focused
        return list(focused.replies) if focused else []

    async def open_thread(self, comment_id: str, post_id: str) -> Comment | None:
        """Load the post's tree and focus ``comment_id``.

        Returns the focused comment, or ``None`` if it could not be found (the
        view is then closed).
        """
        self._generation += 1
        generation = self._generation
        synced = True
        try:
            tree = await self.comments.load_tree(post_id)
        except StoreError:
            logger.error("Error opening thread %s on post %s", comment_id, post_id, exc_info=True)
            tree = self.comments.cached_tree(post_id) or CommentTree()
            synced = False
        if generation != self._generation:
            return None
        if tree.get(comment_id) is None:
            self.close()
            return None
        self.tree = tree
        self.synced = synced
        self.post_id = post_id
        self.focused_id = comment_id
        self.status = ThreadStatus.OPEN
        return self.focused

    def navigate(self, comment_id: str) -> Comment | None:
        """Refocus on another comment of the loaded tree, e.g. a child or ancestor."""
        if not self.is_open or self.tree.get(comment_id) is None:
            return None
        self.focused_id = comment_id
        return self.focused

    async def refresh_focused(self) -> Comment | None:
        """Rebuild the tree and re-locate the focused comment by id.

        Closes the view when the focused comment no longer exists. A failed
        fetch keeps the current tree.
        """
        if not self.is_open or self.post_id is None or self.focused_id is None:
            return None
        generation = self._generation
        try:
            tree = await self.comments.load_tree(self.post_id)
        except StoreError:
            logger.warning("Error refreshing thread %s", self.focused_id, exc_info=True)
            self.synced = False
            return self.focused
        if generation != self._generation:
            return None
        self.tree = tree
        self.synced = True
        if tree.get(self.focused_id) is None:
            logger.debug("Focused comment %s disappeared; closing thread", self.focused_id)
            self.close()
            return None
        return self.focused

    async def reply(self, author_id: str, text: str, image_url: str | None = None) -> Comment | None:
        """Reply to the focused comment; focus stays where it is."""
        if not self.is_open or self.post_id is None:
            return None
        created = await self.comments.create_comment(
            self.post_id, author_id, text, image_url=image_url, parent_comment_id=self.focused_id
        )
        if created is not None:
            await self.refresh_focused()
        return created

    async def edit(self, comment_id: str, new_text: str) -> bool:
        """Edit any comment of the open thread; focus stays where it is."""
        if not self.is_open:
            return False
        edited = await self.comments.edit_comment(comment_id, new_text)
        if edited:
            await self.refresh_focused()
        return edited

    async def delete(self, comment_id: str) -> bool:
        """Delete a comment; deleting the focused comment closes the view."""
        deleted = await self.comments.delete_comment(comment_id)
        if not deleted or not self.is_open:
            return deleted
        if comment_id == self.focused_id:
            self.close()
        else:
            await self.refresh_focused()
        return deleted

    def close(self) -> None:
        self._generation += 1
        self.status = ThreadStatus.CLOSED
        self.post_id = None
        self.focused_id = None
        self.tree = CommentTree()
        self.synced = False

    def view(self) -> ThreadOut:
        return ThreadOut(
            status=self.status.value,
            post_id=self.post_id,
            focused=self.focused,
            ancestors=self.ancestors,
            children=self.children,
        )
