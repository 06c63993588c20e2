"""Per-viewer social state: feed, comment cache and thread viewer.

A :class:`SocialSession` is the single owner of everything a signed-in viewer
has loaded. Presentation code calls its operations and re-renders either from
the returned values or from observer callbacks registered with
:meth:`SocialSession.subscribe`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from popcorn_social.schemas.comment import Comment
from popcorn_social.services.comment_service import CommentService
from popcorn_social.services.comment_tree import CommentTree
from popcorn_social.services.feed_aggregator import FeedAggregator, FeedPage
from popcorn_social.services.feed_state import FeedState
from popcorn_social.services.follow_service import FollowService
from popcorn_social.services.likes import toggle_like
from popcorn_social.services.post_service import PostService
from popcorn_social.services.thread_viewer import ThreadViewer
from popcorn_social.store.base import RelationalStore, Row

logger = logging.getLogger(__name__)

__all__ = ["SessionRegistry", "SocialSession"]

Listener = Callable[[str], None]

FEED_CHANGED = "feed"
COMMENTS_CHANGED = "comments"
THREAD_CHANGED = "thread"
SESSION_RESET = "reset"


class SocialSession:
    """Owns one viewer's feed, comment trees and thread view."""

    def __init__(
        self,
        store: RelationalStore,
        viewer_id: str,
        *,
        page_size: int | None = None,
        initial_visible: int | None = None,
    ) -> None:
        self.store = store
        self.viewer_id = viewer_id
        self.feed = FeedState(
            FeedAggregator(store),
            viewer_id,
            page_size=page_size,
            initial_visible=initial_visible,
        )
        self.comments = CommentService(store)
        self.thread = ThreadViewer(self.comments)
        self.posts = PostService(store)
        self.follows = FollowService(store)
        self._listeners: list[Listener] = []

    # -- observers ---------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for change notifications; returns an unsubscriber."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, event: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.error("Session listener failed on %s", event, exc_info=True)

    # -- feed --------------------------------------------------------------

    def _bind_viewer(self, viewer_id: str) -> None:
        # is_liked is per viewer, so nothing loaded for another viewer survives.
        if viewer_id != self.viewer_id:
            logger.info("Session viewer changed; discarding loaded state")
            self.sign_out()
            self.viewer_id = viewer_id
            self.feed.viewer_id = viewer_id

    async def get_feed_page(self, viewer_id: str, limit: int, offset: int) -> FeedPage | None:
        """Fetch a page for ``viewer_id``; offset 0 replaces, otherwise appends."""
        self._bind_viewer(viewer_id)
        page = await self.feed.fetch_page(limit, offset)
        if page is not None:
            self._notify(FEED_CHANGED)
        return page

    async def refresh_feed(self) -> FeedPage | None:
        page = await self.feed.refresh()
        if page is not None:
            self._notify(FEED_CHANGED)
        return page

    def reveal_more(self, step: int | None = None) -> int:
        count = self.feed.reveal_more(step)
        self._notify(FEED_CHANGED)
        return count

    async def load_more_from_server(self) -> FeedPage | None:
        page = await self.feed.load_more_from_server()
        if page is not None:
            self._notify(FEED_CHANGED)
        return page

    async def toggle_like(self, post_id: str, viewer_id: str | None = None) -> bool:
        """Optimistically toggle the viewer's like on a loaded post."""
        viewer_id = viewer_id or self.viewer_id
        post = self.feed.find(post_id)
        if post is None:
            return False
        return await toggle_like(
            self.store, post, viewer_id, on_change=lambda _post: self._notify(FEED_CHANGED)
        )

    async def create_post(
        self,
        content: str,
        media_entry_id: str | None = None,
        image_url: str | None = None,
    ) -> Row | None:
        row = await self.posts.create_post(self.viewer_id, content, media_entry_id, image_url)
        if row is not None:
            await self.refresh_feed()
        return row

    async def delete_post(self, post_id: str) -> bool:
        deleted = await self.posts.delete_post(post_id, self.viewer_id)
        if deleted and self.feed.remove(post_id):
            self._notify(FEED_CHANGED)
        return deleted

    # -- comments ------------------------------------------------------------

    async def get_comment_tree(self, post_id: str) -> CommentTree:
        """Return a fresh tree, or the cached one if the fetch fails.

        The loaded post's ``comments_count`` is only updated from a fresh tree.
        """
        tree = await self.comments.refresh_tree(post_id)
        if tree is None:
            cached = self.comments.cached_tree(post_id)
            return cached if cached is not None else CommentTree()
        self._sync_comment_count(post_id, tree)
        self._notify(COMMENTS_CHANGED)
        return tree

    def _post_id_of(self, comment_id: str) -> str | None:
        if self.thread.is_open and self.thread.tree.get(comment_id) is not None:
            return self.thread.post_id
        return self.comments.post_id_of(comment_id)

    def _sync_comment_count(self, post_id: str, tree: CommentTree) -> None:
        post = self.feed.find(post_id)
        if post is not None:
            post.comments_count = len(tree)

    async def _after_comment_change(
        self, post_id: str | None, *, refresh_thread: bool = True
    ) -> None:
        if refresh_thread and self.thread.is_open:
            await self.thread.refresh_focused()
            self._notify(THREAD_CHANGED)
        if post_id is None:
            return
        tree: CommentTree | None
        if self.thread.is_open and self.thread.post_id == post_id and self.thread.synced:
            tree = self.thread.tree
        else:
            tree = await self.comments.refresh_tree(post_id)
        if tree is None:
            return
        self._sync_comment_count(post_id, tree)
        self._notify(COMMENTS_CHANGED)
        self._notify(FEED_CHANGED)

    async def create_comment(
        self,
        post_id: str,
        author_id: str,
        text: str,
        image_url: str | None = None,
        parent_comment_id: str | None = None,
    ) -> Comment | None:
        created = await self.comments.create_comment(
            post_id, author_id, text, image_url=image_url, parent_comment_id=parent_comment_id
        )
        if created is not None:
            await self._after_comment_change(post_id)
        return created

    async def edit_comment(self, comment_id: str, new_text: str) -> bool:
        post_id = self._post_id_of(comment_id)
        edited = await self.comments.edit_comment(comment_id, new_text)
        if edited:
            await self._after_comment_change(post_id)
        return edited

    async def delete_comment(self, comment_id: str) -> bool:
        post_id = self._post_id_of(comment_id)
        if self.thread.is_open:
            # The viewer refreshes itself, or closes when the focus was deleted.
            deleted = await self.thread.delete(comment_id)
            self._notify(THREAD_CHANGED)
        else:
            deleted = await self.comments.delete_comment(comment_id)
        if deleted:
            await self._after_comment_change(post_id, refresh_thread=False)
        return deleted

    # -- thread viewer -------------------------------------------------------

    async def open_thread(self, comment_id: str, post_id: str) -> Comment | None:
        focused = await self.thread.open_thread(comment_id, post_id)
        self._notify(THREAD_CHANGED)
        return focused

    def navigate_thread(self, comment_id: str) -> Comment | None:
        focused = self.thread.navigate(comment_id)
        if focused is not None:
            self._notify(THREAD_CHANGED)
        return focused

    async def refresh_focused_thread(self) -> Comment | None:
        focused = await self.thread.refresh_focused()
        self._notify(THREAD_CHANGED)
        return focused

    async def reply_in_thread(self, text: str, image_url: str | None = None) -> Comment | None:
        post_id = self.thread.post_id
        created = await self.thread.reply(self.viewer_id, text, image_url=image_url)
        if created is not None:
            self._notify(THREAD_CHANGED)
            await self._after_comment_change(post_id, refresh_thread=False)
        return created

    def close_thread(self) -> None:
        self.thread.close()
        self._notify(THREAD_CHANGED)

    # -- lifecycle -----------------------------------------------------------

    def dispose(self) -> None:
        """Host is no longer interested: drop in-flight results, keep loaded data."""
        self.feed.dispose()
        self.thread.close()

    def sign_out(self) -> None:
        """Forget everything loaded for this viewer."""
        self.feed.reset()
        self.comments.clear()
        self.thread.close()
        self._notify(SESSION_RESET)


class SessionRegistry:
    """Sessions keyed by viewer id, for hosts serving several viewers."""

    def __init__(self, store: RelationalStore) -> None:
        self.store = store
        self._sessions: dict[str, SocialSession] = {}

    def get(self, viewer_id: str) -> SocialSession:
        session = self._sessions.get(viewer_id)
        if session is None:
            session = SocialSession(self.store, viewer_id)
            self._sessions[viewer_id] = session
        return session

    def sign_out(self, viewer_id: str) -> None:
        session = self._sessions.pop(viewer_id, None)
        if session is not None:
            session.sign_out()

    def __len__(self) -> int:
        return len(self._sessions)
