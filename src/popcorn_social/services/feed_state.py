"""Client-side feed pagination and visibility state.

Three counters are tracked independently: posts loaded from the server,
posts revealed to the reader, and whether the server probably has more.
Revealing more of what is loaded never touches the network; fetching more
from the server never changes what is revealed.
"""

from __future__ import annotations

import logging

from popcorn_social.core.settings import settings
from popcorn_social.schemas.post import FeedSnapshot, Post
from popcorn_social.services.feed_aggregator import FeedAggregator, FeedPage
from popcorn_social.store.base import StoreError

logger = logging.getLogger(__name__)

__all__ = ["FeedState"]


class FeedState:
    """Feed posts, visible count and ``has_more`` for a single viewer."""

    def __init__(
        self,
        aggregator: FeedAggregator,
        viewer_id: str,
        *,
        page_size: int | None = None,
        initial_visible: int | None = None,
    ) -> None:
        self.aggregator = aggregator
        self.viewer_id = viewer_id
        self.page_size = settings.feed_page_size if page_size is None else page_size
        self.initial_visible = (
            settings.feed_initial_visible if initial_visible is None else initial_visible
        )
        self.posts: list[Post] = []
        self.visible_count = self.initial_visible
        self.has_more = True
        self.loaded = False
        # Bumped by reset()/dispose(); fetches started under an older value are dropped.
        self.generation = 0

    @property
    def loaded_count(self) -> int:
        return len(self.posts)

    @property
    def visible_posts(self) -> list[Post]:
        """Posts to render, clamped to what is loaded."""
        return self.posts[: min(self.visible_count, len(self.posts))]

    @property
    def can_reveal_more(self) -> bool:
        return self.visible_count < len(self.posts)

    @property
    def can_load_more(self) -> bool:
        return self.has_more and not self.can_reveal_more

    def find(self, post_id: str) -> Post | None:
        return next((post for post in self.posts if post.id == post_id), None)

    async def fetch_page(self, limit: int, offset: int) -> FeedPage | None:
        """Fetch a page and merge it into the stored feed.

        ``offset == 0`` replaces the stored posts; any other offset appends
        posts whose ids are not already present.

        Returns:
            The fetched page, or ``None`` when the fetch failed or was
            superseded. A non-positive ``limit`` yields an empty page. The
            stored feed is left untouched in all three cases.
        """
        if limit <= 0:
            return FeedPage()
        generation = self.generation
        try:
            page = await self.aggregator.fetch_page(self.viewer_id, limit, offset)
        except StoreError:
            logger.error("Error fetching feed for viewer %s", self.viewer_id, exc_info=True)
            return None
        if generation != self.generation:
            logger.debug("Discarding stale feed page for viewer %s", self.viewer_id)
            return None

        if offset == 0:
            self.posts = list(page.posts)
        else:
            known = {post.id for post in self.posts}
            self.posts.extend(post for post in page.posts if post.id not in known)
        self.has_more = page.has_more
        self.loaded = True
        return page

    async def refresh(self) -> FeedPage | None:
        """Reload the first page, replacing the stored feed on success."""
        return await self.fetch_page(self.page_size, 0)

    def reveal_more(self, step: int | None = None) -> int:
        """Reveal ``step`` more loaded posts without fetching.

        The visible count never grows past the number of loaded posts.
        """
        step = settings.feed_reveal_step if step is None else step
        if step <= 0:
            return self.visible_count
        ceiling = max(len(self.posts), self.visible_count)
        self.visible_count = min(self.visible_count + step, ceiling)
        return self.visible_count

    async def load_more_from_server(self) -> FeedPage | None:
        """Fetch the next page once everything loaded is already visible.

        Does nothing while loaded posts remain hidden or when the server
        reported no more rows. The visible count is not changed.
        """
        if not self.has_more or self.can_reveal_more:
            return None
        return await self.fetch_page(self.page_size, len(self.posts))

    def remove(self, post_id: str) -> bool:
        """Drop a post from the stored feed (after the author deleted it)."""
        before = len(self.posts)
        self.posts = [post for post in self.posts if post.id != post_id]
        return len(self.posts) != before

    def snapshot(self) -> FeedSnapshot:
        return FeedSnapshot(
            posts=self.visible_posts,
            visible_count=self.visible_count,
            loaded_count=self.loaded_count,
            has_more=self.has_more,
            can_reveal_more=self.can_reveal_more,
            can_load_more=self.can_load_more,
        )

    def reset(self) -> None:
        """Forget every loaded post and invalidate in-flight fetches."""
        self.generation += 1
        self.posts = []
        self.visible_count = self.initial_visible
        self.has_more = True
        self.loaded = False

    def dispose(self) -> None:
        """Invalidate in-flight fetches without clearing state."""
        self.generation += 1
