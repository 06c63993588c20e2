"""Feed page aggregation over the relational store.

A page is fetched through the precomputed ``get_feed`` procedure when it is
installed. When the procedure call fails the page is assembled manually from
the ``follows``, ``posts``, ``post_likes``, ``post_comments``, ``profiles`` and
``media_entries`` tables and counted in memory. Both paths produce the same
:class:`~popcorn_social.schemas.post.Post` shape.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass, field

from pydantic import ValidationError

from popcorn_social.core.settings import settings
from popcorn_social.schemas.post import (
    FeedRow,
    LikeRow,
    MediaEntryRow,
    Post,
    PostRow,
    ProfileRow,
)
from popcorn_social.store.base import Order, RelationalStore, StoreError, eq, in_

logger = logging.getLogger(__name__)

__all__ = ["FeedAggregator", "FeedPage", "FeedUnavailableError"]


class FeedUnavailableError(StoreError):
    """Raised when neither the procedure nor the table path produced a page."""


@dataclass
class FeedPage:
    """One page of posts plus the full-page heuristic for more rows."""

    posts: list[Post] = field(default_factory=list)
    has_more: bool = False


class FeedAggregator:
    """Fetch ranked feed pages for a viewer."""

    def __init__(
        self,
        store: RelationalStore,
        *,
        procedure_name: str | None = None,
        followee_cap: int | None = None,
    ) -> None:
        """Initialize the aggregator.

        Args:
            store: Relational store client.
            procedure_name: Name of the precomputed feed procedure.
            followee_cap: Maximum followees consulted by the fallback path.
        """
        self.store = store
        self.procedure_name = (
            settings.feed_procedure_name if procedure_name is None else procedure_name
        )
        self.followee_cap = settings.feed_followee_cap if followee_cap is None else followee_cap

    async def fetch_page(self, viewer_id: str, limit: int, offset: int) -> FeedPage:
        """Return posts by the viewer's followees and the viewer.

        Args:
            viewer_id: Profile id of the requesting user.
            limit: Page size.
            offset: Number of posts already loaded.

        Returns:
            The page, newest first. ``has_more`` is true iff the page was full.

        Raises:
            FeedUnavailableError: If both the procedure and fallback paths fail.
        """
        if limit <= 0:
            return FeedPage()
        try:
            posts = await self._fetch_via_procedure(viewer_id, limit, offset)
        except StoreError as exc:
            logger.warning(
                "Feed procedure %s unavailable, falling back to table queries: %s",
                self.procedure_name,
                exc,
            )
            try:
                posts = await self._fetch_via_tables(viewer_id, limit, offset)
            except StoreError as fallback_exc:
                raise FeedUnavailableError(
                    f"feed unavailable for viewer {viewer_id}: {fallback_exc}"
                ) from fallback_exc
        return FeedPage(posts=posts, has_more=len(posts) == limit)

    async def _fetch_via_procedure(self, viewer_id: str, limit: int, offset: int) -> list[Post]:
        rows = await self.store.call_procedure(
            self.procedure_name,
            {"viewer_id": viewer_id, "page_limit": limit, "page_offset": offset},
        )
        try:
            return [FeedRow.model_validate(row).to_post() for row in rows]
        except ValidationError as exc:
            raise StoreError(f"malformed {self.procedure_name} row: {exc}") from exc

    async def _followee_ids(self, viewer_id: str) -> list[str]:
        rows = await self.store.select_rows(
            "follows",
            [eq("follower_id", viewer_id)],
            columns="following_id",
        )
        followees = [row["following_id"] for row in rows]
        if len(followees) > self.followee_cap:
            logger.info(
                "Viewer %s follows %d users; fallback feed uses the first %d",
                viewer_id,
                len(followees),
                self.followee_cap,
            )
        return followees[: self.followee_cap]

    async def _fetch_via_tables(self, viewer_id: str, limit: int, offset: int) -> list[Post]:
        followees = await self._followee_ids(viewer_id)
        authors = list(dict.fromkeys([*followees, viewer_id]))
        post_rows = await self.store.select_rows(
            "posts",
            [in_("user_id", authors)],
            order=Order("created_at", descending=True),
            range_=(offset, offset + limit - 1),
        )
        try:
            page = [PostRow.model_validate(row) for row in post_rows]
        except ValidationError as exc:
            raise StoreError(f"malformed posts row: {exc}") from exc
        if not page:
            return []

        post_ids = [post.id for post in page]
        user_ids = list(dict.fromkeys(post.user_id for post in page))
        media_ids = list(dict.fromkeys(p.media_entry_id for p in page if p.media_entry_id))

        like_rows, comment_rows, profile_rows, media_rows = await asyncio.gather(
            self.store.select_rows(
                "post_likes", [in_("post_id", post_ids)], columns="post_id, user_id"
            ),
            self.store.select_rows("post_comments", [in_("post_id", post_ids)], columns="post_id"),
            self.store.select_rows(
                "profiles", [in_("id", user_ids)], columns="id, username, avatar_url"
            ),
            self._select_media(media_ids),
        )

        try:
            likes = [LikeRow.model_validate(row) for row in like_rows]
            profiles = {p.id: p for p in map(ProfileRow.model_validate, profile_rows)}
            media = {m.id: m for m in map(MediaEntryRow.model_validate, media_rows)}
        except ValidationError as exc:
            raise StoreError(f"malformed lookup row: {exc}") from exc

        like_counts = Counter(like.post_id for like in likes)
        liked_by_viewer = {like.post_id for like in likes if like.user_id == viewer_id}
        comment_counts = Counter(row["post_id"] for row in comment_rows)

        posts = []
        for row in page:
            profile = profiles.get(row.user_id)
            entry = media.get(row.media_entry_id) if row.media_entry_id else None
            posts.append(
                Post(
                    id=row.id,
                    user_id=row.user_id,
                    content=row.content,
                    media_entry_id=row.media_entry_id,
                    image_url=row.image_url,
                    created_at=row.created_at,
                    author=profile.summary() if profile else None,
                    media=entry.summary() if entry else None,
                    likes_count=like_counts[row.id],
                    comments_count=comment_counts[row.id],
                    is_liked=row.id in liked_by_viewer,
                )
            )
        return posts

    async def _select_media(self, media_ids: list[str]) -> list[dict]:
        if not media_ids:
            return []
        return await self.store.select_rows(
            "media_entries",
            [in_("id", media_ids)],
            columns="id, title, media_type, rating, cover_image_url",
        )
