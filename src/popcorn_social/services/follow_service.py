"""Follow graph helpers: relationship status, follow/unfollow and counts."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence

from popcorn_social.schemas.follow import FollowCounts, FollowStatus
from popcorn_social.store.base import (
    ChangeEvent,
    RelationalStore,
    StoreError,
    Subscription,
    eq,
    in_,
    with_timeout,
)

logger = logging.getLogger(__name__)

__all__ = ["CountWatch", "FollowService"]


class CountWatch:
    """Pair of change subscriptions that keep a profile's counts fresh."""

    def __init__(self, subscriptions: Sequence[Subscription] = ()) -> None:
        self._subscriptions = list(subscriptions)
        self._tasks: set[asyncio.Task[None]] = set()

    def add(self, subscription: Subscription) -> None:
        self._subscriptions.append(subscription)

    def track(self, task: asyncio.Task[None]) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def unsubscribe(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        for subscription in self._subscriptions:
            await subscription.unsubscribe()
        self._subscriptions.clear()


class FollowService:
    """Read and mutate ``follows`` edges through the generic store helper."""

    def __init__(self, store: RelationalStore, timeout: float | None = None) -> None:
        self.store = store
        self.timeout = timeout

    async def follow_status(
        self, viewer_id: str, profile_ids: Sequence[str]
    ) -> dict[str, FollowStatus]:
        """Return both edge directions between the viewer and each profile."""
        ids = [pid for pid in dict.fromkeys(profile_ids) if pid != viewer_id]
        if not ids:
            return {}
        following_rows, follower_rows = await asyncio.gather(
            with_timeout(
                self.store.select_rows(
                    "follows",
                    [eq("follower_id", viewer_id), in_("following_id", ids)],
                    columns="following_id",
                ),
                self.timeout,
            ),
            with_timeout(
                self.store.select_rows(
                    "follows",
                    [eq("following_id", viewer_id), in_("follower_id", ids)],
                    columns="follower_id",
                ),
                self.timeout,
            ),
        )
        following = {row["following_id"] for row in following_rows}
        followers = {row["follower_id"] for row in follower_rows}
        return {
            pid: FollowStatus(
                profile_id=pid,
                is_following=pid in following,
                is_follower=pid in followers,
            )
            for pid in ids
        }

    async def follow(self, viewer_id: str, profile_id: str) -> bool:
        """Follow ``profile_id``. Following yourself is rejected."""
        if viewer_id == profile_id:
            return False
        try:
            await with_timeout(
                self.store.insert_row(
                    "follows", {"follower_id": viewer_id, "following_id": profile_id}
                ),
                self.timeout,
            )
        except StoreError:
            logger.error("Follow error for %s -> %s", viewer_id, profile_id, exc_info=True)
            return False
        return True

    async def unfollow(self, viewer_id: str, profile_id: str) -> bool:
        """Remove the viewer's edge to ``profile_id``."""
        try:
            await with_timeout(
                self.store.delete_row(
                    "follows",
                    [eq("follower_id", viewer_id), eq("following_id", profile_id)],
                ),
                self.timeout,
            )
        except StoreError:
            logger.error("Unfollow error for %s -> %s", viewer_id, profile_id, exc_info=True)
            return False
        return True

    async def counts(self, user_id: str) -> FollowCounts:
        """Return follower and following totals for ``user_id``."""
        followers, following = await asyncio.gather(
            with_timeout(
                self.store.select_rows("follows", [eq("following_id", user_id)], columns="id"),
                self.timeout,
            ),
            with_timeout(
                self.store.select_rows("follows", [eq("follower_id", user_id)], columns="id"),
                self.timeout,
            ),
        )
        return FollowCounts(followers=len(followers), following=len(following))

    async def watch_counts(
        self, user_id: str, on_change: Callable[[FollowCounts], None]
    ) -> CountWatch:
        """Re-fetch counts whenever a ``follows`` edge touching ``user_id`` changes.

        Must be called from a running event loop; each change schedules a
        refresh task on it.
        """
        loop = asyncio.get_running_loop()
        watch = CountWatch()

        async def _refresh() -> None:
            try:
                on_change(await self.counts(user_id))
            except StoreError:
                logger.warning("Could not refresh follow counts for %s", user_id, exc_info=True)

        def _on_event(event: ChangeEvent) -> None:
            logger.debug("follows change for %s: %s", user_id, event.get("eventType"))
            watch.track(loop.create_task(_refresh()))

        for column in ("following_id", "follower_id"):
            watch.add(await self.store.subscribe_to_changes("follows", column, user_id, _on_event))
        return watch
