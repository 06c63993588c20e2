"""Feed and post endpoints."""
from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, status

from popcorn_social.api.v1.dependencies import SessionDep, ViewerDep
from popcorn_social.schemas.post import FeedSnapshot, PostCreate, RevealRequest

router = APIRouter(tags=["feed"])


@router.get("/feed", response_model=FeedSnapshot)
async def get_feed(
    session: SessionDep,
    viewer_id: ViewerDep,
    limit: int | None = Query(None, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> FeedSnapshot:
    """Fetch a feed page (offset 0 replaces, otherwise appends) and return the feed.

    A failed fetch leaves the already-loaded feed in place.
    """
    if offset == 0 and limit is None and session.feed.loaded:
        return session.feed.snapshot()
    await session.get_feed_page(viewer_id, limit or session.feed.page_size, offset)
    return session.feed.snapshot()


@router.post("/feed/refresh", response_model=FeedSnapshot)
async def refresh_feed(session: SessionDep) -> FeedSnapshot:
    """Reload the first page."""
    await session.refresh_feed()
    return session.feed.snapshot()


@router.post("/feed/reveal", response_model=FeedSnapshot)
async def reveal_more(session: SessionDep, payload: RevealRequest | None = None) -> FeedSnapshot:
    """Reveal more of the already-loaded posts."""
    session.reveal_more(payload.step if payload else None)
    return session.feed.snapshot()


@router.post("/feed/more", response_model=FeedSnapshot)
async def load_more(session: SessionDep) -> FeedSnapshot:
    """Fetch the next page once every loaded post is visible."""
    await session.load_more_from_server()
    return session.feed.snapshot()


@router.post("/posts", response_model=FeedSnapshot, status_code=status.HTTP_201_CREATED)
async def create_post(payload: PostCreate, session: SessionDep) -> FeedSnapshot:
    """Create a post and return the refreshed feed."""
    if not payload.content.strip():
        raise HTTPException(status_code=422, detail="Post content is required")
    row = await session.create_post(payload.content, payload.media_entry_id, payload.image_url)
    if row is None:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to create post")
    return session.feed.snapshot()


@router.delete("/posts/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(post_id: str, session: SessionDep) -> None:
    """Delete one of the viewer's own posts."""
    if not await session.delete_post(post_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")


@router.post("/posts/{post_id}/like", response_model=FeedSnapshot)
async def toggle_like(post_id: str, session: SessionDep, viewer_id: ViewerDep) -> FeedSnapshot:
    """Toggle the viewer's like on a loaded post."""
    if session.feed.find(post_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not loaded")
    if not await session.toggle_like(post_id, viewer_id):
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to toggle like")
    return session.feed.snapshot()
