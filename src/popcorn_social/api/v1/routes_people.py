"""Follow-graph endpoints."""
from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, status

from popcorn_social.api.v1.dependencies import RegistryDep, SessionDep, ViewerDep
from popcorn_social.schemas.follow import FollowCounts, FollowStatus
from popcorn_social.store.base import StoreError

router = APIRouter(prefix="/people", tags=["people"])


@router.get("/status", response_model=list[FollowStatus])
async def follow_status(
    session: SessionDep,
    viewer_id: ViewerDep,
    ids: list[str] = Query(default=[]),
) -> list[FollowStatus]:
    """Return following/follower/mutual flags for each profile id."""
    try:
        statuses = await session.follows.follow_status(viewer_id, ids)
    except StoreError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return list(statuses.values())


@router.post("/{profile_id}/follow", status_code=status.HTTP_204_NO_CONTENT)
async def follow(profile_id: str, session: SessionDep, viewer_id: ViewerDep) -> None:
    """Follow a profile."""
    if profile_id == viewer_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot follow yourself")
    if not await session.follows.follow(viewer_id, profile_id):
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Follow failed")


@router.delete("/{profile_id}/follow", status_code=status.HTTP_204_NO_CONTENT)
async def unfollow(profile_id: str, session: SessionDep, viewer_id: ViewerDep) -> None:
    """Stop following a profile."""
    if not await session.follows.unfollow(viewer_id, profile_id):
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Unfollow failed")


@router.get("/{profile_id}/counts", response_model=FollowCounts)
async def follow_counts(profile_id: str, session: SessionDep) -> FollowCounts:
    """Return follower and following totals."""
    try:
        return await session.follows.counts(profile_id)
    except StoreError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc


session_router = APIRouter(tags=["session"])


@session_router.delete("/session", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out(registry: RegistryDep, viewer_id: ViewerDep) -> None:
    """Discard everything loaded for the viewer."""
    registry.sign_out(viewer_id)
