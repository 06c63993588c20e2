"""Comment and thread viewer endpoints."""
from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from popcorn_social.api.v1.dependencies import SessionDep, ViewerDep
from popcorn_social.schemas.comment import (
    Comment,
    CommentCreate,
    CommentTreeOut,
    CommentUpdate,
    ThreadOpen,
    ThreadOut,
    ThreadReply,
)

router = APIRouter(tags=["comments"])


@router.get("/posts/{post_id}/comments", response_model=CommentTreeOut)
async def get_comments(post_id: str, session: SessionDep) -> CommentTreeOut:
    """Return the post's comment tree."""
    tree = await session.get_comment_tree(post_id)
    return CommentTreeOut(post_id=post_id, roots=tree.roots, total=len(tree))


@router.post(
    "/posts/{post_id}/comments",
    response_model=Comment,
    status_code=status.HTTP_201_CREATED,
)
async def create_comment(
    post_id: str,
    payload: CommentCreate,
    session: SessionDep,
    viewer_id: ViewerDep,
) -> Comment:
    """Comment on a post, or reply to one of its comments."""
    if not payload.content.strip():
        raise HTTPException(status_code=422, detail="Comment text is required")
    created = await session.create_comment(
        post_id,
        viewer_id,
        payload.content,
        image_url=payload.image_url,
        parent_comment_id=payload.parent_comment_id,
    )
    if created is None:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to post comment")
    return created


@router.patch("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def edit_comment(comment_id: str, payload: CommentUpdate, session: SessionDep) -> None:
    """Replace a comment's text."""
    if not payload.content.strip():
        raise HTTPException(status_code=422, detail="Comment text is required")
    if not await session.edit_comment(comment_id, payload.content):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found")


@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(comment_id: str, session: SessionDep) -> None:
    """Delete a comment."""
    if not await session.delete_comment(comment_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found")


@router.get("/thread", response_model=ThreadOut)
async def get_thread(session: SessionDep) -> ThreadOut:
    """Return the current thread view."""
    return session.thread.view()


@router.post("/thread", response_model=ThreadOut)
async def open_thread(payload: ThreadOpen, session: SessionDep) -> ThreadOut:
    """Focus a comment in the thread viewer."""
    if await session.open_thread(payload.comment_id, payload.post_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found")
    return session.thread.view()


@router.post("/thread/focus/{comment_id}", response_model=ThreadOut)
async def navigate_thread(comment_id: str, session: SessionDep) -> ThreadOut:
    """Move the focus to another comment of the open thread."""
    if session.navigate_thread(comment_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not in thread")
    return session.thread.view()


@router.post("/thread/refresh", response_model=ThreadOut)
async def refresh_thread(session: SessionDep) -> ThreadOut:
    """Re-sync the focused comment with the store; closes if it was deleted."""
    await session.refresh_focused_thread()
    return session.thread.view()


@router.post("/thread/replies", response_model=ThreadOut, status_code=status.HTTP_201_CREATED)
async def reply_in_thread(payload: ThreadReply, session: SessionDep) -> ThreadOut:
    """Reply to the focused comment."""
    if not session.thread.is_open:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="No thread is open")
    if await session.reply_in_thread(payload.content, payload.image_url) is None:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to post reply")
    return session.thread.view()


@router.delete("/thread", response_model=ThreadOut)
async def close_thread(session: SessionDep) -> ThreadOut:
    """Close the thread view."""
    session.close_thread()
    return session.thread.view()
