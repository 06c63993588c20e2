"""Comment-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from popcorn_social.schemas.post import AuthorSummary


class Comment(BaseModel):
    """A comment on a post.

    ``replies`` is populated client-side by the tree builder and holds the
    direct children ordered by creation time.
    """

    id: str
    post_id: str
    user_id: str
    content: str
    image_url: str | None = None
    parent_comment_id: str | None = None
    created_at: datetime
    author: AuthorSummary | None = None
    replies: list[Comment] = Field(default_factory=list)


class CommentCreate(BaseModel):
    """Schema for creating a comment or reply."""

    content: str = Field(..., max_length=2000)
    image_url: str | None = None
    parent_comment_id: str | None = Field(None, description="Parent comment for replies")


class CommentUpdate(BaseModel):
    """Schema for editing a comment's text."""

    content: str = Field(..., max_length=2000)


class CommentTreeOut(BaseModel):
    """Root comments of a post with their nested replies."""

    post_id: str
    roots: list[Comment]
    total: int


class ThreadOpen(BaseModel):
    """Request to focus a comment in the thread viewer."""

    comment_id: str
    post_id: str


class ThreadReply(BaseModel):
    """Reply posted from the thread viewer to the focused comment."""

    content: str = Field(..., max_length=2000)
    image_url: str | None = None


class ThreadOut(BaseModel):
    """Current thread viewer state."""

    status: str
    post_id: str | None = None
    focused: Comment | None = None
    ancestors: list[Comment] = Field(default_factory=list)
    children: list[Comment] = Field(default_factory=list)
