"""Pydantic schemas for posts, comments and the follow graph."""

from .comment import Comment, CommentCreate, CommentTreeOut, CommentUpdate, ThreadOpen, ThreadOut, ThreadReply
from .follow import FollowCounts, FollowStatus
from .post import (
    AuthorSummary,
    FeedRow,
    FeedSnapshot,
    LikeRow,
    MediaEntryRow,
    MediaSummary,
    Post,
    PostCreate,
    PostRow,
    ProfileRow,
    RevealRequest,
    parse_count,
)

__all__ = [
    "AuthorSummary",
    "Comment",
    "CommentCreate",
    "CommentTreeOut",
    "CommentUpdate",
    "FeedRow",
    "FeedSnapshot",
    "FollowCounts",
    "FollowStatus",
    "LikeRow",
    "MediaEntryRow",
    "MediaSummary",
    "Post",
    "PostCreate",
    "PostRow",
    "ProfileRow",
    "RevealRequest",
    "ThreadOpen",
    "ThreadOut",
    "ThreadReply",
    "parse_count",
]
