"""SQLAlchemy models for the popcorn social store."""

from .comment import PostComment
from .follow import Follow
from .media_entry import MediaEntry
from .post import Post, PostLike
from .profile import Profile

__all__ = [
    "Follow",
    "MediaEntry",
    "Post", "PostLike",
    "PostComment",
    "Profile",
]
