"""Service layer: feed aggregation, comment threads and social state."""

from .comment_service import CommentService
from .comment_tree import CommentTree, ancestor_chain, build_comment_tree
from .feed_aggregator import FeedAggregator, FeedPage, FeedUnavailableError
from .feed_state import FeedState
from .follow_service import FollowService
from .likes import toggle_like
from .post_service import PostService
from .social_session import SessionRegistry, SocialSession
from .thread_viewer import ThreadStatus, ThreadViewer

__all__ = [
    "CommentService",
    "CommentTree",
    "FeedAggregator",
    "FeedPage",
    "FeedState",
    "FeedUnavailableError",
    "FollowService",
    "PostService",
    "SessionRegistry",
    "SocialSession",
    "ThreadStatus",
    "ThreadViewer",
    "ancestor_chain",
    "build_comment_tree",
    "toggle_like",
]
