"""Nested comment tree construction from flat comment rows."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from popcorn_social.schemas.comment import Comment

__all__ = ["CommentTree", "ancestor_chain", "build_comment_tree", "depth_of"]


@dataclass
class CommentTree:
    """Root comments of one post plus an id lookup into the same nodes.

    Every comment passed to the builder is present in ``by_id``. Only comments
    whose parent chain resolves appear under ``roots``.
    """

    roots: list[Comment] = field(default_factory=list)
    by_id: dict[str, Comment] = field(default_factory=dict)

    def get(self, comment_id: str) -> Comment | None:
        return self.by_id.get(comment_id)

    def __len__(self) -> int:
        return len(self.by_id)


def build_comment_tree(comments: Iterable[Comment]) -> CommentTree:
    """Nest ``comments`` under their parents.

    Args:
        comments: Flat comment rows for a single post, ordered by creation
            time ascending. Input objects are not modified.

    Returns:
        A :class:`CommentTree` whose nodes are fresh copies carrying
        ``replies`` lists in input order.

    Notes:
        A comment whose parent chain does not reach a root (unknown parent,
        descendant of such a comment, or a malformed cycle) is kept in
        ``by_id`` but never placed in ``roots`` or any ``replies`` list.
        Malformed parent references never raise.
    """
    ordered: list[Comment] = []
    by_id: dict[str, Comment] = {}
    for comment in comments:
        node = comment.model_copy(update={"replies": []})
        by_id[node.id] = node
        ordered.append(node)

    reaches_root: dict[str, bool] = {}

    def _reaches_root(node: Comment) -> bool:
        path: list[str] = []
        current = node
        while True:
            if current.id in reaches_root:
                result = reaches_root[current.id]
                break
            if current.id in path:
                result = False
                break
            path.append(current.id)
            if current.parent_comment_id is None:
                result = True
                break
            parent = by_id.get(current.parent_comment_id)
            if parent is None:
                result = False
                break
            current = parent
        for comment_id in path:
            reaches_root[comment_id] = result
        return result

    roots: list[Comment] = []
    for node in ordered:
        # A duplicate id keeps the last copy registered.
        if by_id.get(node.id) is not node:
            continue
        if node.parent_comment_id is None:
            roots.append(node)
        elif _reaches_root(node):
            by_id[node.parent_comment_id].replies.append(node)
    return CommentTree(roots=roots, by_id=by_id)


def ancestor_chain(comment: Comment, by_id: Mapping[str, Comment]) -> list[Comment]:
    """Return the ancestors of ``comment``, furthest first, immediate parent last.

    The walk stops at a root, at a parent id missing from ``by_id``, or when a
    parent id repeats (malformed cycle).
    """
    chain: list[Comment] = []
    seen = {comment.id}
    parent_id = comment.parent_comment_id
    while parent_id is not None and parent_id not in seen:
        parent = by_id.get(parent_id)
        if parent is None:
            break
        chain.append(parent)
        seen.add(parent_id)
        parent_id = parent.parent_comment_id
    chain.reverse()
    return chain


def depth_of(comment: Comment, by_id: Mapping[str, Comment]) -> int:
    """Number of resolvable parent hops above ``comment``."""
    return len(ancestor_chain(comment, by_id))
