"""Comment fetching and mutations."""

import pytest

from popcorn_social.services.comment_service import CommentService
from tests.fakes import FRIEND_ID, STRANGER_ID, VIEWER_ID


@pytest.fixture()
def comments(store):
    return CommentService(store)


@pytest.fixture()
def post(seed_post):
    return seed_post()


@pytest.mark.asyncio
async def test_tree_nests_replies_with_authors(store, comments, post):
    root = store.add("post_comments", post_id=post["id"], user_id=STRANGER_ID, content="first")
    store.add(
        "post_comments",
        post_id=post["id"],
        user_id=FRIEND_ID,
        content="reply",
        parent_comment_id=root["id"],
    )

    tree = await comments.refresh_tree(post["id"])

    assert len(tree) == 2
    assert tree.roots[0].author.username == "stranger"
    assert tree.roots[0].replies[0].content == "reply"
    assert comments.cached_tree(post["id"]) is tree


@pytest.mark.asyncio
async def test_failed_refresh_keeps_cached_tree(store, comments, post):
    store.add("post_comments", post_id=post["id"], user_id=FRIEND_ID, content="kept")
    cached = await comments.refresh_tree(post["id"])
    store.fail("select", "post_comments")

    assert await comments.refresh_tree(post["id"]) is None
    assert comments.cached_tree(post["id"]) is cached


@pytest.mark.asyncio
async def test_failed_first_load_caches_nothing(store, comments):
    store.fail("select", "post_comments")

    assert await comments.refresh_tree("unknown") is None
    assert comments.cached_tree("unknown") is None


@pytest.mark.asyncio
async def test_create_comment_strips_text(store, comments, post):
    created = await comments.create_comment(post["id"], VIEWER_ID, "  Great pick!  ")

    assert created is not None
    assert created.content == "Great pick!"
    assert created.parent_comment_id is None
    assert store.count("post_comments", post_id=post["id"]) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
async def test_blank_comment_makes_no_store_call(store, comments, post, text):
    store.calls.clear()

    assert await comments.create_comment(post["id"], VIEWER_ID, text) is None
    assert store.calls == []


@pytest.mark.asyncio
async def test_create_failure_returns_none(store, comments, post):
    store.fail("insert", "post_comments")

    assert await comments.create_comment(post["id"], VIEWER_ID, "hi") is None


@pytest.mark.asyncio
async def test_edit_comment(store, comments, post):
    row = store.add("post_comments", post_id=post["id"], user_id=VIEWER_ID, content="old")

    assert await comments.edit_comment(row["id"], " new ") is True
    assert store.tables["post_comments"][0]["content"] == "new"
    assert await comments.edit_comment(row["id"], "  ") is False
    assert await comments.edit_comment("missing", "text") is False


@pytest.mark.asyncio
async def test_delete_comment(store, comments, post):
    row = store.add("post_comments", post_id=post["id"], user_id=VIEWER_ID, content="bye")

    assert await comments.delete_comment(row["id"]) is True
    assert await comments.delete_comment(row["id"]) is False


@pytest.mark.asyncio
async def test_post_id_of_uses_cached_trees(store, comments, post):
    row = store.add("post_comments", post_id=post["id"], user_id=VIEWER_ID, content="x")
    assert comments.post_id_of(row["id"]) is None

    await comments.load_tree(post["id"])

    assert comments.post_id_of(row["id"]) == post["id"]
    comments.clear()
    assert comments.post_id_of(row["id"]) is None
