"""Feed aggregation through the procedure and the table fallback."""

from datetime import datetime, timezone

import pytest

from popcorn_social.services.feed_aggregator import FeedAggregator, FeedUnavailableError
from tests.fakes import FRIEND_ID, STRANGER_ID, VIEWER_ID


def _feed_row(post_id, **extra):
    row = {
        "id": post_id,
        "user_id": FRIEND_ID,
        "content": f"post {post_id}",
        "created_at": datetime(2024, 5, 1, tzinfo=timezone.utc),
        "username": "friend",
        "avatar_url": None,
        "likes_count": "0",
        "comments_count": "0",
        "is_liked": None,
    }
    row.update(extra)
    return row


@pytest.mark.asyncio
async def test_procedure_rows_are_normalized(store):
    store.procedures["get_feed"] = lambda args: [
        _feed_row(
            "p1",
            likes_count="3",
            comments_count="2",
            is_liked=True,
            media_title="Dune",
            media_type="movie",
            media_rating=4.5,
        ),
    ]
    aggregator = FeedAggregator(store)

    page = await aggregator.fetch_page(VIEWER_ID, 5, 0)

    post = page.posts[0]
    assert post.likes_count == 3
    assert post.comments_count == 2
    assert post.is_liked is True
    assert post.author.username == "friend"
    assert post.media.title == "Dune"
    assert page.has_more is False


@pytest.mark.asyncio
async def test_procedure_receives_viewer_and_window(store):
    received = {}

    def _procedure(args):
        received.update(args)
        return []

    store.procedures["get_feed"] = _procedure

    await FeedAggregator(store).fetch_page(VIEWER_ID, 20, 40)

    assert received == {"viewer_id": VIEWER_ID, "page_limit": 20, "page_offset": 40}


@pytest.mark.asyncio
@pytest.mark.parametrize(("rows", "expected"), [(5, True), (3, False), (0, False)])
async def test_has_more_is_full_page_heuristic(store, rows, expected):
    store.procedures["get_feed"] = lambda args: [_feed_row(f"p{i}") for i in range(rows)]

    page = await FeedAggregator(store).fetch_page(VIEWER_ID, 5, 0)

    assert len(page.posts) == rows
    assert page.has_more is expected


@pytest.mark.asyncio
async def test_zero_limit_returns_empty_page_without_calls(store):
    page = await FeedAggregator(store).fetch_page(VIEWER_ID, 0, 0)

    assert page.posts == []
    assert page.has_more is False
    assert store.calls == []


@pytest.mark.asyncio
async def test_fallback_counts_likes_and_comments(store, seed_post):
    p1 = seed_post(content="P1")
    p2 = seed_post(content="P2")
    store.add("post_likes", post_id=p1["id"], user_id=VIEWER_ID)
    store.add("post_likes", post_id=p1["id"], user_id=STRANGER_ID)
    store.add("post_comments", post_id=p1["id"], user_id=STRANGER_ID, content="nice")

    page = await FeedAggregator(store).fetch_page(VIEWER_ID, 10, 0)

    by_id = {post.id: post for post in page.posts}
    assert [post.id for post in page.posts] == [p2["id"], p1["id"]]
    assert by_id[p1["id"]].likes_count == 2
    assert by_id[p1["id"]].comments_count == 1
    assert by_id[p1["id"]].is_liked is True
    assert by_id[p2["id"]].likes_count == 0
    assert by_id[p2["id"]].comments_count == 0
    assert by_id[p2["id"]].is_liked is False
    assert by_id[p2["id"]].author.username == "friend"
    assert ("rpc", "get_feed") in store.calls


@pytest.mark.asyncio
async def test_fallback_includes_own_posts_and_skips_strangers(store, seed_post):
    mine = seed_post(author=VIEWER_ID, content="mine")
    seed_post(author=STRANGER_ID, content="not followed")

    page = await FeedAggregator(store).fetch_page(VIEWER_ID, 10, 0)

    assert [post.id for post in page.posts] == [mine["id"]]


@pytest.mark.asyncio
async def test_fallback_attaches_media_summary(store, seed_post):
    entry = store.add("media_entries", user_id=FRIEND_ID, title="Severance", media_type="show")
    post = seed_post(media_entry_id=entry["id"])

    page = await FeedAggregator(store).fetch_page(VIEWER_ID, 10, 0)

    assert page.posts[0].id == post["id"]
    assert page.posts[0].media.title == "Severance"
    assert page.posts[0].media.media_type == "show"


@pytest.mark.asyncio
async def test_fallback_pages_by_offset(store, seed_post):
    ids = [seed_post(content=f"post {i}")["id"] for i in range(7)]

    first = await FeedAggregator(store).fetch_page(VIEWER_ID, 5, 0)
    second = await FeedAggregator(store).fetch_page(VIEWER_ID, 5, 5)

    newest_first = list(reversed(ids))
    assert [post.id for post in first.posts] == newest_first[:5]
    assert first.has_more is True
    assert [post.id for post in second.posts] == newest_first[5:]
    assert second.has_more is False


@pytest.mark.asyncio
async def test_fallback_caps_followees(store):
    followees = [f"followee-{i}" for i in range(4)]
    for followee in followees:
        store.add("profiles", id=followee, username=followee)
        store.add("follows", follower_id=STRANGER_ID, following_id=followee)
        store.add("posts", user_id=followee, content=f"by {followee}")

    page = await FeedAggregator(store, followee_cap=2).fetch_page(STRANGER_ID, 10, 0)

    assert sorted(post.user_id for post in page.posts) == followees[:2]


@pytest.mark.asyncio
async def test_malformed_procedure_rows_use_fallback(store, seed_post):
    store.procedures["get_feed"] = lambda args: [_feed_row("bad", likes_count="-1")]
    post = seed_post()

    page = await FeedAggregator(store).fetch_page(VIEWER_ID, 10, 0)

    assert [p.id for p in page.posts] == [post["id"]]


@pytest.mark.asyncio
async def test_both_paths_failing_raises(store):
    store.fail("select", "posts")

    with pytest.raises(FeedUnavailableError):
        await FeedAggregator(store).fetch_page(VIEWER_ID, 10, 0)


@pytest.mark.asyncio
async def test_zero_followee_cap_keeps_only_own_posts(store, seed_post):
    mine = seed_post(author=VIEWER_ID, content="mine")
    seed_post(author=FRIEND_ID, content="followed")

    page = await FeedAggregator(store, followee_cap=0).fetch_page(VIEWER_ID, 10, 0)

    assert [post.id for post in page.posts] == [mine["id"]]
