# tests/test_schemas.py
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from popcorn_social.core.settings import Settings
from popcorn_social.schemas.post import FeedRow, parse_count


@pytest.mark.parametrize(("raw", "expected"), [
    (None, 0),
    ("", 0),
    ("  ", 0),
    (7, 7),
    ("12", 12),
    (" 3 ", 3),
    (4.0, 4),
    ("5.0", 5),
])
def test_parse_count_accepts(raw, expected):
    assert parse_count(raw) == expected


@pytest.mark.parametrize("raw", [-1, "-2", "abc", 1.5, "2.5", True, [], {}])
def test_parse_count_rejects(raw):
    with pytest.raises(ValueError):
        parse_count(raw)


def _row(**extra):
    data = {
        "id": "p1",
        "user_id": "u1",
        "content": "hi",
        "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
    }
    data.update(extra)
    return data


def test_feed_row_maps_to_post():
    row = FeedRow.model_validate(
        _row(
            username="ana",
            avatar_url="https://img/a.png",
            media_title="Hades",
            media_type="game",
            media_rating="4.5",
            likes_count="10",
            comments_count=None,
            is_liked=None,
        )
    )

    post = row.to_post()

    assert post.likes_count == 10
    assert post.comments_count == 0
    assert post.is_liked is False
    assert post.author.username == "ana"
    assert post.media.media_type == "game"
    assert post.media.rating == 4.5


def test_feed_row_without_joins_has_no_author_or_media():
    post = FeedRow.model_validate(_row()).to_post()

    assert post.author is None
    assert post.media is None


def test_feed_row_rejects_unknown_media_type():
    with pytest.raises(ValidationError):
        FeedRow.model_validate(_row(media_title="X", media_type="podcast"))


@pytest.mark.parametrize(("url", "key", "expected"), [
    (None, None, False),
    ("https://abc.supabase.co", None, False),
    ("https://abc.supabase.co", "anon", True),
    ("http://localhost:54321", "anon", False),
    ("https://your_supabase_url", "anon", False),
    ("https://abc.supabase.co", "your_supabase_anon_key", False),
])
def test_supabase_configured(url, key, expected):
    config = Settings(supabase_url=url, supabase_anon_key=key)

    assert config.supabase_configured is expected
