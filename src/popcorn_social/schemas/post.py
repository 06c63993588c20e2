"""Post-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

MediaType = Literal["movie", "show", "game", "book"]


def parse_count(value: object) -> int:
    """Parse a denormalized counter that may arrive as a numeric string.

    ``None`` and blank strings count as zero. Negative or non-numeric values
    raise ``ValueError``.
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        raise ValueError("count must be numeric, not boolean")
    if isinstance(value, int):
        count = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"count must be integral, got {value!r}")
        count = int(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        try:
            count = int(text)
        except ValueError:
            number = float(text)
            if not number.is_integer():
                raise ValueError(f"count must be integral, got {value!r}") from None
            count = int(number)
    else:
        raise ValueError(f"unsupported count value {value!r}")
    if count < 0:
        raise ValueError(f"count must be non-negative, got {count}")
    return count


class AuthorSummary(BaseModel):
    """Author fields denormalized onto posts and comments."""

    username: str
    avatar_url: str | None = None


class MediaSummary(BaseModel):
    """Summary of the media entry a post is attached to."""

    title: str
    media_type: MediaType
    rating: float | None = None
    cover_image_url: str | None = None


class Post(BaseModel):
    """Normalized feed post as seen by one viewer.

    ``is_liked`` is relative to the viewer the post was fetched for and must
    not be reused for another viewer.
    """

    id: str
    user_id: str
    content: str
    media_entry_id: str | None = None
    image_url: str | None = None
    created_at: datetime
    author: AuthorSummary | None = None
    media: MediaSummary | None = None
    likes_count: int = Field(0, ge=0)
    comments_count: int = Field(0, ge=0)
    is_liked: bool = False


class FeedRow(BaseModel):
    """One denormalized row returned by the ``get_feed`` procedure."""

    id: str
    user_id: str
    content: str
    media_entry_id: str | None = None
    image_url: str | None = None
    created_at: datetime
    username: str | None = None
    avatar_url: str | None = None
    media_title: str | None = None
    media_type: MediaType | None = None
    media_rating: float | None = None
    media_cover_url: str | None = None
    likes_count: int = 0
    comments_count: int = 0
    is_liked: bool = False

    @field_validator("likes_count", "comments_count", mode="before")
    @classmethod
    def _parse_counts(cls, value: object) -> int:
        return parse_count(value)

    @field_validator("is_liked", mode="before")
    @classmethod
    def _null_is_false(cls, value: object) -> object:
        return False if value is None else value

    def to_post(self) -> Post:
        """Map the procedure row into the normalized post shape."""
        media = None
        if self.media_title is not None and self.media_type is not None:
            media = MediaSummary(
                title=self.media_title,
                media_type=self.media_type,
                rating=self.media_rating,
                cover_image_url=self.media_cover_url,
            )
        author = None
        if self.username is not None:
            author = AuthorSummary(username=self.username, avatar_url=self.avatar_url)
        return Post(
            id=self.id,
            user_id=self.user_id,
            content=self.content,
            media_entry_id=self.media_entry_id,
            image_url=self.image_url,
            created_at=self.created_at,
            author=author,
            media=media,
            likes_count=self.likes_count,
            comments_count=self.comments_count,
            is_liked=self.is_liked,
        )


class PostRow(BaseModel):
    """One row of the ``posts`` table."""

    id: str
    user_id: str
    content: str
    media_entry_id: str | None = None
    image_url: str | None = None
    created_at: datetime


class ProfileRow(BaseModel):
    """Subset of a ``profiles`` row needed for author summaries."""

    id: str
    username: str
    avatar_url: str | None = None

    def summary(self) -> AuthorSummary:
        return AuthorSummary(username=self.username, avatar_url=self.avatar_url)


class MediaEntryRow(BaseModel):
    """Subset of a ``media_entries`` row needed for media summaries."""

    id: str
    title: str
    media_type: MediaType
    rating: float | None = None
    cover_image_url: str | None = None

    def summary(self) -> MediaSummary:
        return MediaSummary(
            title=self.title,
            media_type=self.media_type,
            rating=self.rating,
            cover_image_url=self.cover_image_url,
        )


class LikeRow(BaseModel):
    """One ``post_likes`` join row."""

    post_id: str
    user_id: str


class PostCreate(BaseModel):
    """Schema for creating a new post."""

    content: str = Field(..., max_length=5000, description="Post text")
    media_entry_id: str | None = Field(None, description="Attached media entry")
    image_url: str | None = Field(None, description="Attached image URL")


class FeedSnapshot(BaseModel):
    """Feed state returned to the presentation layer."""

    posts: list[Post]
    visible_count: int
    loaded_count: int
    has_more: bool
    can_reveal_more: bool
    can_load_more: bool

    model_config = ConfigDict(from_attributes=True)


class RevealRequest(BaseModel):
    """Request to reveal more of the already-loaded feed."""

    step: int | None = Field(None, ge=1, description="Defaults to the configured step")
