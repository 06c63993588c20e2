"""Follow-graph Pydantic schemas."""

from pydantic import BaseModel, computed_field


class FollowStatus(BaseModel):
    """Relationship between the viewer and another profile."""

    profile_id: str
    is_following: bool = False
    is_follower: bool = False

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_mutual(self) -> bool:
        """Both users follow each other."""
        return self.is_following and self.is_follower


class FollowCounts(BaseModel):
    """Follower and following totals for a profile."""

    followers: int = 0
    following: int = 0
