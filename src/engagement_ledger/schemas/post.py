"""Post-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PostCreate(BaseModel):
    """Schema for creating a new post."""

    content: str = Field("", description="Post text; may be empty when an image is attached")
    image_ref: str | None = Field(
        None,
        min_length=1,
        description="Opaque media handle from object storage",
    )


class PostResponse(BaseModel):
    """Schema for post information returned by the API."""

    id: int
    author_id: str
    content: str
    image_ref: str | None
    liked_by: list[str]
    like_count: int
    comment_count: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PostPageResponse(BaseModel):
    """A page of posts, newest first."""

    items: list[PostResponse]
    next_cursor: str | None = Field(None, description="Opaque cursor for the next page")

    model_config = ConfigDict(from_attributes=True)


class LikeToggleResponse(BaseModel):
    """Membership state after a like toggle."""

    post_id: int
    liked: bool
    new_count: int

    model_config = ConfigDict(from_attributes=True)


class PostDeletedResponse(BaseModel):
    """What a post deletion removed."""

    post_id: int
    author_id: str
    likes_lost: int
    comments_removed: int

    model_config = ConfigDict(from_attributes=True)
