"""Comment-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CommentCreate(BaseModel):
    """Schema for adding a comment to a post."""

    content: str = Field(..., description="Comment text")


class CommentResponse(BaseModel):
    """Schema for comment information returned by the API."""

    id: int
    post_id: int
    author_id: str
    content: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
