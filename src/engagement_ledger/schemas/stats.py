"""User statistics schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class UserStatsResponse(BaseModel):
    """Derived engagement counters for one user."""

    user_id: str
    scan_count: int
    post_count: int
    total_likes_received: int
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class ReconcileAllResponse(BaseModel):
    """Summary of a full reconciliation run."""

    processed: int
