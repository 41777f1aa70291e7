# src/engagement_ledger/schemas/__init__.py
"""Pydantic schemas for request and response validation."""

from .comment import CommentCreate, CommentResponse
from .post import (
    LikeToggleResponse,
    PostCreate,
    PostDeletedResponse,
    PostPageResponse,
    PostResponse,
)
from .scan import ScanCreate, ScanFlushResponse, ScanResponse, ScanTrackingResponse
from .stats import ReconcileAllResponse, UserStatsResponse

__all__ = [
    "CommentCreate", "CommentResponse",
    "LikeToggleResponse", "PostCreate", "PostDeletedResponse", "PostPageResponse", "PostResponse",
    "ScanCreate", "ScanFlushResponse", "ScanResponse", "ScanTrackingResponse",
    "ReconcileAllResponse", "UserStatsResponse",
]
