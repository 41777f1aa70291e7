# src/engagement_ledger/models/__init__.py
"""SQLAlchemy models for the engagement event store and projections."""

from .comment import Comment
from .post import Post, PostLike
from .scan import MediaKind, Scan, ScanResult
from .user_stats import StatsAuditEntry, UserStats

__all__ = [
    "Comment",
    "Post", "PostLike",
    "MediaKind", "Scan", "ScanResult",
    "StatsAuditEntry", "UserStats",
]
