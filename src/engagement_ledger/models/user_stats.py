# src/engagement_ledger/models/user_stats.py
"""Per-user engagement projection and its reconciliation audit trail."""

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from engagement_ledger.db.session import Base
from engagement_ledger.db.time import utcnow


class UserStats(Base):
    """Derived counters for one user.

    Every column is a deterministic aggregate over event rows scoped to
    ``user_id``; rows are created lazily and never deleted.
    """

    __tablename__ = "user_stats"

    user_id: Mapped[str] = mapped_column(String(320), primary_key=True)
    scan_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    post_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_likes_received: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class StatsAuditEntry(Base):
    """One counter corrected by the reconciler."""

    __tablename__ = "stats_audit"
    __table_args__ = (
        Index("ix_stats_audit_user_id", "user_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(320), nullable=False)
    field: Mapped[str] = mapped_column(String(64), nullable=False)
    stored_value: Mapped[int] = mapped_column(Integer, nullable=False)
    computed_value: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
