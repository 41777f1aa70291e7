# src/engagement_ledger/models/post.py
"""SQLAlchemy models for posts and their like memberships."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from engagement_ledger.db.session import Base
from engagement_ledger.db.time import utcnow


class Post(Base):
    """Primary content entity produced by users.

    The like count is never stored on the row; it is the cardinality of the
    post's ``likes`` membership set.
    """

    __tablename__ = "post"
    __table_args__ = (
        Index("ix_post_author_id", "author_id"),
        Index("ix_post_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    author_id: Mapped[str] = mapped_column(String(320), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    # Opaque handle from object storage; stored verbatim.
    image_ref: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    likes: Mapped[list[PostLike]] = relationship(
        "PostLike",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )

    @property
    def liked_by(self) -> list[str]:
        """Return the members of the liked-by set in a stable order."""
        return sorted(like.user_id for like in self.likes)

    @property
    def like_count(self) -> int:
        """Return the canonical like count."""
        return len(self.likes)


class PostLike(Base):
    """One user's membership in a post's liked-by set."""

    __tablename__ = "post_like"
    __table_args__ = (
        Index("ix_post_like_user_id", "user_id"),
    )

    # Composite primary key prevents duplicate membership.
    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("post.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[str] = mapped_column(String(320), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
