# src/engagement_ledger/models/comment.py
"""SQLAlchemy model for comments attached to posts."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from engagement_ledger.db.session import Base
from engagement_ledger.db.time import utcnow


class Comment(Base):
    """Reply to a post; removed together with its post."""

    __tablename__ = "post_comment"
    __table_args__ = (
        Index("ix_post_comment_post_id", "post_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("post.id", ondelete="CASCADE"),
        nullable=False,
    )
    author_id: Mapped[str] = mapped_column(String(320), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
