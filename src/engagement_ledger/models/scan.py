# src/engagement_ledger/models/scan.py
"""Models recording completed media authenticity scans."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Enum, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from engagement_ledger.db.session import Base
from engagement_ledger.db.time import utcnow


class ScanResult(str, enum.Enum):
    """Verdict of a scan."""

    AUTHENTIC = "Authentic"
    FABRICATED = "Fabricated"
    SUSPECT = "Suspect"


class MediaKind(str, enum.Enum):
    """Kind of media that was scanned."""

    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class Scan(Base):
    """Append-only record of one scan performed by a user."""

    __tablename__ = "scan"
    __table_args__ = (
        CheckConstraint("risk_score BETWEEN 0 AND 100", name="ck_scan_risk_score"),
        Index("ix_scan_user_id_created_at", "user_id", "created_at"),
        UniqueConstraint("user_id", "request_token", name="uq_scan_user_request_token"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(320), nullable=False)
    result: Mapped[ScanResult] = mapped_column(
        Enum(ScanResult, native_enum=False, length=16, values_callable=_enum_values),
        nullable=False,
    )
    media_kind: Mapped[MediaKind] = mapped_column(
        Enum(MediaKind, native_enum=False, length=16, values_callable=_enum_values),
        nullable=False,
    )
    risk_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Client or tracker supplied; a repeated token from the same user names the same scan.
    request_token: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
