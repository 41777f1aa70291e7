"""initial engagement schema

Revision ID: 5c1e0a7d2b91
Revises:
Create Date: 2026-10-19 09:12:44.518203

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5c1e0a7d2b91"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

SCAN_RESULTS = ("Authentic", "Fabricated", "Suspect")
MEDIA_KINDS = ("image", "video", "audio")


def upgrade() -> None:
    """Create the event store, projection and audit tables."""
    op.create_table(
        "post",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("author_id", sa.String(length=320), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("image_ref", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_post_author_id", "post", ["author_id"])
    op.create_index("ix_post_created_at", "post", ["created_at"])

    op.create_table(
        "post_like",
        sa.Column("post_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(length=320), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["post_id"], ["post.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("post_id", "user_id"),
    )
    op.create_index("ix_post_like_user_id", "post_like", ["user_id"])

    op.create_table(
        "post_comment",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("post_id", sa.Integer(), nullable=False),
        sa.Column("author_id", sa.String(length=320), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["post_id"], ["post.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_post_comment_post_id", "post_comment", ["post_id", "created_at"])

    op.create_table(
        "scan",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(length=320), nullable=False),
        sa.Column(
            "result",
            sa.Enum(*SCAN_RESULTS, name="scanresult", native_enum=False, length=16),
            nullable=False,
        ),
        sa.Column(
            "media_kind",
            sa.Enum(*MEDIA_KINDS, name="mediakind", native_enum=False, length=16),
            nullable=False,
        ),
        sa.Column("risk_score", sa.Integer(), nullable=False),
        sa.Column("request_token", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("risk_score BETWEEN 0 AND 100", name="ck_scan_risk_score"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "request_token", name="uq_scan_user_request_token"),
    )
    op.create_index("ix_scan_user_id_created_at", "scan", ["user_id", "created_at"])

    op.create_table(
        "user_stats",
        sa.Column("user_id", sa.String(length=320), nullable=False),
        sa.Column("scan_count", sa.Integer(), nullable=False),
        sa.Column("post_count", sa.Integer(), nullable=False),
        sa.Column("total_likes_received", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("user_id"),
    )

    op.create_table(
        "stats_audit",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(length=320), nullable=False),
        sa.Column("field", sa.String(length=64), nullable=False),
        sa.Column("stored_value", sa.Integer(), nullable=False),
        sa.Column("computed_value", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_stats_audit_user_id", "stats_audit", ["user_id"])


def downgrade() -> None:
    """Drop every engagement table."""
    op.drop_index("ix_stats_audit_user_id", table_name="stats_audit")
    op.drop_table("stats_audit")
    op.drop_table("user_stats")
    op.drop_index("ix_scan_user_id_created_at", table_name="scan")
    op.drop_table("scan")
    op.drop_index("ix_post_comment_post_id", table_name="post_comment")
    op.drop_table("post_comment")
    op.drop_index("ix_post_like_user_id", table_name="post_like")
    op.drop_table("post_like")
    op.drop_index("ix_post_created_at", table_name="post")
    op.drop_index("ix_post_author_id", table_name="post")
    op.drop_table("post")
