# tests/test_reconciler.py
"""Tests for recomputing statistics from the event store."""

import pytest
from sqlalchemy import select, update

from engagement_ledger.core.errors import ConsistencyError
from engagement_ledger.models import StatsAuditEntry, UserStats


def _corrupt(session_factory, user_id: str, **values: int) -> None:
    with session_factory() as db, db.begin():
        db.execute(update(UserStats).where(UserStats.user_id == user_id).values(**values))


def _audit(session_factory, user_id: str) -> list[StatsAuditEntry]:
    with session_factory() as db:
        return list(
            db.execute(
                select(StatsAuditEntry)
                .where(StatsAuditEntry.user_id == user_id)
                .order_by(StatsAuditEntry.field)
            ).scalars()
        )


def test_recalculate_repairs_drift_and_audits(gateway, reconciler, session_factory) -> None:
    post = gateway.create_post("alice", "hello")
    gateway.toggle_like(post.id, "bob")
    gateway.submit_scan("alice", "Authentic", "image", 12)
    _corrupt(session_factory, "alice", post_count=7, total_likes_received=0)

    stats = reconciler.recalculate("alice")

    assert (stats.scan_count, stats.post_count, stats.total_likes_received) == (1, 1, 1)
    entries = _audit(session_factory, "alice")
    assert [(e.field, e.stored_value, e.computed_value) for e in entries] == [
        ("post_count", 7, 1),
        ("total_likes_received", 0, 1),
    ]


def test_recalculate_is_idempotent(gateway, reconciler, session_factory) -> None:
    gateway.create_post("alice", "steady")
    _corrupt(session_factory, "alice", post_count=3)

    reconciler.recalculate("alice")
    with session_factory() as db:
        first = db.get(UserStats, "alice")
    reconciler.recalculate("alice")
    with session_factory() as db:
        second = db.get(UserStats, "alice")

    assert first.post_count == second.post_count == 1
    assert second.updated_at == first.updated_at
    assert len(_audit(session_factory, "alice")) == 1


def test_recalculate_unknown_user_creates_zero_row(reconciler) -> None:
    stats = reconciler.recalculate("ghost")

    assert (stats.scan_count, stats.post_count, stats.total_likes_received) == (0, 0, 0)


def test_recalculate_all_covers_every_user(gateway, reconciler, session_factory, assert_consistent) -> None:
    first = gateway.create_post("alice", "one")
    gateway.create_post("bob", "two")
    gateway.toggle_like(first.id, "carol")
    gateway.submit_scan("dave", "Suspect", "audio", 70)
    _corrupt(session_factory, "alice", total_likes_received=40)
    _corrupt(session_factory, "dave", scan_count=0)

    processed = reconciler.recalculate_all()

    assert processed == 3
    assert_consistent()


def test_recalculate_all_refuses_orphans(gateway, reconciler, session_factory, insert_orphan_like) -> None:
    gateway.create_post("alice", "fine")
    _corrupt(session_factory, "alice", post_count=9)
    insert_orphan_like(987, "carol")

    with pytest.raises(ConsistencyError):
        reconciler.recalculate_all()

    with session_factory() as db:
        assert db.get(UserStats, "alice").post_count == 9
