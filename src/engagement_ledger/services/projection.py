"""Incremental maintenance of the per-user ``UserStats`` projection."""

from __future__ import annotations

from sqlalchemy import case, select
from sqlalchemy.orm import Session

from engagement_ledger.db.dialect import dialect_insert
from engagement_ledger.db.time import utcnow
from engagement_ledger.models import UserStats
from engagement_ledger.services.event_store import UserAggregate

COUNTER_FIELDS = ("scan_count", "post_count", "total_likes_received")

_stats = UserStats.__table__


class CounterProjection:
    """Named counter updates applied in the same unit as each event write.

    Every mutation is a single ``INSERT ... ON CONFLICT DO UPDATE`` whose SET
    clause adds the delta to the stored value, so concurrent events on the
    same user serialize on the row lock instead of overwriting each other.
    """

    @staticmethod
    def _apply(db: Session, user_id: str, **deltas: int) -> None:
        now = utcnow()
        values: dict[str, object] = {"user_id": user_id, "updated_at": now}
        changes: dict[str, object] = {}
        for name in COUNTER_FIELDS:
            delta = int(deltas.get(name, 0))
            values[name] = max(delta, 0)
            if delta:
                column = _stats.c[name]
                changes[name] = case((column + delta < 0, 0), else_=column + delta)

        stmt = dialect_insert(db, _stats).values(**values)
        if changes:
            changes["updated_at"] = now
        else:
            # No counter moves; the no-op update still takes the row lock.
            changes["user_id"] = stmt.excluded.user_id
        stmt = stmt.on_conflict_do_update(index_elements=[_stats.c.user_id], set_=changes)
        db.execute(stmt)

    def on_post_created(self, db: Session, author_id: str) -> None:
        """Count a new post for its author."""
        self._apply(db, author_id, post_count=1)

    def on_post_deleted(self, db: Session, author_id: str, likes_lost: int) -> None:
        """Remove a deleted post and its likes from the author's counters."""
        self._apply(db, author_id, post_count=-1, total_likes_received=-int(likes_lost))

    def on_scan_created(self, db: Session, user_id: str) -> None:
        """Count a newly recorded scan."""
        self._apply(db, user_id, scan_count=1)

    def on_like_delta(self, db: Session, author_id: str, delta: int) -> None:
        """Adjust the likes an author has received by ``delta``."""
        if delta:
            self._apply(db, author_id, total_likes_received=delta)

    def read(self, db: Session, user_id: str) -> UserStats:
        """Return the stored row, or an unsaved zero-valued row if none exists."""
        row = db.get(UserStats, user_id, populate_existing=True)
        if row is None:
            return UserStats(
                user_id=user_id,
                scan_count=0,
                post_count=0,
                total_likes_received=0,
                updated_at=None,
            )
        return row

    def lock(self, db: Session, user_id: str) -> UserStats:
        """Create the row if missing and hold its lock until the unit ends."""
        self._apply(db, user_id)
        return db.execute(
            select(UserStats)
            .where(UserStats.user_id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one()

    def replace(self, db: Session, user_id: str, aggregate: UserAggregate) -> UserStats:
        """Overwrite a row with recomputed values; untouched if already equal."""
        row = self.lock(db, user_id)
        changed = False
        for name in COUNTER_FIELDS:
            value = getattr(aggregate, name)
            if getattr(row, name) != value:
                setattr(row, name, value)
                changed = True
        if changed:
            row.updated_at = utcnow()
            db.flush()
        return row
