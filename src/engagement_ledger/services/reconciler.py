"""Out-of-band repair of ``UserStats`` drift from the event store."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from engagement_ledger.core.errors import ConsistencyError
from engagement_ledger.db.session import SessionLocal
from engagement_ledger.db.transaction import run_in_transaction
from engagement_ledger.models import StatsAuditEntry, UserStats
from engagement_ledger.services.event_store import EventStore
from engagement_ledger.services.projection import COUNTER_FIELDS, CounterProjection

logger = logging.getLogger(__name__)


class ConsistencyReconciler:
    """Recomputes projections from first principles.

    Reads the event store and overwrites ``UserStats``; never the reverse.
    Each user is recalculated in its own unit holding that user's row lock,
    so live increments for the user wait for, rather than interleave with,
    the recalculation.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        *,
        event_store: EventStore | None = None,
        projection: CounterProjection | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.event_store = event_store or EventStore()
        self.projection = projection or CounterProjection()

    def _recalculate(self, db: Session, user_id: str) -> UserStats:
        stored = self.projection.lock(db, user_id)
        before = {name: getattr(stored, name) for name in COUNTER_FIELDS}
        aggregate = self.event_store.aggregate_for_user(db, user_id)

        for name in COUNTER_FIELDS:
            computed = getattr(aggregate, name)
            if before[name] != computed:
                logger.warning(
                    "Drift for user %s: %s stored=%d computed=%d",
                    user_id,
                    name,
                    before[name],
                    computed,
                )
                db.add(
                    StatsAuditEntry(
                        user_id=user_id,
                        field=name,
                        stored_value=before[name],
                        computed_value=computed,
                    )
                )
        return self.projection.replace(db, user_id, aggregate)

    def recalculate(self, user_id: str) -> UserStats:
        """Recompute and overwrite one user's counters in a single unit.

        Idempotent: repeated calls with no activity in between leave the row
        unchanged.
        """
        return run_in_transaction(
            self.session_factory,
            lambda db: self._recalculate(db, user_id),
            label="recalculate",
        )

    def check_integrity(self) -> None:
        """Verify that no comment or like references a missing post.

        Raises:
            ConsistencyError: If orphaned rows exist.
        """
        orphans = run_in_transaction(
            self.session_factory,
            self.event_store.count_orphans,
            label="check_integrity",
        )
        if any(orphans.values()):
            logger.error(
                "Event store integrity violation: %d orphan comments, %d orphan likes",
                orphans["comments"],
                orphans["likes"],
            )
            raise ConsistencyError(
                f"Orphaned event rows found: {orphans['comments']} comments, "
                f"{orphans['likes']} likes"
            )

    def _user_ids(self, db: Session) -> list[str]:
        user_ids = self.event_store.distinct_user_ids(db)
        user_ids.update(db.execute(select(UserStats.user_id)).scalars())
        return sorted(user_ids)

    def recalculate_all(self) -> int:
        """Recalculate every user with events or an existing stats row.

        Intended for maintenance runs. Users are processed one unit at a time.

        Returns:
            The number of users processed.

        Raises:
            ConsistencyError: If the integrity check fails; no user is touched.
        """
        self.check_integrity()
        user_ids = run_in_transaction(self.session_factory, self._user_ids, label="list_users")
        for user_id in user_ids:
            self.recalculate(user_id)
        logger.info("Reconciled statistics for %d users", len(user_ids))
        return len(user_ids)


def get_reconciler() -> ConsistencyReconciler:
    """Return a reconciler bound to the application session factory."""
    return ConsistencyReconciler(SessionLocal)
