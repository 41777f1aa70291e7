# src/engagement_ledger/scripts/reconcile.py
"""
Maintenance job that repairs drifted user statistics.

Run periodically or after an incident to:
1. Retry scans still queued for tracking in this process
2. Recompute one user's counters, or every user's, from the event store
"""
from __future__ import annotations

import argparse
import logging
import sys

from engagement_ledger.core.errors import ConsistencyError, TransientError
from engagement_ledger.core.settings import settings
from engagement_ledger.services.reconciler import ConsistencyReconciler, get_reconciler
from engagement_ledger.services.scan_tracker import ScanTracker, get_scan_tracker

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Reconcile derived user statistics.")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--user", dest="user_id", help="Recalculate a single user")
    target.add_argument("--all", action="store_true", help="Recalculate every known user")
    parser.add_argument(
        "--flush-scans",
        action="store_true",
        help="Retry queued scan tracking before reconciling",
    )
    return parser


def main(
    argv: list[str] | None = None,
    *,
    reconciler: ConsistencyReconciler | None = None,
    tracker: ScanTracker | None = None,
) -> int:
    """Run the job and return a process exit code."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=settings.log_level.upper())
    reconciler = reconciler or get_reconciler()

    if args.flush_scans:
        recorded = (tracker or get_scan_tracker()).flush()
        print(f"Flushed {recorded} queued scans")

    try:
        if args.all:
            processed = reconciler.recalculate_all()
            print(f"Reconciled {processed} users")
        else:
            stats = reconciler.recalculate(args.user_id)
            print(
                f"Reconciled {stats.user_id}: scans={stats.scan_count} "
                f"posts={stats.post_count} likes={stats.total_likes_received}"
            )
    except ConsistencyError as exc:
        logger.error("Reconciliation aborted: %s", exc)
        return 2
    except TransientError as exc:
        logger.error("Storage unavailable, retry in %.1fs: %s", exc.retry_after, exc)
        return 75
    return 0


if __name__ == "__main__":
    sys.exit(main())
