"""Best-effort scan tracking that never fails the action that triggered it.

A completed analysis must not be reverted or retried because recording it
failed. ``ScanTracker.track`` therefore never raises: invalid submissions are
logged and dropped, storage failures are logged and queued for ``flush``.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections import deque
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from engagement_ledger.core.errors import EngagementError, TransientError, ValidationError
from engagement_ledger.core.settings import settings
from engagement_ledger.models import MediaKind, Scan, ScanResult
from engagement_ledger.services.gateway import EngagementGateway, get_gateway

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PendingScan:
    """A scan whose recording failed and awaits another attempt."""

    user_id: str
    result: ScanResult | str
    media_kind: MediaKind | str
    risk_score: int
    request_token: str


@dataclass(frozen=True)
class TrackingOutcome:
    """Result of one tracking attempt."""

    scan: Scan | None
    queued: bool

    @property
    def tracked(self) -> bool:
        return self.scan is not None


class ScanTracker:
    """Records scans through the gateway behind a never-propagate contract."""

    def __init__(self, gateway: EngagementGateway, *, queue_size: int | None = None) -> None:
        self.gateway = gateway
        self._pending: deque[PendingScan] = deque(
            maxlen=queue_size or settings.scan_tracking_queue_size
        )
        self._lock = threading.Lock()

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def _enqueue(self, pending: PendingScan) -> None:
        with self._lock:
            if len(self._pending) == self._pending.maxlen:
                dropped = self._pending.popleft()
                logger.error(
                    "Scan tracking queue full; dropping oldest pending scan %s for %s",
                    dropped.request_token,
                    dropped.user_id,
                )
            self._pending.append(pending)

    def _record(self, pending: PendingScan) -> Scan:
        return self.gateway.submit_scan(
            pending.user_id,
            pending.result,
            pending.media_kind,
            pending.risk_score,
            request_token=pending.request_token,
        )

    def track(
        self,
        user_id: str,
        result: ScanResult | str,
        media_kind: MediaKind | str,
        risk_score: int,
        *,
        request_token: str | None = None,
    ) -> TrackingOutcome:
        """Record a scan; never raises.

        Every submission carries a request token, so a queued retry of a
        write whose commit outcome was unknown is not counted twice.
        """
        pending = PendingScan(
            user_id=user_id,
            result=result,
            media_kind=media_kind,
            risk_score=risk_score,
            request_token=request_token or uuid.uuid4().hex,
        )
        try:
            scan = self._record(pending)
        except ValidationError as exc:
            logger.warning("Dropping invalid scan for %s: %s", user_id, exc)
            return TrackingOutcome(scan=None, queued=False)
        except (TransientError, SQLAlchemyError):
            logger.error(
                "Failed to track scan %s for %s; queued for retry",
                pending.request_token,
                user_id,
                exc_info=True,
            )
            self._enqueue(pending)
            return TrackingOutcome(scan=None, queued=True)
        except EngagementError:
            logger.error("Failed to track scan for %s", user_id, exc_info=True)
            return TrackingOutcome(scan=None, queued=False)

        logger.debug("Tracked scan %s for %s", scan.id, user_id)
        return TrackingOutcome(scan=scan, queued=False)

    def flush(self) -> int:
        """Retry queued scans in arrival order.

        Stops at the first storage failure, leaving it and everything behind
        it queued.

        Returns:
            The number of scans recorded.
        """
        recorded = 0
        while True:
            with self._lock:
                if not self._pending:
                    break
                pending = self._pending[0]
            try:
                self._record(pending)
            except (TransientError, SQLAlchemyError):
                logger.warning(
                    "Scan tracking flush stopped with %d pending", self.pending_count
                )
                break
            except EngagementError:
                logger.error(
                    "Discarding unrecordable pending scan %s", pending.request_token, exc_info=True
                )
            else:
                recorded += 1
            with self._lock:
                if self._pending and self._pending[0] is pending:
                    self._pending.popleft()
        if recorded:
            logger.info("Flushed %d pending scans", recorded)
        return recorded


_TRACKER: ScanTracker | None = None
_TRACKER_LOCK = threading.Lock()


def get_scan_tracker() -> ScanTracker:
    """Return the process-wide tracker; its pending queue is shared."""
    global _TRACKER
    with _TRACKER_LOCK:
        if _TRACKER is None:
            _TRACKER = ScanTracker(get_gateway())
        return _TRACKER
