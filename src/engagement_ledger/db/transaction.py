"""Atomic unit of work with bounded retries on storage contention."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TypeVar

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from engagement_ledger.core.errors import TransientError
from engagement_ledger.core.settings import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_in_transaction(
    factory: sessionmaker[Session],
    fn: Callable[[Session], T],
    *,
    label: str = "transaction",
    max_retries: int | None = None,
    backoff_seconds: float | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run ``fn`` inside one committed transaction.

    Every exception rolls the unit back. ``OperationalError`` (lock timeouts,
    busy databases, serialization failures) is retried with exponential
    backoff; any other exception propagates on the first attempt.

    Args:
        factory: Session factory bound to the target engine.
        fn: Callable receiving the open session; its return value is returned.
        label: Operation name used in log lines.
        max_retries: Retry budget; defaults to ``STORAGE_MAX_RETRIES``.
        backoff_seconds: First backoff step; defaults to
            ``STORAGE_RETRY_BACKOFF_SECONDS``.
        sleep: Sleep function, injectable for tests.

    Returns:
        Whatever ``fn`` returned.

    Raises:
        TransientError: If contention persists past the retry budget.
    """
    retries = settings.storage_max_retries if max_retries is None else max_retries
    delay = settings.storage_retry_backoff_seconds if backoff_seconds is None else backoff_seconds

    attempt = 0
    while True:
        try:
            with factory() as db, db.begin():
                return fn(db)
        except OperationalError as exc:
            if attempt >= retries:
                logger.error(
                    "%s gave up after %d attempts: %s", label, attempt + 1, exc.orig or exc
                )
                raise TransientError(
                    f"{label} could not complete due to storage contention",
                    retry_after=max(delay * (2 ** attempt), 1.0),
                ) from exc
            wait = delay * (2 ** attempt)
            attempt += 1
            logger.warning(
                "%s hit storage contention (attempt %d/%d), retrying in %.3fs: %s",
                label,
                attempt,
                retries + 1,
                wait,
                exc.orig or exc,
            )
            sleep(wait)
