"""Domain error taxonomy shared by the services and the HTTP layer."""

from __future__ import annotations


class EngagementError(RuntimeError):
    """Base class for every error raised by the engagement services."""


class ValidationError(EngagementError):
    """Input was malformed or oversized; rejected before any write."""


class NotFoundError(EngagementError):
    """A referenced entity is absent or was concurrently deleted."""


class AuthorizationError(EngagementError):
    """The requester lacks rights over the target entity."""


class TransientError(EngagementError):
    """Storage contention or timeout persisted past the retry budget.

    Safe to retry; ``retry_after`` is a hint in seconds.
    """

    def __init__(self, message: str, *, retry_after: float = 1.0) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class ConsistencyError(EngagementError):
    """The reconciler found an invariant violation it cannot explain."""
