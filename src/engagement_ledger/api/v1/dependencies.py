"""Shared API dependencies for authentication and service wiring."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from engagement_ledger.core.security import decode_subject, is_privileged
from engagement_ledger.services.gateway import EngagementGateway, get_gateway
from engagement_ledger.services.reconciler import ConsistencyReconciler, get_reconciler
from engagement_ledger.services.scan_tracker import ScanTracker, get_scan_tracker

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()


def get_gateway_dep() -> EngagementGateway:
    """Return the engagement gateway."""
    return get_gateway()


def get_scan_tracker_dep() -> ScanTracker:
    """Return the shared best-effort scan tracker."""
    return get_scan_tracker()


def get_reconciler_dep() -> ConsistencyReconciler:
    """Return the statistics reconciler."""
    return get_reconciler()


def get_current_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
) -> str:
    """Return the user id carried by the bearer token.

    Args:
        credentials: HTTP Bearer token credentials

    Returns:
        The opaque user id issued by the identity provider

    Raises:
        HTTPException: If the token does not verify
    """
    subject = decode_subject(credentials.credentials)
    if subject is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )
    return subject


def require_privileged_user(
    user_id: Annotated[str, Depends(get_current_user_id)],
) -> str:
    """Return the caller's id if they are a privileged actor.

    Raises:
        HTTPException: If the caller is not privileged
    """
    if not is_privileged(user_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator privileges required",
        )
    return user_id


# Type aliases for dependencies
GatewayDep = Annotated[EngagementGateway, Depends(get_gateway_dep)]
ScanTrackerDep = Annotated[ScanTracker, Depends(get_scan_tracker_dep)]
ReconcilerDep = Annotated[ConsistencyReconciler, Depends(get_reconciler_dep)]
CurrentUserDep = Annotated[str, Depends(get_current_user_id)]
AdminUserDep = Annotated[str, Depends(require_privileged_user)]
