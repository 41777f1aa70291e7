# src/engagement_ledger/api/v1/endpoints/scans.py
"""Scan reporting and history endpoints."""

from fastapi import APIRouter, Query, Response, status

from engagement_ledger.api.v1.dependencies import (
    AdminUserDep,
    CurrentUserDep,
    GatewayDep,
    ScanTrackerDep,
)
from engagement_ledger.core.errors import AuthorizationError
from engagement_ledger.core.security import is_privileged
from engagement_ledger.core.settings import settings
from engagement_ledger.schemas.scan import (
    ScanCreate,
    ScanFlushResponse,
    ScanResponse,
    ScanTrackingResponse,
)

router = APIRouter(prefix="/scans", tags=["scans"])


@router.post("/", response_model=ScanTrackingResponse, status_code=status.HTTP_201_CREATED)
def submit_scan(
    scan_data: ScanCreate,
    user_id: CurrentUserDep,
    tracker: ScanTrackerDep,
    response: Response,
) -> ScanTrackingResponse:
    """Report a completed scan.

    Recording is best-effort: a storage failure queues the scan and answers
    202 instead of failing the caller's analysis.

    Args:
        scan_data: Verdict, media kind and risk score of the scan
        user_id: Authenticated caller
        tracker: Best-effort scan tracker
        response: Outgoing response, used to downgrade the status code

    Returns:
        Whether the scan was recorded or queued
    """
    outcome = tracker.track(
        user_id,
        scan_data.result,
        scan_data.media_kind,
        scan_data.risk_score,
        request_token=scan_data.request_token,
    )
    if not outcome.tracked:
        response.status_code = status.HTTP_202_ACCEPTED
    return ScanTrackingResponse(
        tracked=outcome.tracked,
        queued=outcome.queued,
        scan=ScanResponse.model_validate(outcome.scan) if outcome.scan else None,
    )


@router.get("/", response_model=list[ScanResponse])
def list_scans(
    user_id: CurrentUserDep,
    gateway: GatewayDep,
    limit: int | None = Query(None, ge=1, le=100, description="Maximum number of scans"),
    subject: str | None = Query(None, alias="user_id", description="Whose history to read"),
):
    """List the caller's scan history, newest first.

    Privileged callers may read another user's history through ``user_id``.
    """
    target = subject or user_id
    if target != user_id and not is_privileged(user_id):
        raise AuthorizationError("You can only view your own scan history")
    return gateway.list_scans(target, limit=limit or settings.scan_history_default_limit)


@router.post("/flush", response_model=ScanFlushResponse)
def flush_scans(admin_id: AdminUserDep, tracker: ScanTrackerDep) -> ScanFlushResponse:
    """Retry scans whose recording previously failed."""
    recorded = tracker.flush()
    return ScanFlushResponse(recorded=recorded, pending=tracker.pending_count)

