# src/engagement_ledger/api/v1/endpoints/stats.py
"""User statistics and reconciliation endpoints."""

import logging

from fastapi import APIRouter

from engagement_ledger.api.v1.dependencies import AdminUserDep, GatewayDep, ReconcilerDep
from engagement_ledger.schemas.stats import ReconcileAllResponse, UserStatsResponse

router = APIRouter(prefix="/stats", tags=["stats"])
logger = logging.getLogger(__name__)


@router.post("/reconcile", response_model=ReconcileAllResponse)
def reconcile_all(admin_id: AdminUserDep, reconciler: ReconcilerDep) -> ReconcileAllResponse:
    """Recalculate every user's counters from the event store."""
    logger.info("Full reconciliation requested by %s", admin_id)
    return ReconcileAllResponse(processed=reconciler.recalculate_all())


@router.get("/{user_id}", response_model=UserStatsResponse)
def get_user_stats(user_id: str, gateway: GatewayDep):
    """Return a user's scan, post and like-received counters.

    Unknown users get zeroed counters rather than 404.
    """
    return gateway.get_user_stats(user_id)


@router.post("/{user_id}/reconcile", response_model=UserStatsResponse)
def reconcile_user(user_id: str, admin_id: AdminUserDep, reconciler: ReconcilerDep):
    """Recalculate one user's counters from the event store."""
    logger.info("Reconciliation of %s requested by %s", user_id, admin_id)
    return reconciler.recalculate(user_id)
