# src/engagement_ledger/api/v1/endpoints/comments.py
"""Comment endpoints that are not scoped to a post."""

from fastapi import APIRouter, Response, status

from engagement_ledger.api.v1.dependencies import CurrentUserDep, GatewayDep

router = APIRouter(prefix="/comments", tags=["comments"])


@router.delete("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_comment(comment_id: int, user_id: CurrentUserDep, gateway: GatewayDep) -> Response:
    """Delete a comment written by the caller."""
    gateway.delete_comment(comment_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
