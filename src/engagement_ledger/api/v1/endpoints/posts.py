# src/engagement_ledger/api/v1/endpoints/posts.py
"""Post and like endpoints."""

from fastapi import APIRouter, Query, status

from engagement_ledger.api.v1.dependencies import CurrentUserDep, GatewayDep
from engagement_ledger.schemas.comment import CommentCreate, CommentResponse
from engagement_ledger.schemas.post import (
    LikeToggleResponse,
    PostCreate,
    PostDeletedResponse,
    PostPageResponse,
    PostResponse,
)
from engagement_ledger.services.views import DeletedPost, LikeToggleResult, PostPage, PostView

router = APIRouter(prefix="/posts", tags=["posts"])


@router.get("/", response_model=PostPageResponse)
def list_posts(
    gateway: GatewayDep,
    limit: int = Query(50, ge=1, le=100, description="Maximum number of posts to return"),
    cursor: str | None = Query(None, description="Cursor returned by the previous page"),
) -> PostPage:
    """List posts newest first.

    Args:
        gateway: Engagement gateway
        limit: Maximum number of posts to return (max 100)
        cursor: Opaque cursor from a previous page

    Returns:
        One page of posts and the cursor for the next one
    """
    return gateway.list_posts(limit=limit, cursor=cursor)


@router.get("/{post_id}", response_model=PostResponse)
def get_post(post_id: int, gateway: GatewayDep) -> PostView:
    """Get a specific post with its like and comment counts."""
    return gateway.get_post(post_id)


@router.post("/", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
def create_post(
    post_data: PostCreate,
    user_id: CurrentUserDep,
    gateway: GatewayDep,
) -> PostView:
    """Create a new post authored by the caller.

    Args:
        post_data: Post text and optional image handle
        user_id: Authenticated caller
        gateway: Engagement gateway

    Returns:
        The created post
    """
    return gateway.create_post(user_id, post_data.content, post_data.image_ref)


@router.delete("/{post_id}", response_model=PostDeletedResponse)
def delete_post(post_id: int, user_id: CurrentUserDep, gateway: GatewayDep) -> DeletedPost:
    """Delete a post along with its comments and likes."""
    return gateway.delete_post(post_id, user_id)


@router.post("/{post_id}/like", response_model=LikeToggleResponse)
def toggle_like(post_id: int, user_id: CurrentUserDep, gateway: GatewayDep) -> LikeToggleResult:
    """Like the post, or remove the caller's like if already present."""
    return gateway.toggle_like(post_id, user_id)


@router.get("/{post_id}/comments", response_model=list[CommentResponse])
def list_comments(post_id: int, gateway: GatewayDep):
    """List a post's comments oldest first."""
    return gateway.list_comments(post_id)


@router.post(
    "/{post_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_comment(
    post_id: int,
    comment_data: CommentCreate,
    user_id: CurrentUserDep,
    gateway: GatewayDep,
):
    """Comment on a post."""
    return gateway.create_comment(post_id, user_id, comment_data.content)
