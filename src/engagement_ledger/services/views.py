"""Immutable read models returned by the services."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from engagement_ledger.models import Post


@dataclass(frozen=True)
class PostView:
    """Snapshot of a post together with its derived counts."""

    id: int
    author_id: str
    content: str
    image_ref: str | None
    liked_by: list[str]
    like_count: int
    comment_count: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_post(cls, post: Post, *, comment_count: int = 0) -> PostView:
        """Build a view from a loaded ORM post."""
        liked_by = post.liked_by
        return cls(
            id=post.id,
            author_id=post.author_id,
            content=post.content,
            image_ref=post.image_ref,
            liked_by=liked_by,
            like_count=len(liked_by),
            comment_count=comment_count,
            created_at=post.created_at,
            updated_at=post.updated_at,
        )


@dataclass(frozen=True)
class PostPage:
    """One page of posts, newest first."""

    items: list[PostView] = field(default_factory=list)
    next_cursor: str | None = None


@dataclass(frozen=True)
class DeletedPost:
    """What a post deletion removed."""

    post_id: int
    author_id: str
    likes_lost: int
    comments_removed: int


@dataclass(frozen=True)
class LikeToggleResult:
    """Outcome of flipping one user's like on a post."""

    post_id: int
    liked: bool
    new_count: int
