"""Atomic membership changes on a post's liked-by set."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from engagement_ledger.core.errors import NotFoundError
from engagement_ledger.db.dialect import dialect_insert
from engagement_ledger.models import Post, PostLike
from engagement_ledger.services.event_store import EventStore
from engagement_ledger.services.projection import CounterProjection
from engagement_ledger.services.views import LikeToggleResult

logger = logging.getLogger(__name__)

_likes = PostLike.__table__


class LikeSetManager:
    """Adds and removes single members of ``Post.likedBy``.

    Membership lives in ``post_like`` rows keyed by ``(post_id, user_id)``;
    add and remove are single idempotent statements, never a rewrite of the
    whole set.
    """

    def __init__(
        self,
        *,
        event_store: EventStore | None = None,
        projection: CounterProjection | None = None,
    ) -> None:
        self.event_store = event_store or EventStore()
        self.projection = projection or CounterProjection()

    @staticmethod
    def add(db: Session, post_id: int, user_id: str) -> int:
        """Insert the membership; returns 1 if added, 0 if already present."""
        stmt = (
            dialect_insert(db, _likes)
            .values(post_id=post_id, user_id=user_id)
            .on_conflict_do_nothing(index_elements=[_likes.c.post_id, _likes.c.user_id])
        )
        return db.execute(stmt).rowcount or 0

    @staticmethod
    def remove(db: Session, post_id: int, user_id: str) -> int:
        """Delete the membership; returns 1 if removed, 0 if absent."""
        stmt = _likes.delete().where(
            _likes.c.post_id == post_id,
            _likes.c.user_id == user_id,
        )
        return db.execute(stmt).rowcount or 0

    @staticmethod
    def is_member(db: Session, post_id: int, user_id: str) -> bool:
        return db.execute(
            select(PostLike.user_id).where(
                PostLike.post_id == post_id,
                PostLike.user_id == user_id,
            )
        ).first() is not None

    def toggle(self, db: Session, post_id: int, user_id: str) -> LikeToggleResult:
        """Flip ``user_id``'s like on ``post_id`` and adjust the author's total.

        The post row is locked for the rest of the unit, which orders this
        toggle against a concurrent deletion of the same post.

        Raises:
            NotFoundError: If the post does not exist.
        """
        author_id = db.execute(
            select(Post.author_id).where(Post.id == post_id).with_for_update()
        ).scalar_one_or_none()
        if author_id is None:
            raise NotFoundError("Post not found")

        if self.remove(db, post_id, user_id):
            liked, delta = False, -1
        else:
            liked, delta = True, self.add(db, post_id, user_id)

        self.projection.on_like_delta(db, author_id, delta)
        new_count = self.event_store.like_count(db, post_id)
        logger.debug(
            "User %s %s post %s (count=%d)",
            user_id,
            "liked" if liked else "unliked",
            post_id,
            new_count,
        )
        return LikeToggleResult(post_id=post_id, liked=liked, new_count=new_count)
