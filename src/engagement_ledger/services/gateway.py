"""Public façade composing the event store, like set and projection.

Every mutating call runs as one ``run_in_transaction`` unit: the event row and
its counter update commit together or not at all.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from sqlalchemy.orm import Session, sessionmaker

from engagement_ledger.core.errors import TransientError
from engagement_ledger.db.session import SessionLocal
from engagement_ledger.db.transaction import run_in_transaction
from engagement_ledger.models import Comment, MediaKind, Scan, ScanResult, UserStats
from engagement_ledger.services.event_store import EventStore, PostCursor
from engagement_ledger.services.like_set import LikeSetManager
from engagement_ledger.services.projection import CounterProjection
from engagement_ledger.services.views import DeletedPost, LikeToggleResult, PostPage, PostView

logger = logging.getLogger(__name__)


class EngagementGateway:
    """Atomic user-visible operations and the authorization boundary."""

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        *,
        event_store: EventStore | None = None,
        projection: CounterProjection | None = None,
        likes: LikeSetManager | None = None,
    ) -> None:
        self.session_factory = session_factory or SessionLocal
        self.event_store = event_store or EventStore()
        self.projection = projection or CounterProjection()
        self.likes = likes or LikeSetManager(
            event_store=self.event_store,
            projection=self.projection,
        )

    # --- posts ---------------------------------------------------------------------

    def create_post(self, author_id: str, content: str, image_ref: str | None = None) -> PostView:
        """Create a post and count it for its author."""

        def unit(db: Session) -> PostView:
            post = self.event_store.insert_post(db, author_id, content, image_ref)
            self.projection.on_post_created(db, author_id)
            return PostView.from_post(post)

        return run_in_transaction(self.session_factory, unit, label="create_post")

    def delete_post(self, post_id: int, requester_id: str) -> DeletedPost:
        """Delete a post with its comments and likes, updating the author's counters."""

        def unit(db: Session) -> DeletedPost:
            deleted = self.event_store.delete_post(db, post_id, requester_id)
            self.projection.on_post_deleted(db, deleted.author_id, deleted.likes_lost)
            return deleted

        return run_in_transaction(self.session_factory, unit, label="delete_post")

    def get_post(self, post_id: int) -> PostView:
        """Return one post with its counts."""

        def unit(db: Session) -> PostView:
            post = self.event_store.get_post(db, post_id)
            counts = self.event_store.comment_counts(db, [post.id])
            return PostView.from_post(post, comment_count=counts[post.id])

        return run_in_transaction(self.session_factory, unit, label="get_post")

    def list_posts(self, *, limit: int = 50, cursor: str | None = None) -> PostPage:
        """Return one page of posts, newest first."""
        position = PostCursor.decode(cursor) if cursor else None

        def unit(db: Session) -> PostPage:
            posts = self.event_store.list_posts(db, limit=limit, cursor=position)
            counts = self.event_store.comment_counts(db, (post.id for post in posts))
            items = [PostView.from_post(post, comment_count=counts[post.id]) for post in posts]
            next_cursor = (
                PostCursor.after(posts[-1]).encode() if posts and len(posts) == limit else None
            )
            return PostPage(items=items, next_cursor=next_cursor)

        return run_in_transaction(self.session_factory, unit, label="list_posts")

    def iter_posts(self, *, batch_size: int = 100) -> Iterator[PostView]:
        """Lazily yield every post, newest first; each call restarts from the top."""
        position: PostCursor | None = None
        while True:
            page = self.list_posts(
                limit=batch_size,
                cursor=position.encode() if position else None,
            )
            yield from page.items
            if page.next_cursor is None:
                return
            position = PostCursor.decode(page.next_cursor)

    # --- likes ---------------------------------------------------------------------

    def toggle_like(self, post_id: int, user_id: str) -> LikeToggleResult:
        """Flip a user's like on a post and adjust the author's like total."""
        return run_in_transaction(
            self.session_factory,
            lambda db: self.likes.toggle(db, post_id, user_id),
            label="toggle_like",
        )

    # --- comments ------------------------------------------------------------------

    def create_comment(self, post_id: int, author_id: str, content: str) -> Comment:
        """Attach a comment to a live post."""
        return run_in_transaction(
            self.session_factory,
            lambda db: self.event_store.insert_comment(db, post_id, author_id, content),
            label="create_comment",
        )

    def delete_comment(self, comment_id: int, requester_id: str) -> Comment:
        """Delete a comment owned by the requester (or any, if privileged)."""
        return run_in_transaction(
            self.session_factory,
            lambda db: self.event_store.delete_comment(db, comment_id, requester_id),
            label="delete_comment",
        )

    def list_comments(self, post_id: int) -> list[Comment]:
        """Return a post's comments oldest first."""
        return run_in_transaction(
            self.session_factory,
            lambda db: self.event_store.list_comments(db, post_id),
            label="list_comments",
        )

    # --- scans ---------------------------------------------------------------------

    def submit_scan(
        self,
        user_id: str,
        result: ScanResult | str,
        media_kind: MediaKind | str,
        risk_score: int,
        *,
        request_token: str | None = None,
    ) -> Scan:
        """Record a scan and count it; a repeated token is not counted twice."""

        def unit(db: Session) -> Scan:
            scan, created = self.event_store.insert_scan(
                db,
                user_id,
                result,
                media_kind,
                risk_score,
                request_token=request_token,
            )
            if created:
                self.projection.on_scan_created(db, user_id)
            return scan

        return run_in_transaction(self.session_factory, unit, label="submit_scan")

    def list_scans(self, user_id: str, *, limit: int) -> list[Scan]:
        """Return a user's scan history, newest first."""
        return run_in_transaction(
            self.session_factory,
            lambda db: self.event_store.list_scans(db, user_id, limit=limit),
            label="list_scans",
        )

    # --- stats ---------------------------------------------------------------------

    def get_user_stats(self, user_id: str) -> UserStats:
        """Return a user's counters; zeros when unknown or unreadable."""
        try:
            return run_in_transaction(
                self.session_factory,
                lambda db: self.projection.read(db, user_id),
                label="get_user_stats",
            )
        except TransientError:
            logger.warning("Serving zeroed statistics for %s: storage unavailable", user_id)
            return UserStats(
                user_id=user_id,
                scan_count=0,
                post_count=0,
                total_likes_received=0,
                updated_at=None,
            )


def get_gateway() -> EngagementGateway:
    """Return a gateway bound to the application session factory."""
    return EngagementGateway(SessionLocal)
