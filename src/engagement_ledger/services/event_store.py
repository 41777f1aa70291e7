"""Durable storage of posts, comments and scans.

The event store is the source of truth for every engagement counter. Each
method works inside the caller's session so the gateway can commit the event
row and its counter update as one unit.
"""

from __future__ import annotations

import base64
import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from engagement_ledger.core.errors import AuthorizationError, NotFoundError, ValidationError
from engagement_ledger.core.security import is_privileged
from engagement_ledger.core.settings import settings
from engagement_ledger.models import Comment, MediaKind, Post, PostLike, Scan, ScanResult
from engagement_ledger.services.views import DeletedPost

logger = logging.getLogger(__name__)

RISK_SCORE_MIN = 0
RISK_SCORE_MAX = 100


@dataclass(frozen=True)
class PostCursor:
    """Keyset position in the newest-first post ordering."""

    created_at: datetime
    post_id: int

    def encode(self) -> str:
        """Return the opaque token handed to clients."""
        raw = f"{self.created_at.isoformat()}|{self.post_id}".encode()
        return base64.urlsafe_b64encode(raw).decode().rstrip("=")

    @classmethod
    def decode(cls, token: str) -> PostCursor:
        """Parse a token produced by :meth:`encode`.

        Raises:
            ValidationError: If the token is malformed.
        """
        padding = "=" * (-len(token) % 4)
        try:
            raw = base64.urlsafe_b64decode(token + padding).decode()
            stamp, post_id = raw.rsplit("|", 1)
            return cls(created_at=datetime.fromisoformat(stamp), post_id=int(post_id))
        except (ValueError, UnicodeDecodeError) as err:
            raise ValidationError("Malformed pagination cursor") from err

    @classmethod
    def after(cls, post: Post) -> PostCursor:
        return cls(created_at=post.created_at, post_id=post.id)


@dataclass(frozen=True)
class UserAggregate:
    """Counters recomputed from raw event rows for one user."""

    scan_count: int
    post_count: int
    total_likes_received: int


def _ensure_owner_or_privileged(owner_id: str, requester_id: str, noun: str) -> None:
    if owner_id != requester_id and not is_privileged(requester_id):
        raise AuthorizationError(f"You can only delete your own {noun}")


def _coerce_enum(enum_cls: type[ScanResult] | type[MediaKind], value: object, field: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError as err:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"{field} must be one of: {allowed}") from err


class EventStore:
    """Queryable storage for posts, comments and scans."""

    def __init__(
        self,
        *,
        post_max_length: int | None = None,
        comment_max_length: int | None = None,
    ) -> None:
        self.post_max_length = post_max_length or settings.post_max_length
        self.comment_max_length = comment_max_length or settings.comment_max_length

    # --- posts ---------------------------------------------------------------------

    def insert_post(
        self,
        db: Session,
        author_id: str,
        content: str,
        image_ref: str | None = None,
    ) -> Post:
        """Persist a new post.

        Raises:
            ValidationError: If the content is over the bound, or empty while
                no image is attached.
        """
        content = (content or "").strip()
        image_ref = image_ref or None
        if len(content) > self.post_max_length:
            raise ValidationError(
                f"Post content exceeds {self.post_max_length} characters"
            )
        if not content and image_ref is None:
            raise ValidationError("A post needs text or an image")

        post = Post(author_id=author_id, content=content, image_ref=image_ref, likes=[])
        db.add(post)
        db.flush()
        return post

    def get_post(self, db: Session, post_id: int, *, for_update: bool = False) -> Post:
        """Return a post, optionally locking its row for the rest of the unit.

        Raises:
            NotFoundError: If the post does not exist.
        """
        stmt = select(Post).where(Post.id == post_id).execution_options(populate_existing=True)
        if for_update:
            stmt = stmt.with_for_update()
        post = db.execute(stmt).scalars().first()
        if post is None:
            raise NotFoundError("Post not found")
        return post

    def delete_post(self, db: Session, post_id: int, requester_id: str) -> DeletedPost:
        """Delete a post, its comments and its like memberships.

        The post row is locked first so that concurrent like toggles either
        commit before the delete (and are counted in ``likes_lost``) or see
        the post as gone.

        Raises:
            NotFoundError: If the post does not exist.
            AuthorizationError: If the requester is neither author nor privileged.
        """
        post = self.get_post(db, post_id, for_update=True)
        _ensure_owner_or_privileged(post.author_id, requester_id, "posts")

        likes_lost = db.execute(
            select(func.count()).select_from(PostLike).where(PostLike.post_id == post_id)
        ).scalar_one()
        comments_removed = db.execute(
            Comment.__table__.delete().where(Comment.__table__.c.post_id == post_id)
        ).rowcount
        db.execute(PostLike.__table__.delete().where(PostLike.__table__.c.post_id == post_id))
        db.execute(Post.__table__.delete().where(Post.__table__.c.id == post_id))
        db.expunge(post)

        logger.info(
            "Deleted post %s by %s (comments=%d, likes=%d)",
            post_id,
            requester_id,
            comments_removed,
            likes_lost,
        )
        return DeletedPost(
            post_id=post_id,
            author_id=post.author_id,
            likes_lost=int(likes_lost),
            comments_removed=int(comments_removed or 0),
        )

    def list_posts(
        self,
        db: Session,
        *,
        limit: int,
        cursor: PostCursor | None = None,
    ) -> list[Post]:
        """Return up to ``limit`` posts ordered by ``created_at`` descending.

        Raises:
            ValidationError: If ``limit`` is below 1.
        """
        if limit < 1:
            raise ValidationError("limit must be at least 1")
        stmt = select(Post)
        if cursor is not None:
            stmt = stmt.where(
                or_(
                    Post.created_at < cursor.created_at,
                    and_(Post.created_at == cursor.created_at, Post.id < cursor.post_id),
                )
            )
        stmt = stmt.order_by(Post.created_at.desc(), Post.id.desc()).limit(limit)
        return list(db.execute(stmt).scalars())

    def comment_counts(self, db: Session, post_ids: Iterable[int]) -> dict[int, int]:
        """Return the number of comments for each of ``post_ids``."""
        ids = list(post_ids)
        if not ids:
            return {}
        rows = db.execute(
            select(Comment.post_id, func.count())
            .where(Comment.post_id.in_(ids))
            .group_by(Comment.post_id)
        ).all()
        counts = {post_id: 0 for post_id in ids}
        counts.update({post_id: int(total) for post_id, total in rows})
        return counts

    def like_count(self, db: Session, post_id: int) -> int:
        """Return the cardinality of the post's liked-by set."""
        return db.execute(
            select(func.count()).select_from(PostLike).where(PostLike.post_id == post_id)
        ).scalar_one()

    # --- comments ------------------------------------------------------------------

    def insert_comment(self, db: Session, post_id: int, author_id: str, content: str) -> Comment:
        """Attach a comment to an existing post.

        Raises:
            ValidationError: If the content is empty or over the bound.
            NotFoundError: If the post does not exist.
        """
        content = (content or "").strip()
        if not content:
            raise ValidationError("Comment content must not be empty")
        if len(content) > self.comment_max_length:
            raise ValidationError(
                f"Comment content exceeds {self.comment_max_length} characters"
            )
        self.get_post(db, post_id, for_update=True)

        comment = Comment(post_id=post_id, author_id=author_id, content=content)
        db.add(comment)
        db.flush()
        return comment

    def delete_comment(self, db: Session, comment_id: int, requester_id: str) -> Comment:
        """Delete a single comment.

        Raises:
            NotFoundError: If the comment does not exist.
            AuthorizationError: If the requester is neither author nor privileged.
        """
        comment = db.get(Comment, comment_id, with_for_update=True)
        if comment is None:
            raise NotFoundError("Comment not found")
        _ensure_owner_or_privileged(comment.author_id, requester_id, "comments")
        db.delete(comment)
        db.flush()
        return comment

    def list_comments(self, db: Session, post_id: int) -> list[Comment]:
        """Return a post's comments oldest first.

        Raises:
            NotFoundError: If the post does not exist.
        """
        self.get_post(db, post_id)
        return list(self.iter_comments(db, post_id))

    def iter_comments(self, db: Session, post_id: int) -> Iterator[Comment]:
        """Lazily yield a post's comments ordered by ``created_at`` ascending."""
        stmt = (
            select(Comment)
            .where(Comment.post_id == post_id)
            .order_by(Comment.created_at.asc(), Comment.id.asc())
        )
        yield from db.execute(stmt).scalars()

    # --- scans ---------------------------------------------------------------------

    def insert_scan(
        self,
        db: Session,
        user_id: str,
        result: ScanResult | str,
        media_kind: MediaKind | str,
        risk_score: int,
        *,
        request_token: str | None = None,
    ) -> tuple[Scan, bool]:
        """Append a scan record.

        Returns:
            The scan and whether it was newly created. A repeated
            ``request_token`` from the same user returns the scan already
            recorded under it.

        Raises:
            ValidationError: If the enums or the risk score are out of range.
        """
        result = _coerce_enum(ScanResult, result, "result")
        media_kind = _coerce_enum(MediaKind, media_kind, "media_kind")
        if (
            isinstance(risk_score, bool)
            or not isinstance(risk_score, int)
            or not RISK_SCORE_MIN <= risk_score <= RISK_SCORE_MAX
        ):
            raise ValidationError(
                f"risk_score must be an integer between {RISK_SCORE_MIN} and {RISK_SCORE_MAX}"
            )

        if request_token is not None:
            existing = self._scan_by_token(db, user_id, request_token)
            if existing is not None:
                return existing, False

        scan = Scan(
            user_id=user_id,
            result=result,
            media_kind=media_kind,
            risk_score=risk_score,
            request_token=request_token,
        )
        if request_token is None:
            db.add(scan)
            db.flush()
            return scan, True

        try:
            with db.begin_nested():
                db.add(scan)
                db.flush()
        except IntegrityError:
            existing = self._scan_by_token(db, user_id, request_token)
            if existing is None:
                raise
            return existing, False
        return scan, True

    def _scan_by_token(self, db: Session, user_id: str, request_token: str) -> Scan | None:
        return db.execute(
            select(Scan).where(Scan.user_id == user_id, Scan.request_token == request_token)
        ).scalars().first()

    def list_scans(self, db: Session, user_id: str, *, limit: int) -> list[Scan]:
        """Return a user's most recent scans, newest first."""
        stmt = (
            select(Scan)
            .where(Scan.user_id == user_id)
            .order_by(Scan.created_at.desc(), Scan.id.desc())
            .limit(limit)
        )
        return list(db.execute(stmt).scalars())

    # --- aggregates ----------------------------------------------------------------

    def aggregate_for_user(self, db: Session, user_id: str) -> UserAggregate:
        """Recompute a user's counters from raw rows."""
        post_count = db.execute(
            select(func.count()).select_from(Post).where(Post.author_id == user_id)
        ).scalar_one()
        scan_count = db.execute(
            select(func.count()).select_from(Scan).where(Scan.user_id == user_id)
        ).scalar_one()
        likes = db.execute(
            select(func.count())
            .select_from(PostLike)
            .join(Post, Post.id == PostLike.post_id)
            .where(Post.author_id == user_id)
        ).scalar_one()
        return UserAggregate(
            scan_count=int(scan_count),
            post_count=int(post_count),
            total_likes_received=int(likes),
        )

    def distinct_user_ids(self, db: Session) -> set[str]:
        """Return every user that authored a post or recorded a scan."""
        authors = db.execute(select(Post.author_id).distinct()).scalars()
        scanners = db.execute(select(Scan.user_id).distinct()).scalars()
        return set(authors) | set(scanners)

    def count_orphans(self, db: Session) -> dict[str, int]:
        """Count comments and like memberships whose post no longer exists."""
        orphan_comments = db.execute(
            select(func.count())
            .select_from(Comment)
            .outerjoin(Post, Post.id == Comment.post_id)
            .where(Post.id.is_(None))
        ).scalar_one()
        orphan_likes = db.execute(
            select(func.count())
            .select_from(PostLike)
            .outerjoin(Post, Post.id == PostLike.post_id)
            .where(Post.id.is_(None))
        ).scalar_one()
        return {"comments": int(orphan_comments), "likes": int(orphan_likes)}
