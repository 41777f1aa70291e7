# tests/test_event_store.py
"""Tests for the event store: posts, comments, scans and aggregates."""

import pytest

from engagement_ledger.core.errors import AuthorizationError, NotFoundError, ValidationError
from engagement_ledger.models import MediaKind, Post, Scan, ScanResult
from engagement_ledger.services.event_store import PostCursor


def test_insert_post_trims_content(session_factory, event_store) -> None:
    with session_factory() as db, db.begin():
        post = event_store.insert_post(db, "alice", "  hello world  ")
        post_id = post.id

    with session_factory() as db:
        stored = db.get(Post, post_id)
        assert stored.content == "hello world"
        assert stored.image_ref is None
        assert stored.liked_by == []


@pytest.mark.parametrize(
    ("content", "image_ref"),
    [("x" * 501, None), ("", None), ("   ", None)],
)
def test_insert_post_rejects_invalid_content(session_factory, event_store, content, image_ref) -> None:
    with session_factory() as db, db.begin():
        with pytest.raises(ValidationError):
            event_store.insert_post(db, "alice", content, image_ref)


def test_insert_post_accepts_boundary_and_image_only(session_factory, event_store) -> None:
    with session_factory() as db, db.begin():
        at_limit = event_store.insert_post(db, "alice", "y" * 500)
        image_only = event_store.insert_post(db, "alice", "", "media/abc123")

    assert len(at_limit.content) == 500
    assert image_only.content == ""
    assert image_only.image_ref == "media/abc123"


def test_get_post_missing_raises(session_factory, event_store) -> None:
    with session_factory() as db, db.begin():
        with pytest.raises(NotFoundError):
            event_store.get_post(db, 12345)


def test_delete_post_requires_author(session_factory, event_store) -> None:
    with session_factory() as db, db.begin():
        post_id = event_store.insert_post(db, "alice", "mine").id

    with session_factory() as db, db.begin():
        with pytest.raises(AuthorizationError):
            event_store.delete_post(db, post_id, "mallory")


def test_privileged_user_may_delete_any_post(session_factory, event_store, admin_user_id) -> None:
    with session_factory() as db, db.begin():
        post_id = event_store.insert_post(db, "alice", "spam").id

    with session_factory() as db, db.begin():
        deleted = event_store.delete_post(db, post_id, admin_user_id)

    assert deleted.author_id == "alice"
    with session_factory() as db:
        assert db.get(Post, post_id) is None


def test_delete_post_reports_what_it_removed(session_factory, event_store) -> None:
    with session_factory() as db, db.begin():
        post_id = event_store.insert_post(db, "alice", "popular").id
        event_store.insert_comment(db, post_id, "bob", "first")
        event_store.insert_comment(db, post_id, "carol", "second")

    with session_factory() as db, db.begin():
        deleted = event_store.delete_post(db, post_id, "alice")

    assert deleted.comments_removed == 2
    assert deleted.likes_lost == 0
    with session_factory() as db:
        assert event_store.count_orphans(db) == {"comments": 0, "likes": 0}


def test_list_posts_pages_newest_first(session_factory, event_store) -> None:
    with session_factory() as db, db.begin():
        ids = [event_store.insert_post(db, "alice", f"post {n}").id for n in range(5)]

    seen: list[int] = []
    cursor = None
    with session_factory() as db:
        while True:
            page = event_store.list_posts(db, limit=2, cursor=cursor)
            seen.extend(post.id for post in page)
            if len(page) < 2:
                break
            cursor = PostCursor.after(page[-1])

    assert seen == sorted(ids, reverse=True)


def test_list_posts_rejects_non_positive_limit(session_factory, event_store) -> None:
    with session_factory() as db, db.begin():
        event_store.insert_post(db, "alice", "only post")

    with session_factory() as db:
        with pytest.raises(ValidationError):
            event_store.list_posts(db, limit=0)


def test_cursor_rejects_garbage() -> None:
    with pytest.raises(ValidationError):
        PostCursor.decode("not-a-cursor")


@pytest.mark.parametrize("content", ["", "   ", "z" * 301])
def test_insert_comment_rejects_invalid_content(session_factory, event_store, content) -> None:
    with session_factory() as db, db.begin():
        post_id = event_store.insert_post(db, "alice", "topic").id
        with pytest.raises(ValidationError):
            event_store.insert_comment(db, post_id, "bob", content)


def test_insert_comment_on_missing_post(session_factory, event_store) -> None:
    with session_factory() as db, db.begin():
        with pytest.raises(NotFoundError):
            event_store.insert_comment(db, 999, "bob", "hello?")


def test_comments_are_listed_oldest_first(session_factory, event_store) -> None:
    with session_factory() as db, db.begin():
        post_id = event_store.insert_post(db, "alice", "topic").id
        for text in ("one", "two", "three"):
            event_store.insert_comment(db, post_id, "bob", text)

    with session_factory() as db:
        comments = event_store.list_comments(db, post_id)
        counts = event_store.comment_counts(db, [post_id, 404])

    assert [comment.content for comment in comments] == ["one", "two", "three"]
    assert counts == {post_id: 3, 404: 0}


def test_delete_comment_checks_owner(session_factory, event_store) -> None:
    with session_factory() as db, db.begin():
        post_id = event_store.insert_post(db, "alice", "topic").id
        comment_id = event_store.insert_comment(db, post_id, "bob", "hi").id

    with session_factory() as db, db.begin():
        with pytest.raises(AuthorizationError):
            event_store.delete_comment(db, comment_id, "alice")

    with session_factory() as db, db.begin():
        event_store.delete_comment(db, comment_id, "bob")

    with session_factory() as db, db.begin():
        with pytest.raises(NotFoundError):
            event_store.delete_comment(db, comment_id, "bob")


@pytest.mark.parametrize(
    ("result", "media_kind", "risk_score"),
    [
        ("Maybe", "image", 10),
        ("Authentic", "hologram", 10),
        ("Authentic", "image", 101),
        ("Authentic", "image", -1),
        ("Authentic", "image", True),
        ("Authentic", "image", "50"),
        ("Authentic", "image", 12.5),
    ],
)
def test_insert_scan_validation(session_factory, event_store, result, media_kind, risk_score) -> None:
    with session_factory() as db, db.begin():
        with pytest.raises(ValidationError):
            event_store.insert_scan(db, "alice", result, media_kind, risk_score)


def test_insert_scan_accepts_strings_and_bounds(session_factory, event_store) -> None:
    with session_factory() as db, db.begin():
        low, created_low = event_store.insert_scan(db, "alice", "Suspect", "video", 0)
        high, created_high = event_store.insert_scan(
            db, "alice", ScanResult.FABRICATED, MediaKind.AUDIO, 100
        )

    assert created_low and created_high
    assert low.result is ScanResult.SUSPECT
    assert low.media_kind is MediaKind.VIDEO
    assert high.risk_score == 100


def test_insert_scan_token_is_idempotent(session_factory, event_store) -> None:
    with session_factory() as db, db.begin():
        first, created = event_store.insert_scan(
            db, "alice", "Authentic", "image", 5, request_token="tok-1"
        )
    with session_factory() as db, db.begin():
        again, created_again = event_store.insert_scan(
            db, "alice", "Authentic", "image", 5, request_token="tok-1"
        )

    assert created is True
    assert created_again is False
    assert again.id == first.id
    with session_factory() as db:
        assert len(db.query(Scan).all()) == 1


def test_insert_scan_token_is_scoped_to_its_user(session_factory, event_store) -> None:
    with session_factory() as db, db.begin():
        mine, _ = event_store.insert_scan(
            db, "alice", "Authentic", "image", 10, request_token="shared"
        )
    with session_factory() as db, db.begin():
        theirs, created = event_store.insert_scan(
            db, "bob", "Fabricated", "video", 90, request_token="shared"
        )
        theirs_id = theirs.id

    assert created is True
    assert theirs_id != mine.id
    with session_factory() as db:
        stored = db.get(Scan, theirs_id)
        assert stored.user_id == "bob"
        assert stored.result is ScanResult.FABRICATED
        assert stored.risk_score == 90


def test_list_scans_newest_first_with_limit(session_factory, event_store) -> None:
    with session_factory() as db, db.begin():
        ids = [event_store.insert_scan(db, "alice", "Authentic", "image", n)[0].id for n in range(4)]
        event_store.insert_scan(db, "bob", "Suspect", "image", 50)

    with session_factory() as db:
        scans = event_store.list_scans(db, "alice", limit=3)

    assert [scan.id for scan in scans] == sorted(ids, reverse=True)[:3]
    assert {scan.user_id for scan in scans} == {"alice"}


def test_aggregate_for_user(session_factory, event_store) -> None:
    with session_factory() as db, db.begin():
        event_store.insert_post(db, "alice", "hello")
        event_store.insert_post(db, "bob", "other")
        event_store.insert_scan(db, "alice", "Authentic", "image", 1)

    with session_factory() as db:
        aggregate = event_store.aggregate_for_user(db, "alice")
        users = event_store.distinct_user_ids(db)

    assert (aggregate.scan_count, aggregate.post_count, aggregate.total_likes_received) == (1, 1, 0)
    assert users == {"alice", "bob"}
