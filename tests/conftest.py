# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from engagement_ledger.api.v1 import dependencies  # noqa: E402
from engagement_ledger.core.security import create_access_token  # noqa: E402
from engagement_ledger.core.settings import settings  # noqa: E402
from engagement_ledger.db.session import (  # noqa: E402
    build_engine,
    build_session_factory,
    create_tables,
)
from engagement_ledger.main import app as fastapi_app  # noqa: E402
from engagement_ledger.models import UserStats  # noqa: E402
from engagement_ledger.services import (  # noqa: E402
    ConsistencyReconciler,
    CounterProjection,
    EngagementGateway,
    EventStore,
    ScanTracker,
)

ADMIN_USER_ID = "admin@example.org"


@pytest.fixture()
def engine(tmp_path) -> Iterator[Engine]:
    """File-backed SQLite database so concurrent threads get real connections."""
    engine = build_engine(f"sqlite:///{tmp_path / 'engagement.db'}", echo=False)
    create_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return build_session_factory(engine)


@pytest.fixture()
def db_session(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    """Plain session for inspecting committed state."""
    with session_factory() as session:
        yield session


@pytest.fixture()
def event_store() -> EventStore:
    return EventStore()


@pytest.fixture()
def projection() -> CounterProjection:
    return CounterProjection()


@pytest.fixture()
def gateway(session_factory: sessionmaker[Session]) -> EngagementGateway:
    return EngagementGateway(session_factory)


@pytest.fixture()
def tracker(gateway: EngagementGateway) -> ScanTracker:
    return ScanTracker(gateway, queue_size=10)


@pytest.fixture()
def reconciler(session_factory: sessionmaker[Session]) -> ConsistencyReconciler:
    return ConsistencyReconciler(session_factory)


@pytest.fixture()
def no_backoff(monkeypatch: pytest.MonkeyPatch) -> None:
    """Make storage retries immediate."""
    monkeypatch.setattr(settings, "storage_retry_backoff_seconds", 0.0)


@pytest.fixture()
def admin_user_id(monkeypatch: pytest.MonkeyPatch) -> str:
    """Register a privileged identity for the duration of the test."""
    monkeypatch.setattr(settings, "admin_user_ids", [ADMIN_USER_ID])
    return ADMIN_USER_ID


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_service_dependencies(
    app: FastAPI,
    gateway: EngagementGateway,
    tracker: ScanTracker,
    reconciler: ConsistencyReconciler,
) -> Iterator[None]:
    overrides = {
        dependencies.get_gateway_dep: lambda: gateway,
        dependencies.get_scan_tracker_dep: lambda: tracker,
        dependencies.get_reconciler_dep: lambda: reconciler,
    }
    app.dependency_overrides.update(overrides)
    try:
        yield
    finally:
        for dependency in overrides:
            app.dependency_overrides.pop(dependency, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def auth_headers() -> Callable[[str], dict[str, str]]:
    """Return a factory building bearer headers for a user id."""

    def _headers(user_id: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}

    return _headers


@pytest.fixture()
def insert_orphan_like(engine: Engine) -> Callable[[int, str], None]:
    """Return a helper that writes a like row pointing at a missing post."""

    def _insert(post_id: int, user_id: str) -> None:
        raw = engine.raw_connection()
        try:
            cursor = raw.cursor()
            cursor.execute("PRAGMA foreign_keys=OFF")
            cursor.execute(
                "INSERT INTO post_like (post_id, user_id, created_at) "
                "VALUES (?, ?, '2026-01-01 00:00:00.000000')",
                (post_id, user_id),
            )
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
            raw.commit()
        finally:
            raw.close()

    return _insert


@pytest.fixture()
def assert_consistent(
    session_factory: sessionmaker[Session],
    event_store: EventStore,
) -> Callable[[], None]:
    """Return a checker comparing every stored projection with the event store."""

    def _check() -> None:
        with session_factory() as db:
            assert event_store.count_orphans(db) == {"comments": 0, "likes": 0}
            user_ids = event_store.distinct_user_ids(db)
            user_ids.update(db.execute(select(UserStats.user_id)).scalars())
            for user_id in user_ids:
                stored = db.get(UserStats, user_id)
                expected = event_store.aggregate_for_user(db, user_id)
                actual = (
                    (stored.scan_count, stored.post_count, stored.total_likes_received)
                    if stored is not None
                    else (0, 0, 0)
                )
                assert actual == (
                    expected.scan_count,
                    expected.post_count,
                    expected.total_likes_received,
                ), user_id

    return _check
