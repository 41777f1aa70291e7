"""Database session configuration."""

from __future__ import annotations

from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from engagement_ledger.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


# Ensure model modules are imported so that metadata is populated when create_all runs.
import engagement_ledger.models  # noqa: E402,F401


def _install_sqlite_locking(engine: Engine) -> None:
    """Make every SQLite transaction take the write lock at BEGIN.

    SQLite has no row locks, so BEGIN IMMEDIATE stands in for FOR UPDATE.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection: Any, connection_record: Any) -> None:  # pragma: no cover - driver hook
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn: Any) -> None:  # pragma: no cover - driver hook
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(url: str | None = None, *, echo: bool | None = None) -> Engine:
    """Create an engine with lock timeouts bounded by ``STORAGE_TIMEOUT_SECONDS``.

    Args:
        url: Database URL; defaults to ``settings.database_url``.
        echo: Override for SQL echo; defaults to ``settings.sql_debug``.

    Returns:
        A configured SQLAlchemy engine.
    """
    url = url or settings.database_url
    timeout = float(settings.storage_timeout_seconds)
    connect_args: dict[str, Any] = {}
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": timeout}
    elif url.startswith("postgresql"):
        connect_args = {"options": f"-c lock_timeout={int(timeout * 1000)}"}

    engine = create_engine(
        url,
        pool_pre_ping=True,
        echo=settings.sql_debug if echo is None else echo,
        connect_args=connect_args,
    )
    if engine.dialect.name == "sqlite":
        _install_sqlite_locking(engine)
    return engine


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Return a session factory whose objects stay readable after commit."""
    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


engine = build_engine()

SessionLocal = build_session_factory(engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a database session for dependency injection."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables(bind: Engine | None = None) -> None:
    """Create all database tables."""
    Base.metadata.create_all(bind=bind or engine)


def drop_tables(bind: Engine | None = None) -> None:
    """Drop all database tables."""
    Base.metadata.drop_all(bind=bind or engine)
