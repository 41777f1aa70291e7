"""Dialect-specific INSERT constructs for upserts and set-style inserts."""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session


def dialect_insert(db: Session, model: Any) -> Any:
    """Return an ``insert`` for ``model`` that supports ``ON CONFLICT`` clauses.

    Args:
        db: Session whose bind decides the dialect.
        model: Mapped class or table to insert into.

    Raises:
        RuntimeError: If the backend has no ``ON CONFLICT`` support here.
    """
    name = db.get_bind().dialect.name
    if name == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif name == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:  # pragma: no cover - unsupported backends
        raise RuntimeError(f"Unsupported database dialect for upserts: {name}")
    return insert(model)
