# tests/v1/test_errors.py
"""Tests for the domain error handler."""

import asyncio
import json

import pytest
from fastapi import Request, status

from engagement_ledger.api.v1.errors import engagement_error_handler, status_for
from engagement_ledger.core.errors import (
    AuthorizationError,
    ConsistencyError,
    NotFoundError,
    TransientError,
    ValidationError,
)


def _request() -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/api/v1/posts/1",
        "query_string": b"",
        "headers": [],
    }
    return Request(scope)


@pytest.mark.parametrize(
    ("exc", "code"),
    [
        (ValidationError("bad"), status.HTTP_422_UNPROCESSABLE_ENTITY),
        (NotFoundError("gone"), status.HTTP_404_NOT_FOUND),
        (AuthorizationError("nope"), status.HTTP_403_FORBIDDEN),
        (TransientError("busy", retry_after=0.2), status.HTTP_503_SERVICE_UNAVAILABLE),
        (ConsistencyError("orphans"), status.HTTP_500_INTERNAL_SERVER_ERROR),
    ],
)
def test_handler_renders_each_error(exc, code) -> None:
    response = asyncio.run(engagement_error_handler(_request(), exc))

    assert status_for(exc) == code
    assert response.status_code == code
    assert json.loads(response.body) == {"detail": str(exc)}


def test_transient_error_sets_minimum_retry_after() -> None:
    response = asyncio.run(
        engagement_error_handler(_request(), TransientError("busy", retry_after=0.2))
    )

    assert response.headers["Retry-After"] == "1"
