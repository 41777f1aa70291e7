"""Translation of domain errors into HTTP responses."""

from __future__ import annotations

import logging
import math

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from engagement_ledger.core.errors import (
    AuthorizationError,
    ConsistencyError,
    EngagementError,
    NotFoundError,
    TransientError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: dict[type[EngagementError], int] = {
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    AuthorizationError: status.HTTP_403_FORBIDDEN,
    TransientError: status.HTTP_503_SERVICE_UNAVAILABLE,
    ConsistencyError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for(exc: EngagementError) -> int:
    """Return the HTTP status code for a domain error."""
    for error_type in type(exc).__mro__:
        if error_type in _STATUS_BY_ERROR:
            return _STATUS_BY_ERROR[error_type]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def engagement_error_handler(request: Request, exc: EngagementError) -> JSONResponse:
    """Render an ``EngagementError`` as ``{"detail": message}``."""
    code = status_for(exc)
    headers: dict[str, str] = {}
    if isinstance(exc, TransientError):
        headers["Retry-After"] = str(max(1, math.ceil(exc.retry_after)))
    if code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=code, content={"detail": str(exc)}, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """Install the domain error handler on ``app``."""
    app.add_exception_handler(EngagementError, engagement_error_handler)
