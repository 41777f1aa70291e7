# src/engagement_ledger/main.py
"""Main entry point for the engagement ledger API."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from engagement_ledger.api.v1 import (
    comments_router,
    posts_router,
    scans_router,
    stats_router,
)
from engagement_ledger.api.v1.errors import register_exception_handlers
from engagement_ledger.core.settings import settings
from engagement_ledger.services.scan_tracker import get_scan_tracker

logger = logging.getLogger(__name__)

DESCRIPTION = "Posts, likes, comments and scan tracking with derived user statistics"

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description=DESCRIPTION,
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

register_exception_handlers(app)

# Include API routers
app.include_router(posts_router, prefix="/api/v1")
app.include_router(comments_router, prefix="/api/v1")
app.include_router(scans_router, prefix="/api/v1")
app.include_router(stats_router, prefix="/api/v1")


@app.on_event("startup")
async def on_startup() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("%s %s starting", settings.app_name, settings.app_version)


@app.on_event("shutdown")
def on_shutdown() -> None:
    pending = get_scan_tracker().pending_count
    if pending:
        logger.warning("Shutting down with %d scans still queued for tracking", pending)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": DESCRIPTION,
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("engagement_ledger.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
