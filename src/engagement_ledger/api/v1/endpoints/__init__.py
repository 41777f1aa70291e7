"""API endpoint modules."""

from .comments import router as comments_router
from .posts import router as posts_router
from .scans import router as scans_router
from .stats import router as stats_router

__all__ = ["comments_router", "posts_router", "scans_router", "stats_router"]
