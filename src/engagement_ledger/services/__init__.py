# src/engagement_ledger/services/__init__.py
"""Business logic services for the engagement ledger."""

from .event_store import EventStore
from .gateway import EngagementGateway
from .like_set import LikeSetManager
from .projection import CounterProjection
from .reconciler import ConsistencyReconciler
from .scan_tracker import ScanTracker

__all__ = [
    "ConsistencyReconciler",
    "CounterProjection",
    "EngagementGateway",
    "EventStore",
    "LikeSetManager",
    "ScanTracker",
]
