# =============================================================================
# wedding_core/realtime/__init__.py
# Real-Time Subscriptions over the Document Database
# =============================================================================

from .database import (
    Where,
    OrderBy,
    Limit,
    Constraint,
    RawDocument,
    DocumentDatabase,
    FirestoreDatabase,
    create_firestore_client,
)
from .emitter import SnapshotEmitter
from .stats import compute_stats, CombineLatest
from .service import RealtimeService, STATS_KEY

__all__ = [
    "Where",
    "OrderBy",
    "Limit",
    "Constraint",
    "RawDocument",
    "DocumentDatabase",
    "FirestoreDatabase",
    "create_firestore_client",
    "SnapshotEmitter",
    "compute_stats",
    "CombineLatest",
    "RealtimeService",
    "STATS_KEY",
]
