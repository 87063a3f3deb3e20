# =============================================================================
# wedding_core/offline/__init__.py
# Offline Support: durable cache and network status
# =============================================================================

from .local_store import (
    StoreResult,
    DurableStore,
    MemoryStore,
    JsonFileStore,
    open_store,
)
from .offline_cache import OfflineCache
from .connection_manager import (
    ConnectionStatus,
    ConnectionState,
    NetworkStatus,
)

__all__ = [
    "StoreResult",
    "DurableStore",
    "MemoryStore",
    "JsonFileStore",
    "open_store",
    "OfflineCache",
    "ConnectionStatus",
    "ConnectionState",
    "NetworkStatus",
]
