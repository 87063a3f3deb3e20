# =============================================================================
# wedding_core/cache/__init__.py
# In-memory response cache and cross-cache invalidation
# =============================================================================

from .request_cache import (
    RequestCache,
    CacheEntry,
    cache_key,
    NON_CACHEABLE_METHODS,
    NON_CACHEABLE_ENDPOINTS,
)
from .invalidation import (
    InvalidationBus,
    OFFLINE_BUCKETS,
    DATA_TYPE_KEYS,
)

__all__ = [
    "RequestCache",
    "CacheEntry",
    "cache_key",
    "NON_CACHEABLE_METHODS",
    "NON_CACHEABLE_ENDPOINTS",
    "InvalidationBus",
    "OFFLINE_BUCKETS",
    "DATA_TYPE_KEYS",
]
