# =============================================================================
# wedding_core/cache/invalidation.py
# Cross-Cache Invalidation Bus
# =============================================================================
"""
InvalidationBus - drops stale data from both cache tiers after a mutation
and tells interested views to refetch.

Resource keys are endpoint prefixes ("/albums", "/invitations", ...). A key
clears every request-cache entry whose key contains it, plus the matching
offline bucket when there is one.
"""

from __future__ import annotations
import threading
import time
from typing import Callable, Dict, Iterable, List, Optional

from wedding_core.cache.request_cache import RequestCache
from wedding_core.logging import get_logger
from wedding_core.offline.offline_cache import OfflineCache

logger = get_logger(__name__)

# Resource key -> offline bucket
OFFLINE_BUCKETS = {
    "/invitations": "invitations",
    "/albums": "albums",
    "/rsvp": "rsvp",
    "/stats": "stats",
}

# Data type -> resource key
DATA_TYPE_KEYS = {
    "invitations": "/invitations",
    "albums": "/albums",
    "rsvp": "/rsvp",
    "stats": "/stats",
}

DEFAULT_STALE_THRESHOLD_MS = 5 * 60 * 1000
USER_ACTIVITY_THRESHOLD_MS = 10 * 60 * 1000


def _now_ms() -> float:
    return time.time() * 1000


class InvalidationBus:
    """
    Usage:
        bus = InvalidationBus(request_cache, offline_cache)
        unsubscribe = bus.on_invalidate("/albums", refetch_albums)
        bus.invalidate("/albums", reason="album created")
    """

    def __init__(
        self,
        request_cache: RequestCache,
        offline_cache: OfflineCache,
        clock: Callable[[], float] = _now_ms,
    ):
        self._request_cache = request_cache
        self._offline_cache = offline_cache
        self._clock = clock
        self._callbacks: Dict[str, List[Callable[[], None]]] = {}
        self._last_invalidation: Dict[str, float] = {}
        self._lock = threading.Lock()

    def on_invalidate(self, resource_key: str, callback: Callable[[], None]) -> Callable[[], None]:
        """
        Register a callback for `resource_key`.

        Returns:
            Function that unregisters the callback
        """
        with self._lock:
            self._callbacks.setdefault(resource_key, []).append(callback)

        def unsubscribe() -> None:
            with self._lock:
                callbacks = self._callbacks.get(resource_key)
                if callbacks and callback in callbacks:
                    callbacks.remove(callback)

        return unsubscribe

    def invalidate(self, resource_key: str, reason: Optional[str] = None) -> None:
        """Clear both cache tiers for `resource_key` and notify its subscribers."""
        logger.info(f"Cache invalidated: {resource_key}" + (f" ({reason})" if reason else ""))

        with self._lock:
            self._last_invalidation[resource_key] = self._clock()
            callbacks = list(self._callbacks.get(resource_key, []))

        self._request_cache.clear_pattern(resource_key)

        bucket = OFFLINE_BUCKETS.get(resource_key)
        if bucket:
            self._offline_cache.clear_bucket(bucket)

        for callback in callbacks:
            try:
                callback()
            except Exception as e:
                logger.error(f"Error in cache invalidation callback for {resource_key}: {e}")

    def invalidate_multiple(self, resource_keys: Iterable[str], reason: Optional[str] = None) -> None:
        for resource_key in resource_keys:
            self.invalidate(resource_key, reason)

    def get_last_invalidation(self, resource_key: str) -> Optional[float]:
        """Epoch milliseconds of the last invalidation, or None."""
        with self._lock:
            return self._last_invalidation.get(resource_key)

    def is_stale(self, resource_key: str, threshold_ms: float = DEFAULT_STALE_THRESHOLD_MS) -> bool:
        """True when the key was invalidated more than `threshold_ms` ago; False if never."""
        last = self.get_last_invalidation(resource_key)
        if last is None:
            return False
        return self._clock() - last > threshold_ms

    def force_refresh(self, data_type: str) -> None:
        """
        Invalidate one of the well-known data types.

        Raises:
            ValueError: `data_type` is not invitations, albums, rsvp or stats
        """
        if data_type not in DATA_TYPE_KEYS:
            raise ValueError(
                f"Unknown data type '{data_type}'. Expected one of: {', '.join(DATA_TYPE_KEYS)}"
            )
        self.invalidate(DATA_TYPE_KEYS[data_type], "force refresh")

    def on_user_activity(self, threshold_ms: float = USER_ACTIVITY_THRESHOLD_MS) -> List[str]:
        """
        Re-invalidate every well-known key that has gone stale.

        Returns:
            The keys that were invalidated
        """
        refreshed = []
        for resource_key in DATA_TYPE_KEYS.values():
            if self.is_stale(resource_key, threshold_ms):
                self.invalidate(resource_key, "user activity")
                refreshed.append(resource_key)
        return refreshed
