# =============================================================================
# wedding_core/offline/offline_cache.py
# Durable Offline Cache for Dashboard Data
# =============================================================================
"""
OfflineCache - TTL-bounded, schema-versioned copies of the last good REST
reads, served when the client believes it is offline.

Entry format (serialized JSON, one per namespaced key):
    {"value": ..., "capturedAt": <epoch ms>, "maxAgeMs": <ms>, "schemaVersion": "1.0.0"}

Nothing in here raises: store failures and corrupt entries are logged and
read as "absent".
"""

from __future__ import annotations
import json
import time
from typing import Any, Callable, Dict, List, Optional

from wedding_core.errors import CacheError
from wedding_core.logging import get_logger
from wedding_core.offline.local_store import DurableStore

logger = get_logger(__name__)

HOUR_MS = 60 * 60 * 1000
MINUTE_MS = 60 * 1000


def _now_ms() -> float:
    return time.time() * 1000


class OfflineCache:
    """
    Namespaced offline cache over a DurableStore.

    Usage:
        cache = OfflineCache(JsonFileStore("local_data/offline_cache.json"))
        cache.set_albums(albums)
        albums = cache.get_albums()   # None once older than 2 hours
    """

    PREFIX = "wedding_app_"
    SCHEMA_VERSION = "1.0.0"
    DEFAULT_MAX_AGE_MS = 24 * HOUR_MS

    # Bucket TTLs
    BUCKET_MAX_AGE_MS = {
        "albums": 2 * HOUR_MS,
        "invitations": HOUR_MS,
        "rsvp": 30 * MINUTE_MS,
        "stats": 15 * MINUTE_MS,
    }

    def __init__(
        self,
        store: Optional[DurableStore] = None,
        clock: Callable[[], float] = _now_ms,
    ):
        """
        Args:
            store: Durable backing store; None makes every call a miss
            clock: Returns the current time in epoch milliseconds
        """
        self._store = store
        self._clock = clock

    @property
    def available(self) -> bool:
        return self._store is not None

    def _full_key(self, key: str) -> str:
        return f"{self.PREFIX}{key}"

    def _warn(self, operation: str, key: str, error: Optional[str]) -> None:
        fault = CacheError(f"Offline cache {operation} failed: {error}", key=key)
        logger.warning(str(fault))

    # =========================================================================
    # CORE OPERATIONS
    # =========================================================================

    def set(self, key: str, value: Any, max_age_ms: Optional[float] = None) -> bool:
        """
        Store a value with its capture time.

        Returns:
            True when the entry was written
        """
        if self._store is None:
            return False

        entry = {
            "value": value,
            "capturedAt": self._clock(),
            "maxAgeMs": max_age_ms if max_age_ms is not None else self.DEFAULT_MAX_AGE_MS,
            "schemaVersion": self.SCHEMA_VERSION,
        }
        try:
            raw = json.dumps(entry, default=str)
        except (TypeError, ValueError) as e:
            self._warn("serialize", key, str(e))
            return False

        result = self._store.write(self._full_key(key), raw)
        if not result:
            self._warn("write", key, result.error)
            return False
        return True

    def get(self, key: str) -> Optional[Any]:
        """
        Return the cached value, or None when absent, expired, corrupt or
        written by another schema version. Stale entries are deleted.
        """
        if self._store is None:
            return None

        full_key = self._full_key(key)
        result = self._store.read(full_key)
        if not result:
            self._warn("read", key, result.error)
            return None
        if result.data is None:
            return None

        try:
            entry = json.loads(result.data)
            captured_at = float(entry["capturedAt"])
            max_age_ms = float(entry["maxAgeMs"])
            version = entry.get("schemaVersion")
        except (TypeError, ValueError, KeyError) as e:
            self._warn("parse", key, str(e))
            self._store.delete(full_key)
            return None

        if version != self.SCHEMA_VERSION:
            logger.debug(f"Dropping offline entry {key}: schema {version}")
            self._store.delete(full_key)
            return None

        if self._clock() - captured_at > max_age_ms:
            logger.debug(f"Dropping expired offline entry {key}")
            self._store.delete(full_key)
            return None

        return entry.get("value")

    def remove(self, key: str) -> None:
        if self._store is None:
            return
        result = self._store.delete(self._full_key(key))
        if not result:
            self._warn("remove", key, result.error)

    def keys(self) -> List[str]:
        """Keys in this cache's namespace, without the prefix."""
        if self._store is None:
            return []
        result = self._store.keys()
        if not result:
            self._warn("list", "*", result.error)
            return []
        return [k[len(self.PREFIX):] for k in result.data or [] if k.startswith(self.PREFIX)]

    def clear(self) -> None:
        """Remove every namespaced entry; foreign keys are left alone."""
        for key in self.keys():
            self.remove(key)
        logger.info("Offline cache cleared")

    def stats(self) -> Dict[str, Any]:
        """
        Returns:
            {"keyCount", "totalSize", "keys"}; totalSize counts serialized characters
        """
        keys = self.keys()
        total_size = 0
        for key in keys:
            result = self._store.read(self._full_key(key))
            if result and result.data:
                total_size += len(result.data)
        return {"keyCount": len(keys), "totalSize": total_size, "keys": keys}

    # =========================================================================
    # BUCKETS
    # =========================================================================

    def set_bucket(self, bucket: str, value: Any) -> bool:
        return self.set(bucket, value, self.BUCKET_MAX_AGE_MS.get(bucket))

    def get_bucket(self, bucket: str) -> Optional[Any]:
        return self.get(bucket)

    def clear_bucket(self, bucket: str) -> None:
        self.remove(bucket)

    def set_albums(self, albums: Any) -> bool:
        return self.set_bucket("albums", albums)

    def get_albums(self) -> Optional[Any]:
        return self.get_bucket("albums")

    def clear_albums(self) -> None:
        self.clear_bucket("albums")

    def set_invitations(self, invitations: Any) -> bool:
        return self.set_bucket("invitations", invitations)

    def get_invitations(self) -> Optional[Any]:
        return self.get_bucket("invitations")

    def clear_invitations(self) -> None:
        self.clear_bucket("invitations")

    def set_rsvp(self, rsvps: Any) -> bool:
        return self.set_bucket("rsvp", rsvps)

    def get_rsvp(self) -> Optional[Any]:
        return self.get_bucket("rsvp")

    def clear_rsvp(self) -> None:
        self.clear_bucket("rsvp")

    def set_stats(self, stats: Any) -> bool:
        return self.set_bucket("stats", stats)

    def get_stats(self) -> Optional[Any]:
        return self.get_bucket("stats")

    def clear_stats(self) -> None:
        self.clear_bucket("stats")

    def clear_all(self) -> None:
        """Clear every well-known bucket."""
        for bucket in self.BUCKET_MAX_AGE_MS:
            self.clear_bucket(bucket)
