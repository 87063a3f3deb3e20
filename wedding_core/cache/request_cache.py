# =============================================================================
# wedding_core/cache/request_cache.py
# In-Memory Response Cache with Request De-duplication
# =============================================================================
"""
RequestCache - short-lived memory of successful GET responses.

Two jobs:
- Serve repeated GETs for the same endpoint+params without the network.
- Collapse concurrent identical GETs into one network call.

Mutations and auth endpoints are never cached.
"""

from __future__ import annotations
import json
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, TypeVar

from wedding_core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

NON_CACHEABLE_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})
NON_CACHEABLE_ENDPOINTS = ("/auth/login", "/auth/logout", "/auth/change-password")


def _now_ms() -> float:
    return time.time() * 1000


def cache_key(endpoint: str, params: Optional[Dict[str, Any]] = None) -> str:
    """Endpoint followed by the params serialized with sorted keys."""
    if not params:
        return endpoint
    return endpoint + json.dumps(params, sort_keys=True, default=str)


@dataclass
class CacheEntry:
    value: Any
    stored_at: float
    max_age_ms: float

    def is_fresh(self, now: float) -> bool:
        return now - self.stored_at <= self.max_age_ms


class RequestCache:
    """
    Thread-safe response cache.

    Usage:
        cache = RequestCache()
        albums = cache.get("/albums/host")
        if albums is None:
            albums = cache.deduplicate_request("/albums/host", fetch_albums)
            cache.set("/albums/host", albums)
    """

    DEFAULT_MAX_AGE_MS = 2 * 60 * 1000

    def __init__(
        self,
        default_max_age_ms: Optional[float] = None,
        clock: Callable[[], float] = _now_ms,
    ):
        self.default_max_age_ms = default_max_age_ms or self.DEFAULT_MAX_AGE_MS
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._in_flight: Dict[str, Future] = {}
        self._lock = threading.Lock()

    @staticmethod
    def should_cache(endpoint: str, method: str = "GET") -> bool:
        """False for mutations and for auth endpoints."""
        if method.upper() in NON_CACHEABLE_METHODS:
            return False
        return not any(endpoint.startswith(auth) for auth in NON_CACHEABLE_ENDPOINTS)

    def get(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        method: str = "GET",
    ) -> Optional[Any]:
        """Return a fresh cached value or None; expired entries are dropped."""
        if not self.should_cache(endpoint, method):
            return None

        key = cache_key(endpoint, params)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if not entry.is_fresh(self._clock()):
                del self._entries[key]
                return None
            return entry.value

    def set(
        self,
        endpoint: str,
        value: Any,
        params: Optional[Dict[str, Any]] = None,
        max_age_ms: Optional[float] = None,
        method: str = "GET",
    ) -> bool:
        """
        Store a response.

        Returns:
            False when the endpoint/method is never cached
        """
        if not self.should_cache(endpoint, method):
            return False

        key = cache_key(endpoint, params)
        entry = CacheEntry(
            value=value,
            stored_at=self._clock(),
            max_age_ms=max_age_ms if max_age_ms is not None else self.default_max_age_ms,
        )
        with self._lock:
            self._entries[key] = entry
        return True

    def deduplicate_request(self, key: str, factory: Callable[[], T]) -> T:
        """
        Run `factory` once for all concurrent callers sharing `key`.

        Callers that arrive while a call is in flight block until it settles
        and receive the same value, or the same exception instance.
        """
        with self._lock:
            future = self._in_flight.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._in_flight[key] = future

        if not owner:
            logger.debug(f"Joining in-flight request {key}")
            return future.result()

        try:
            value = factory()
        except BaseException as e:
            self._release(key, future)
            future.set_exception(e)
            raise
        self._release(key, future)
        future.set_result(value)
        return value

    def _release(self, key: str, future: Future) -> None:
        with self._lock:
            if self._in_flight.get(key) is future:
                del self._in_flight[key]

    def in_flight_count(self) -> int:
        with self._lock:
            return len(self._in_flight)

    def clear_pattern(self, pattern: str) -> int:
        """
        Drop every entry whose key contains `pattern`.

        Returns:
            Number of entries removed
        """
        with self._lock:
            doomed = [key for key in self._entries if pattern in key]
            for key in doomed:
                del self._entries[key]
        if doomed:
            logger.debug(f"Cleared {len(doomed)} cached responses matching {pattern}")
        return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def size(self) -> int:
        with self._lock:
            return len(self._entries)
