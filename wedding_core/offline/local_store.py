# =============================================================================
# wedding_core/offline/local_store.py
# Durable Key/Value Store for Offline Data
# =============================================================================
"""
Durable storage behind the offline cache.

Every operation returns a StoreResult instead of raising, so a broken disk
or a corrupt file degrades into cache misses rather than failures.
"""

from __future__ import annotations
import json
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union

from wedding_core.logging import get_logger


logger = get_logger(__name__)


@dataclass
class StoreResult:
    """
    Outcome of a durable store operation.

    Falsy when the operation failed; `data` carries the read value or the
    key list.
    """
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def ok(cls, data: Any = None) -> StoreResult:
        """Create a successful result"""
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> StoreResult:
        """Create a failed result"""
        return cls(success=False, error=error)


class DurableStore(Protocol):
    """String key/value storage that survives a process restart."""

    def read(self, key: str) -> StoreResult: ...

    def write(self, key: str, raw: str) -> StoreResult: ...

    def delete(self, key: str) -> StoreResult: ...

    def keys(self) -> StoreResult: ...


class MemoryStore:
    """Process-local store, used when no file location is configured."""

    def __init__(self):
        self._data: Dict[str, str] = {}
        self._lock = threading.Lock()

    def read(self, key: str) -> StoreResult:
        with self._lock:
            return StoreResult.ok(self._data.get(key))

    def write(self, key: str, raw: str) -> StoreResult:
        with self._lock:
            self._data[key] = raw
        return StoreResult.ok()

    def delete(self, key: str) -> StoreResult:
        with self._lock:
            self._data.pop(key, None)
        return StoreResult.ok()

    def keys(self) -> StoreResult:
        with self._lock:
            return StoreResult.ok(list(self._data))


class JsonFileStore:
    """
    Store that keeps every entry in a single JSON object on disk.

    File layout:
        {
          "wedding_app_albums": "{\"value\": [...], \"capturedAt\": ...}",
          ...
        }

    The whole file is rewritten on every change; the payloads are small
    dashboard lists, not media.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not contain a JSON object")
        return data

    def _save(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f)
        os.replace(tmp_path, self.path)

    def read(self, key: str) -> StoreResult:
        with self._lock:
            try:
                return StoreResult.ok(self._load().get(key))
            except (OSError, ValueError) as e:
                logger.debug(f"Offline store read failed for {key}: {e}")
                return StoreResult.fail(str(e))

    def write(self, key: str, raw: str) -> StoreResult:
        with self._lock:
            try:
                data = self._load()
                data[key] = raw
                self._save(data)
                return StoreResult.ok()
            except (OSError, ValueError, TypeError) as e:
                logger.debug(f"Offline store write failed for {key}: {e}")
                return StoreResult.fail(str(e))

    def delete(self, key: str) -> StoreResult:
        with self._lock:
            try:
                data = self._load()
                if key in data:
                    del data[key]
                    self._save(data)
                return StoreResult.ok()
            except (OSError, ValueError) as e:
                logger.debug(f"Offline store delete failed for {key}: {e}")
                return StoreResult.fail(str(e))

    def keys(self) -> StoreResult:
        with self._lock:
            try:
                return StoreResult.ok(list(self._load()))
            except (OSError, ValueError) as e:
                return StoreResult.fail(str(e))


def open_store(path: Optional[Union[str, Path]]) -> DurableStore:
    """Return a JsonFileStore for `path`, or a MemoryStore when path is empty."""
    if not path:
        return MemoryStore()
    return JsonFileStore(path)


