# =============================================================================
# wedding_core/realtime/emitter.py
# Per-Key Snapshot Fan-Out
# =============================================================================
"""
SnapshotEmitter - one per subscription key.

Delivers each snapshot to the listener's own handler first, then to every
external subscriber. Handlers are isolated: one raising never stops the
rest.
"""

from __future__ import annotations
import threading
from typing import Any, Callable, List, Optional

from wedding_core.errors import handle_error

Handler = Callable[[Any], None]


class SnapshotEmitter:

    def __init__(self, key: str):
        self.key = key
        self._primary: Optional[Handler] = None
        self._subscribers: List[Handler] = []
        self._lock = threading.Lock()

    def set_primary(self, handler: Optional[Handler]) -> None:
        """Install (or with None, remove) the listener's own handler."""
        with self._lock:
            self._primary = handler

    def add(self, handler: Handler) -> Callable[[], None]:
        with self._lock:
            if handler not in self._subscribers:
                self._subscribers.append(handler)

        def remove() -> None:
            self.discard(handler)

        return remove

    def discard(self, handler: Handler) -> None:
        with self._lock:
            if handler in self._subscribers:
                self._subscribers.remove(handler)

    def clear(self) -> None:
        with self._lock:
            self._primary = None
            self._subscribers.clear()

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    @property
    def is_idle(self) -> bool:
        with self._lock:
            return self._primary is None and not self._subscribers

    def emit(self, value: Any) -> None:
        with self._lock:
            primary = self._primary
            subscribers = list(self._subscribers)

        if primary is not None:
            self._call(primary, value)
        for handler in subscribers:
            self._call(handler, value)

    def _call(self, handler: Handler, value: Any) -> None:
        try:
            handler(value)
        except Exception as e:
            handle_error(e, show_user_message=False, operation=f"Snapshot handler for {self.key}")
