# =============================================================================
# wedding_core/notifications.py
# Global Notification Channel
# =============================================================================
"""
Fire-and-forget notifications consumed by toast-style UI.

The REST client publishes {type, message} on every normalized error. Pages
attach the Streamlit sink; background threads only queue, because toasts
can only be rendered from the script thread.
"""

from __future__ import annotations
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Deque, List

import streamlit as st

from wedding_core.errors import error_boundary
from wedding_core.logging import get_logger
from wedding_core.runtime import has_script_context

logger = get_logger(__name__)

TOAST_ICONS = {
    "error": "🚨",
    "success": "✅",
    "info": "ℹ️",
    "warning": "⚠️",
}


@dataclass
class Notification:
    """A single toast event"""
    type: str
    message: str
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return {"type": self.type, "message": self.message}


class NotificationChannel:
    """
    Publish/subscribe channel for user-facing notifications.

    Usage:
        channel = NotificationChannel()
        unsubscribe = channel.subscribe(lambda n: print(n.message))
        channel.publish("error", "Too many requests. Please try again shortly.")
    """

    def __init__(self):
        self._subscribers: List[Callable[[Notification], None]] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Callable[[Notification], None]) -> Callable[[], None]:
        """Register a subscriber; returns an unsubscribe function."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, type: str, message: str) -> Notification:
        """Deliver a notification to every subscriber, isolating failures."""
        notification = Notification(type=type, message=message)
        with self._lock:
            subscribers = list(self._subscribers)

        for callback in subscribers:
            try:
                callback(notification)
            except Exception as e:
                logger.error(f"Error in notification subscriber: {e}")
        return notification


class StreamlitToastSink:
    """
    Subscriber that renders notifications with st.toast.

    Notifications published off the script thread are held until the next
    flush(), which get_services() runs on every rerun. Only the newest
    MAX_PENDING are kept.
    """

    MAX_PENDING = 20

    def __init__(self):
        self._pending: Deque[Notification] = deque(maxlen=self.MAX_PENDING)
        self._lock = threading.Lock()

    def __call__(self, notification: Notification) -> None:
        if has_script_context():
            self._show(notification)
        else:
            with self._lock:
                self._pending.append(notification)

    @error_boundary(default_return=0)
    def flush(self) -> int:
        """Render queued notifications; returns how many were shown."""
        with self._lock:
            pending = list(self._pending)
            self._pending.clear()
        for notification in pending:
            self._show(notification)
        return len(pending)

    @staticmethod
    def _show(notification: Notification) -> None:
        st.toast(notification.message, icon=TOAST_ICONS.get(notification.type))
