# =============================================================================
# wedding_core/offline/connection_manager.py
# Online/Offline Detection
# =============================================================================
"""
NetworkStatus - tracks whether the REST API host is reachable.

The REST client only serves offline-cache data while this reports offline,
so a flaky single request never masks a live server.
"""

from __future__ import annotations
import socket
import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional

from wedding_core.logging import get_logger

logger = get_logger(__name__)


class ConnectionStatus(Enum):
    """Connection status states."""
    ONLINE = "online"
    OFFLINE = "offline"
    UNKNOWN = "unknown"


@dataclass
class ConnectionState:
    """Current connection state with metadata."""
    status: ConnectionStatus = ConnectionStatus.UNKNOWN
    last_check: Optional[datetime] = None
    last_online: Optional[datetime] = None
    consecutive_failures: int = 0
    forced_offline: bool = False


class NetworkStatus:
    """
    Online/offline flag with change listeners.

    UNKNOWN counts as online: the client only falls back to offline data
    after a failed check or an explicit set_online(False).

    Usage:
        status = NetworkStatus(host="backendv2-nasy.onrender.com")
        status.check_connection()
        if not status.is_online:
            ...
    """

    CHECK_INTERVAL_ONLINE = 30      # Seconds between checks when online
    CHECK_INTERVAL_OFFLINE = 10     # Seconds between checks when offline
    CONNECTION_TIMEOUT = 5

    def __init__(self, host: str = "", port: int = 443):
        self.host = host
        self.port = port
        self._state = ConnectionState()
        self._listeners: List[Callable[[bool], None]] = []
        self._lock = threading.Lock()
        self._monitor_thread: Optional[threading.Thread] = None
        self._stop_monitoring = threading.Event()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_online(self) -> bool:
        return self._state.status != ConnectionStatus.OFFLINE

    @property
    def is_offline(self) -> bool:
        return not self.is_online

    def set_online(self, online: bool) -> None:
        """Record a connectivity observation; listeners fire on change only."""
        with self._lock:
            was_online = self.is_online
            if self._state.forced_offline and online:
                return
            now = datetime.now()
            self._state.last_check = now
            if online:
                self._state.status = ConnectionStatus.ONLINE
                self._state.last_online = now
                self._state.consecutive_failures = 0
            else:
                self._state.status = ConnectionStatus.OFFLINE
                self._state.consecutive_failures += 1
            changed = was_online != online

        if changed:
            logger.info(f"Network status changed: {'online' if online else 'offline'}")
            self._notify_listeners(online)

    def force_offline(self) -> None:
        """Pin the client offline until release_offline() (user preference or tests)."""
        self.set_online(False)
        with self._lock:
            self._state.forced_offline = True
        logger.info("Forced offline mode")

    def release_offline(self) -> None:
        with self._lock:
            self._state.forced_offline = False

    def check_connection(self) -> bool:
        """Probe the API host with a TCP connect and record the result."""
        if self._state.forced_offline:
            return False
        online = self._probe() if self.host else True
        self.set_online(online)
        return online

    def _probe(self) -> bool:
        try:
            with socket.create_connection((self.host, self.port), timeout=self.CONNECTION_TIMEOUT):
                return True
        except OSError as e:
            logger.debug(f"Connectivity probe to {self.host} failed: {e}")
            return False

    # =========================================================================
    # LISTENERS
    # =========================================================================

    def add_listener(self, callback: Callable[[bool], None]) -> Callable[[], None]:
        """
        Register a callback invoked with the new online flag on each change.

        Returns:
            Function that removes the listener
        """
        with self._lock:
            if callback not in self._listeners:
                self._listeners.append(callback)

        def remove() -> None:
            with self._lock:
                if callback in self._listeners:
                    self._listeners.remove(callback)

        return remove

    def _notify_listeners(self, online: bool) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for callback in listeners:
            try:
                callback(online)
            except Exception as e:
                logger.error(f"Error in network status listener: {e}")

    # =========================================================================
    # BACKGROUND MONITORING
    # =========================================================================

    def start_monitoring(self) -> None:
        """Start background connectivity checks."""
        if self._monitor_thread is not None and self._monitor_thread.is_alive():
            return

        self._stop_monitoring.clear()
        self._monitor_thread = threading.Thread(
            target=self._monitoring_loop,
            daemon=True,
            name="NetworkStatusMonitor",
        )
        self._monitor_thread.start()
        logger.debug("Network monitoring started")

    def stop_monitoring(self) -> None:
        self._stop_monitoring.set()
        if self._monitor_thread:
            self._monitor_thread.join(timeout=5)
        logger.debug("Network monitoring stopped")

    def _monitoring_loop(self) -> None:
        while not self._stop_monitoring.is_set():
            interval = (
                self.CHECK_INTERVAL_ONLINE
                if self.is_online
                else self.CHECK_INTERVAL_OFFLINE
            )
            if self._stop_monitoring.wait(timeout=interval):
                break
            try:
                self.check_connection()
            except Exception as e:
                logger.error(f"Error in connection check: {e}")

    def get_status_display(self) -> dict:
        """Status information for UI display."""
        return {
            "status": self._state.status.value,
            "is_online": self.is_online,
            "forced_offline": self._state.forced_offline,
            "last_check": self._state.last_check.isoformat() if self._state.last_check else None,
            "last_online": self._state.last_online.isoformat() if self._state.last_online else None,
            "failures": self._state.consecutive_failures,
        }
