# =============================================================================
# wedding_core/state/bindings.py
# Real-Time Data Bindings for Views
# =============================================================================
"""
RealtimeBinding - the view-facing end of a live listener.

Holds data / loading / error for one subscription key and owns the
listener's lifetime: mount opens it, rebind swaps it when the key changes,
unmount (or leaving the `with` block) always closes it.
"""

from __future__ import annotations
import threading
from dataclasses import dataclass
from typing import Any, Callable, Generic, List, Optional, TypeVar

from wedding_core.errors import handle_error
from wedding_core.logging import get_logger
from wedding_core.models import RSVP, Album, Invitation, Media, Stats
from wedding_core.realtime.service import RealtimeService, Unsubscribe

logger = get_logger(__name__)

T = TypeVar("T")

Opener = Callable[[Callable[[Any], None]], Unsubscribe]


@dataclass(frozen=True)
class BindingState(Generic[T]):
    """Immutable view of a binding at one instant"""
    key: Optional[str]
    data: Optional[T]
    loading: bool
    error: Optional[Exception]


class RealtimeBinding(Generic[T]):
    """
    Usage:
        with use_media_by_album(service, album_id) as media:
            state = media.snapshot()
            if state.loading:
                st.spinner()
            ...

    A key of None means "nothing to listen to": no listener is opened and
    the binding reports data=None, loading=False.
    """

    def __init__(
        self,
        key: Optional[str],
        opener: Optional[Opener],
        initial: Optional[T] = None,
        on_change: Optional[Callable[[BindingState[T]], None]] = None,
    ):
        self.key = key
        self._opener = opener
        self._initial = initial
        self._on_change = on_change
        self._data: Optional[T] = initial if key is not None else None
        self._loading = key is not None
        self._error: Optional[Exception] = None
        self._unsubscribe: Optional[Unsubscribe] = None
        self._mounted = False
        self._generation = 0
        self._lock = threading.Lock()

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def data(self) -> Optional[T]:
        with self._lock:
            return self._data

    @property
    def loading(self) -> bool:
        with self._lock:
            return self._loading

    @property
    def error(self) -> Optional[Exception]:
        with self._lock:
            return self._error

    @property
    def opener(self) -> Optional[Opener]:
        return self._opener

    @property
    def mounted(self) -> bool:
        with self._lock:
            return self._mounted

    def snapshot(self) -> BindingState[T]:
        with self._lock:
            return BindingState(key=self.key, data=self._data, loading=self._loading, error=self._error)

    def mutate(self, data: Optional[T]) -> None:
        """Overwrite local data (optimistic update); the next snapshot wins."""
        with self._lock:
            self._data = data
        self._changed()

    def _changed(self) -> None:
        if self._on_change is not None:
            try:
                self._on_change(self.snapshot())
            except Exception as e:
                logger.error(f"Error in binding change handler for {self.key}: {e}")

    def _receiver(self, generation: int) -> Callable[[Any], None]:
        def receive(value: Any) -> None:
            with self._lock:
                # Late snapshot from a listener this binding already closed
                if generation != self._generation or not self._mounted:
                    return
                self._data = value
                self._loading = False
                self._error = None
            self._changed()

        return receive

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def mount(self) -> RealtimeBinding[T]:
        """Open the listener; a no-op when already mounted."""
        with self._lock:
            if self._mounted:
                return self
            self._mounted = True
            self._generation += 1
            generation = self._generation
            key, opener = self.key, self._opener

            if key is None or opener is None:
                self._data = None
                self._loading = False
                self._error = None
                return self

            self._loading = True
            self._error = None

        try:
            unsubscribe = opener(self._receiver(generation))
        except Exception as e:
            handle_error(e, show_user_message=False, operation=f"Binding {key}")
            with self._lock:
                self._loading = False
                self._error = e
            self._changed()
            return self

        with self._lock:
            stale = generation != self._generation or not self._mounted
            if not stale:
                self._unsubscribe = unsubscribe
        # Unmounted while the listener was being opened
        if stale:
            unsubscribe()
        return self

    def unmount(self) -> None:
        """Close the listener. Safe to call any number of times."""
        with self._lock:
            self._mounted = False
            self._generation += 1
            unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            unsubscribe()

    def rebind(self, key: Optional[str], opener: Optional[Opener]) -> RealtimeBinding[T]:
        """
        Point the binding at a new key. The old listener is closed before
        the new one opens; an unchanged key keeps the current listener.
        """
        if key == self.key:
            return self

        was_mounted = self.mounted
        self.unmount()
        with self._lock:
            self.key = key
            self._opener = opener
            self._data = self._initial if key is not None else None
            self._loading = key is not None
            self._error = None
        if was_mounted:
            self.mount()
        return self

    def __enter__(self) -> RealtimeBinding[T]:
        return self.mount()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.unmount()
        return False


# =============================================================================
# FACTORIES
# =============================================================================

def _binding(key: Optional[str], opener: Opener, initial: Any = None) -> RealtimeBinding:
    return RealtimeBinding(key, opener, initial)


def use_invitations(service: RealtimeService) -> RealtimeBinding[List[Invitation]]:
    return _binding("invitations", service.listen_to_invitations, [])


def use_invitations_by_role(service: RealtimeService, role: str) -> RealtimeBinding[List[Invitation]]:
    return _binding(
        f"invitations-role-{role}",
        lambda cb: service.listen_to_invitations_by_role(role, cb),
        [],
    )


def use_invitation_by_qr(service: RealtimeService, qr_code: Optional[str]) -> RealtimeBinding[Invitation]:
    return _binding(
        f"invitation-qr-{qr_code}" if qr_code else None,
        lambda cb: service.listen_to_invitation_by_qr(qr_code, cb),
    )


def use_albums(service: RealtimeService) -> RealtimeBinding[List[Album]]:
    return _binding("albums", service.listen_to_albums, [])


def use_public_albums(service: RealtimeService) -> RealtimeBinding[List[Album]]:
    return _binding("albums-public", service.listen_to_public_albums, [])


def use_featured_albums(service: RealtimeService) -> RealtimeBinding[List[Album]]:
    return _binding("albums-featured", service.listen_to_featured_albums, [])


def use_album_by_qr(service: RealtimeService, qr_code: Optional[str]) -> RealtimeBinding[Album]:
    return _binding(
        f"album-qr-{qr_code}" if qr_code else None,
        lambda cb: service.listen_to_album_by_qr(qr_code, cb),
    )


def use_media_by_album(service: RealtimeService, album_id: Optional[str]) -> RealtimeBinding[List[Media]]:
    return _binding(
        f"media-album-{album_id}" if album_id else None,
        lambda cb: service.listen_to_media_by_album(album_id, cb),
        [],
    )


def use_all_media(service: RealtimeService) -> RealtimeBinding[List[Media]]:
    return _binding("media-all", service.listen_to_all_media, [])


def use_pending_media(service: RealtimeService) -> RealtimeBinding[List[Media]]:
    return _binding("media-pending", service.listen_to_pending_media, [])


def use_rsvps(service: RealtimeService) -> RealtimeBinding[List[RSVP]]:
    return _binding("rsvps", service.listen_to_rsvps, [])


def use_rsvp_by_qr(service: RealtimeService, qr_code: Optional[str]) -> RealtimeBinding[RSVP]:
    return _binding(
        f"rsvp-qr-{qr_code}" if qr_code else None,
        lambda cb: service.listen_to_rsvp_by_qr(qr_code, cb),
    )


def use_rsvps_by_status(service: RealtimeService, status: str) -> RealtimeBinding[List[RSVP]]:
    return _binding(
        f"rsvps-status-{status}",
        lambda cb: service.listen_to_rsvps_by_status(status, cb),
        [],
    )


def use_stats(service: RealtimeService) -> RealtimeBinding[Stats]:
    return _binding("stats", service.listen_to_stats)


def realtime_cleanup(service: RealtimeService) -> None:
    """Root teardown: close every listener the service holds."""
    service.remove_all_listeners()
