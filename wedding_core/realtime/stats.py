# =============================================================================
# wedding_core/realtime/stats.py
# Dashboard Stats Aggregation
# =============================================================================
"""
Stats are never stored: they are recomputed from the latest invitations,
albums and media lists every time any of the three changes.
"""

from __future__ import annotations
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Generic, List, Optional, Sequence, TypeVar

from wedding_core.logging import get_logger
from wedding_core.models import (
    Album,
    AlbumStats,
    Invitation,
    InvitationStats,
    Media,
    MediaStats,
    Stats,
)

logger = get_logger(__name__)

T = TypeVar("T")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def compute_stats(
    invitations: Sequence[Invitation],
    albums: Sequence[Album],
    media: Sequence[Media],
    now: Callable[[], datetime] = utc_now,
) -> Stats:
    """Materialize Stats from the three collections."""
    total_media = len(media)
    return Stats(
        invitations=InvitationStats(
            total=len(invitations),
            active=sum(1 for i in invitations if i.is_active),
            opened=sum(1 for i in invitations if i.is_opened),
        ),
        albums=AlbumStats(
            total_albums=len(albums),
            public_albums=sum(1 for a in albums if a.is_public),
            featured_albums=sum(1 for a in albums if a.is_featured),
            total_media=total_media,
        ),
        media=MediaStats(
            total_media=total_media,
            image_count=sum(1 for m in media if m.is_image),
            video_count=sum(1 for m in media if m.is_video),
        ),
        last_updated=now().isoformat(),
    )


class CombineLatest(Generic[T]):
    """
    Combine-latest over named streams.

    Each update replaces that stream's latest value and re-delivers the
    combined result. Sources call update() from their own threads; results
    are numbered under the state lock and delivered one at a time, and a
    result older than the last one delivered is dropped. close() tears
    every attached source down in one step; updates arriving after it are
    ignored.

    Usage:
        combined = CombineLatest(
            {"invitations": [], "albums": [], "media": []},
            combine=lambda latest: compute_stats(**latest),
            on_value=print,
        )
        combined.attach(unsubscribe_invitations)
        combined.update("media", media_list)
        combined.close()
    """

    def __init__(
        self,
        initial: Dict[str, Any],
        combine: Callable[[Dict[str, Any]], T],
        on_value: Callable[[T], None],
    ):
        self._latest = dict(initial)
        self._combine = combine
        self._on_value = on_value
        self._sources: List[Callable[[], None]] = []
        self._closed = False
        self._sequence = 0
        self._delivered = 0
        self._lock = threading.Lock()
        self._delivery_lock = threading.RLock()

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def attach(self, teardown: Callable[[], None]) -> None:
        """Register a source teardown; closes it immediately if already closed."""
        with self._lock:
            if not self._closed:
                self._sources.append(teardown)
                return
        teardown()

    def updater(self, stream: str) -> Callable[[Any], None]:
        if stream not in self._latest:
            raise KeyError(f"Unknown stream '{stream}'")
        return lambda value: self.update(stream, value)

    def update(self, stream: str, value: Any) -> Optional[T]:
        with self._lock:
            if self._closed:
                return None
            self._latest[stream] = value
            result = self._combine(dict(self._latest))
            self._sequence += 1
            sequence = self._sequence

        with self._delivery_lock:
            if sequence <= self._delivered or self.closed:
                return None
            self._delivered = sequence
            self._on_value(result)
        return result

    def close(self) -> bool:
        """
        Tear down every source.

        Returns:
            False when already closed
        """
        with self._lock:
            if self._closed:
                return False
            self._closed = True
            sources, self._sources = self._sources, []

        for teardown in sources:
            try:
                teardown()
            except Exception as e:
                logger.error(f"Error tearing down combined source: {e}")
        return True
