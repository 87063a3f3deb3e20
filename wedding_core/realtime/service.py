# =============================================================================
# wedding_core/realtime/service.py
# Real-Time Subscription Registry
# =============================================================================
"""
RealtimeService - one live Firestore query per subscription key.

Features:
- Opening a key that is already live replaces the old listener
- Raw documents decoded into typed entities; malformed ones skipped
- Per-key fan-out to the opener's handler and to external subscribers
- Dashboard stats combined from three unfiltered listeners
- Thread-safe: snapshots arrive on Firestore watch threads
"""

from __future__ import annotations
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar

from wedding_core.errors import DocumentDecodeError, SubscriptionError
from wedding_core.logging import get_logger
from wedding_core.models import RSVP, Album, Invitation, Media, Stats

from .database import Constraint, DocumentDatabase, Limit, OrderBy, RawDocument, Where
from .emitter import SnapshotEmitter
from .stats import CombineLatest, compute_stats, utc_now

logger = get_logger(__name__)

T = TypeVar("T")

Decoder = Callable[[str, Dict[str, Any]], T]
Unsubscribe = Callable[[], None]

STATS_KEY = "stats"
STATS_SOURCES = {
    "invitations": ("stats-invitations", Invitation),
    "albums": ("stats-albums", Album),
    "media": ("stats-media", Media),
}


@dataclass
class _Registration:
    """One live query; `active` is cleared before the transport is closed."""
    key: str
    collection: str
    unsubscribe: Optional[Unsubscribe] = None
    active: bool = True
    opened_at: datetime = field(default_factory=datetime.now)


def _first_or_none(callback: Callable[[Optional[T]], None]) -> Callable[[List[T]], None]:
    return lambda items: callback(items[0] if items else None)


class RealtimeService:
    """
    Usage:
        service = RealtimeService(FirestoreDatabase(client))
        unsubscribe = service.listen_to_albums(lambda albums: ...)
        service.subscribe("albums", other_view.refresh)
        ...
        service.remove_all_listeners()
    """

    def __init__(
        self,
        database: DocumentDatabase,
        now: Callable[[], datetime] = utc_now,
    ):
        self._database = database
        self._now = now
        self._registrations: Dict[str, _Registration] = {}
        self._emitters: Dict[str, SnapshotEmitter] = {}
        self._stats: Optional[CombineLatest] = None
        self._lock = threading.Lock()

    # =========================================================================
    # REGISTRY
    # =========================================================================

    def _emitter(self, key: str) -> SnapshotEmitter:
        with self._lock:
            emitter = self._emitters.get(key)
            if emitter is None:
                emitter = SnapshotEmitter(key)
                self._emitters[key] = emitter
            return emitter

    def _drop_emitter_if_idle(self, key: str) -> None:
        with self._lock:
            emitter = self._emitters.get(key)
            if emitter is not None and emitter.is_idle:
                del self._emitters[key]

    def _decode(self, collection: str, documents: Sequence[RawDocument], decoder: Decoder) -> List[Any]:
        items = []
        for doc_id, data in documents:
            try:
                items.append(decoder(doc_id, data))
            except DocumentDecodeError as e:
                logger.warning(f"Skipping malformed document: {e}")
            except Exception as e:
                logger.warning(f"Skipping malformed document {collection}/{doc_id}: {e}")
        return items

    def add_listener(
        self,
        key: str,
        collection: str,
        constraints: Sequence[Constraint],
        on_snapshot: Callable[[List[T]], None],
        decoder: Decoder,
    ) -> Unsubscribe:
        """
        Open (or replace) the live query for `key`.

        Returns:
            Function closing exactly this listener; a no-op once the key
            has been replaced or removed

        Raises:
            SubscriptionError: The query could not be opened
        """
        self.remove_listener(key)

        registration = _Registration(key=key, collection=collection)
        emitter = self._emitter(key)
        emitter.set_primary(on_snapshot)

        def on_documents(documents: List[RawDocument]) -> None:
            if not registration.active:
                return
            emitter.emit(self._decode(collection, documents, decoder))

        with self._lock:
            replaced = self._registrations.get(key)
            self._registrations[key] = registration
        # A concurrent add_listener for the same key won the race
        if replaced is not None:
            replaced.active = False
            self._close(replaced)

        try:
            registration.unsubscribe = self._database.listen(collection, constraints, on_documents)
        except Exception as e:
            self._discard(registration)
            raise SubscriptionError(
                f"Could not open listener '{key}': {e}",
                key=key,
                collection=collection,
            ) from e

        # Closed while the query was being opened
        if not registration.active:
            self._close(registration)

        logger.debug(f"Listener opened: {key} ({collection})")
        return lambda: self._remove_registration(registration)

    def _discard(self, registration: _Registration) -> bool:
        """Deactivate and unregister; True when it was the live one for its key."""
        with self._lock:
            registration.active = False
            current = self._registrations.get(registration.key) is registration
            if current:
                del self._registrations[registration.key]
                emitter = self._emitters.get(registration.key)
                if emitter is not None:
                    emitter.set_primary(None)
        return current

    def _close(self, registration: _Registration) -> None:
        unsubscribe, registration.unsubscribe = registration.unsubscribe, None
        if unsubscribe is None:
            return
        try:
            unsubscribe()
        except Exception as e:
            logger.warning(f"Error closing listener '{registration.key}': {e}")

    def _remove_registration(self, registration: _Registration) -> None:
        if self._discard(registration):
            self._close(registration)
            self._drop_emitter_if_idle(registration.key)
            logger.debug(f"Listener removed: {registration.key}")

    def remove_listener(self, key: str) -> None:
        """Close the listener for `key`; its external subscribers stay registered."""
        with self._lock:
            registration = self._registrations.get(key)
        if registration is not None:
            self._remove_registration(registration)

    def remove_all_listeners(self) -> None:
        """Close every listener and forget every subscriber."""
        with self._lock:
            registrations = list(self._registrations.values())
            self._registrations.clear()
            for registration in registrations:
                registration.active = False
            emitters = list(self._emitters.values())
            self._emitters.clear()
            stats, self._stats = self._stats, None

        for emitter in emitters:
            emitter.clear()
        if stats is not None:
            stats.close()
        for registration in registrations:
            self._close(registration)
        logger.info(f"Removed all listeners ({len(registrations)})")

    def subscribe(self, key: str, callback: Callable[[Any], None]) -> Unsubscribe:
        """
        Receive every snapshot delivered for `key`.

        Returns:
            Function removing the callback
        """
        emitter = self._emitter(key)
        emitter.add(callback)

        def unsubscribe() -> None:
            emitter.discard(callback)
            self._drop_emitter_if_idle(key)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._registrations)

    def active_keys(self) -> List[str]:
        with self._lock:
            return sorted(self._registrations)

    def subscriber_count(self, key: str) -> int:
        with self._lock:
            emitter = self._emitters.get(key)
        return emitter.subscriber_count if emitter else 0

    def get_snapshot(
        self,
        collection: str,
        constraints: Sequence[Constraint] = (),
        decoder: Optional[Decoder] = None,
    ) -> List[Any]:
        """
        One-shot read.

        Raises:
            SubscriptionError: The query failed
        """
        try:
            documents = self._database.fetch(collection, constraints)
        except Exception as e:
            raise SubscriptionError(
                f"Snapshot read failed for '{collection}': {e}",
                collection=collection,
            ) from e
        if decoder is None:
            return [dict(data, id=doc_id) for doc_id, data in documents]
        return self._decode(collection, documents, decoder)

    # =========================================================================
    # INVITATIONS
    # =========================================================================

    def listen_to_invitations(self, callback: Callable[[List[Invitation]], None]) -> Unsubscribe:
        return self.add_listener(
            "invitations", "invitations",
            [OrderBy("createdAt")],
            callback, Invitation.from_document,
        )

    def listen_to_invitations_by_role(
        self, role: str, callback: Callable[[List[Invitation]], None]
    ) -> Unsubscribe:
        return self.add_listener(
            f"invitations-role-{role}", "invitations",
            [Where("guestRole", "==", role), OrderBy("createdAt")],
            callback, Invitation.from_document,
        )

    def listen_to_invitation_by_qr(
        self, qr_code: str, callback: Callable[[Optional[Invitation]], None]
    ) -> Unsubscribe:
        return self.add_listener(
            f"invitation-qr-{qr_code}", "invitations",
            [Where("qrCode", "==", qr_code), Limit(1)],
            _first_or_none(callback), Invitation.from_document,
        )

    # =========================================================================
    # ALBUMS
    # =========================================================================

    def listen_to_albums(self, callback: Callable[[List[Album]], None]) -> Unsubscribe:
        return self.add_listener(
            "albums", "albums",
            [OrderBy("createdAt")],
            callback, Album.from_document,
        )

    def listen_to_public_albums(self, callback: Callable[[List[Album]], None]) -> Unsubscribe:
        return self.add_listener(
            "albums-public", "albums",
            [Where("isPublic", "==", True), OrderBy("createdAt")],
            callback, Album.from_document,
        )

    def listen_to_featured_albums(self, callback: Callable[[List[Album]], None]) -> Unsubscribe:
        return self.add_listener(
            "albums-featured", "albums",
            [Where("isFeatured", "==", True), Where("isPublic", "==", True), OrderBy("createdAt")],
            callback, Album.from_document,
        )

    def listen_to_album_by_qr(
        self, qr_code: str, callback: Callable[[Optional[Album]], None]
    ) -> Unsubscribe:
        return self.add_listener(
            f"album-qr-{qr_code}", "albums",
            [Where("qrCode", "==", qr_code), Limit(1)],
            _first_or_none(callback), Album.from_document,
        )

    # =========================================================================
    # MEDIA
    # =========================================================================

    def listen_to_media_by_album(
        self, album_id: str, callback: Callable[[List[Media]], None]
    ) -> Unsubscribe:
        """Approved media of one album, newest first."""
        return self.add_listener(
            f"media-album-{album_id}", "media",
            [Where("albumId", "==", album_id), Where("isApproved", "==", True), OrderBy("createdAt")],
            callback, Media.from_document,
        )

    def listen_to_all_media(self, callback: Callable[[List[Media]], None]) -> Unsubscribe:
        return self.add_listener(
            "media-all", "media",
            [OrderBy("createdAt")],
            callback, Media.from_document,
        )

    def listen_to_pending_media(self, callback: Callable[[List[Media]], None]) -> Unsubscribe:
        return self.add_listener(
            "media-pending", "media",
            [Where("isApproved", "==", False), OrderBy("createdAt")],
            callback, Media.from_document,
        )

    # =========================================================================
    # RSVP
    # =========================================================================

    def listen_to_rsvps(self, callback: Callable[[List[RSVP]], None]) -> Unsubscribe:
        return self.add_listener(
            "rsvps", "rsvp",
            [OrderBy("submittedAt")],
            callback, RSVP.from_document,
        )

    def listen_to_rsvp_by_qr(
        self, qr_code: str, callback: Callable[[Optional[RSVP]], None]
    ) -> Unsubscribe:
        return self.add_listener(
            f"rsvp-qr-{qr_code}", "rsvp",
            [Where("qrCode", "==", qr_code), Limit(1)],
            _first_or_none(callback), RSVP.from_document,
        )

    def listen_to_rsvps_by_status(
        self, status: str, callback: Callable[[List[RSVP]], None]
    ) -> Unsubscribe:
        return self.add_listener(
            f"rsvps-status-{status}", "rsvp",
            [Where("status", "==", status), OrderBy("submittedAt")],
            callback, RSVP.from_document,
        )

    # =========================================================================
    # STATS
    # =========================================================================

    def listen_to_stats(self, callback: Callable[[Stats], None]) -> Unsubscribe:
        """
        Live dashboard stats over all invitations, albums and media.

        Every emission of any of the three underlying listeners re-delivers
        a full Stats; the returned function closes all three together.
        """
        emitter = self._emitter(STATS_KEY)
        emitter.set_primary(callback)

        combined: CombineLatest[Stats] = CombineLatest(
            {stream: [] for stream in STATS_SOURCES},
            combine=lambda latest: compute_stats(
                latest["invitations"], latest["albums"], latest["media"], now=self._now
            ),
            on_value=emitter.emit,
        )

        with self._lock:
            previous, self._stats = self._stats, combined
        if previous is not None:
            previous.close()

        try:
            for stream, (key, entity) in STATS_SOURCES.items():
                combined.attach(
                    self.add_listener(key, entity.COLLECTION, [], combined.updater(stream), entity.from_document)
                )
        except SubscriptionError:
            self._close_stats(combined)
            raise

        return lambda: self._close_stats(combined)

    def _close_stats(self, combined: CombineLatest) -> None:
        with self._lock:
            current = self._stats is combined
            if current:
                self._stats = None
        if combined.close() and current:
            emitter = self._emitter(STATS_KEY)
            emitter.set_primary(None)
            self._drop_emitter_if_idle(STATS_KEY)
