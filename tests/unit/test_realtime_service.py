# =============================================================================
# tests/unit/test_realtime_service.py
# Unit Tests for RealtimeService
# =============================================================================

import pytest

from conftest import album_doc, invitation_doc, media_doc, rsvp_doc
from wedding_core.errors import SubscriptionError
from wedding_core.models import Album, Invitation, Media
from wedding_core.realtime.database import Limit, OrderBy, Where
from wedding_core.realtime.service import RealtimeService


@pytest.fixture
def service(fake_db):
    return RealtimeService(fake_db)


class TestListenerDelivery:
    """Snapshots are decoded and delivered"""

    def test_albums_delivered_newest_first(self, service, fake_db):
        fake_db.put("albums", "a1", album_doc("Q1", createdAt="2024-05-01T10:00:00+00:00"), emit=False)
        fake_db.put("albums", "a2", album_doc("Q2", createdAt="2024-05-03T10:00:00+00:00"), emit=False)
        received = []

        service.listen_to_albums(received.append)

        assert [a.id for a in received[-1]] == ["a2", "a1"]
        assert all(isinstance(a, Album) for a in received[-1])

    def test_every_change_redelivers(self, service, fake_db):
        received = []
        service.listen_to_invitations(received.append)

        fake_db.put("invitations", "i1", invitation_doc("Q1"))

        assert received[0] == []
        assert [i.qr_code for i in received[1]] == ["Q1"]

    def test_malformed_documents_skipped(self, service, fake_db):
        """Documents failing decode are dropped; the rest still arrive"""
        fake_db.put("albums", "good", album_doc("Q1"), emit=False)
        fake_db.put("albums", "bad", {"name": "No QR"}, emit=False)
        received = []

        service.listen_to_albums(received.append)

        assert [a.id for a in received[-1]] == ["good"]

    def test_millisecond_timestamps_decoded(self, service, fake_db):
        fake_db.put("albums", "ms", album_doc("Q2", createdAt=1729000000000), emit=False)
        fake_db.put("albums", "good", album_doc("Q1"), emit=False)
        received = []

        service.listen_to_albums(received.append)

        by_id = {a.id: a for a in received[-1]}
        assert set(by_id) == {"ms", "good"}
        assert by_id["ms"].created_at.year == 2024

    def test_any_decoder_failure_skips_only_that_document(self, service, fake_db):
        """An unexpected decoder exception drops one document, not the snapshot"""
        fake_db.put("albums", "good", album_doc("Q1"), emit=False)
        fake_db.put("albums", "bad", album_doc("Q2"), emit=False)
        received = []

        def decoder(doc_id, data):
            if doc_id == "bad":
                raise ValueError("year 56759 is out of range")
            return Album.from_document(doc_id, data)

        service.add_listener("albums", "albums", [], received.append, decoder)
        fake_db.put("albums", "later", album_doc("Q3"))

        assert sorted(a.id for a in received[0]) == ["good"]
        assert sorted(a.id for a in received[-1]) == ["good", "later"]
        assert service.listener_count == 1

    def test_role_filter(self, service, fake_db):
        fake_db.put("invitations", "i1", invitation_doc("Q1", guestRole="family"), emit=False)
        fake_db.put("invitations", "i2", invitation_doc("Q2", guestRole="guest"), emit=False)
        received = []

        service.listen_to_invitations_by_role("family", received.append)

        assert [i.id for i in received[-1]] == ["i1"]

    def test_featured_albums_must_be_public(self, service, fake_db):
        fake_db.put("albums", "a1", album_doc("Q1", isFeatured=True), emit=False)
        fake_db.put("albums", "a2", album_doc("Q2", isFeatured=True, isPublic=False), emit=False)
        received = []

        service.listen_to_featured_albums(received.append)

        assert [a.id for a in received[-1]] == ["a1"]

    def test_pending_media(self, service, fake_db):
        fake_db.put("media", "m1", media_doc(isApproved=False), emit=False)
        fake_db.put("media", "m2", media_doc(isApproved=True), emit=False)
        received = []

        service.listen_to_pending_media(received.append)

        assert [m.id for m in received[-1]] == ["m1"]

    def test_rsvps_by_status(self, service, fake_db):
        fake_db.put("rsvp", "r1", rsvp_doc(status="attending"), emit=False)
        fake_db.put("rsvp", "r2", rsvp_doc(status="not_attending"), emit=False)
        received = []

        service.listen_to_rsvps_by_status("not_attending", received.append)

        assert [r.id for r in received[-1]] == ["r2"]


class TestApprovedMediaFilter:
    """Album media listeners only ever see approved items"""

    def test_unapproved_newest_item_excluded(self, service, fake_db):
        fake_db.put("media", "old", media_doc("a1", createdAt="2024-05-01T00:00:00+00:00"), emit=False)
        received = []
        service.listen_to_media_by_album("a1", received.append)

        fake_db.put("media", "newest", media_doc(
            "a1", isApproved=False, createdAt="2024-05-09T00:00:00+00:00",
        ))

        for snapshot in received:
            assert all(m.is_approved for m in snapshot)
        assert [m.id for m in received[-1]] == ["old"]

    def test_other_albums_excluded(self, service, fake_db):
        fake_db.put("media", "m1", media_doc("a1"), emit=False)
        fake_db.put("media", "m2", media_doc("a2"), emit=False)
        received = []

        service.listen_to_media_by_album("a1", received.append)

        assert [m.album_id for m in received[-1]] == ["a1"]


class TestQRLookup:
    """By-token listeners reduce to a single entity or None"""

    def test_no_match_delivers_none(self, service):
        received = []
        service.listen_to_invitation_by_qr("missing", received.append)

        assert received == [None]

    def test_single_match_delivers_entity(self, service, fake_db):
        fake_db.put("invitations", "i1", invitation_doc("abc123"), emit=False)
        received = []

        service.listen_to_invitation_by_qr("abc123", received.append)

        assert isinstance(received[-1], Invitation)
        assert received[-1].id == "i1"

    def test_album_by_qr_uses_limit_one(self, service, fake_db):
        service.listen_to_album_by_qr("A1", lambda album: None)

        listener = fake_db.open_listeners("albums")[0]
        assert listener.constraints == [Where("qrCode", "==", "A1"), Limit(1)]

    def test_subscribers_receive_the_list(self, service, fake_db):
        fake_db.put("rsvp", "r1", rsvp_doc(qrCode="T1"), emit=False)
        primary, external = [], []

        service.listen_to_rsvp_by_qr("T1", primary.append)
        service.subscribe("rsvp-qr-T1", external.append)
        fake_db.emit("rsvp")

        assert primary[-1].id == "r1"
        assert [r.id for r in external[-1]] == ["r1"]


class TestReplaceSemantics:
    """One live query per key"""

    def test_second_registration_replaces_first(self, service, fake_db):
        first, second = [], []

        service.add_listener("albums", "albums", [OrderBy("createdAt")], first.append, Album.from_document)
        service.add_listener("albums", "albums", [OrderBy("createdAt")], second.append, Album.from_document)

        assert len(fake_db.open_listeners("albums")) == 1
        assert service.listener_count == 1

        before = len(first)
        fake_db.put("albums", "a1", album_doc())
        assert len(first) == before
        assert [a.id for a in second[-1]] == ["a1"]

    def test_stale_handle_is_noop(self, service, fake_db):
        """Closing a replaced listener's handle leaves the new one open"""
        stale = service.listen_to_albums(lambda albums: None)
        service.listen_to_albums(lambda albums: None)

        stale()

        assert len(fake_db.open_listeners("albums")) == 1
        assert service.active_keys() == ["albums"]

    def test_handle_closes_listener(self, service, fake_db):
        unsubscribe = service.listen_to_albums(lambda albums: None)

        unsubscribe()
        unsubscribe()

        assert fake_db.open_listeners() == []
        assert service.listener_count == 0


class TestFanOut:
    """Primary handler plus external subscribers"""

    def test_subscriber_receives_each_emission_once(self, service, fake_db):
        primary, external = [], []
        service.listen_to_albums(primary.append)
        service.subscribe("albums", external.append)

        fake_db.put("albums", "a1", album_doc())

        assert len(primary) == 2
        assert len(external) == 1
        assert external[0] is primary[-1]

    def test_failing_handler_isolated(self, service, fake_db):
        external = []

        def broken(albums):
            raise RuntimeError("widget gone")

        service.listen_to_albums(broken)
        service.subscribe("albums", external.append)
        fake_db.put("albums", "a1", album_doc())

        assert len(external) == 1

    def test_subscribers_survive_listener_removal(self, service, fake_db):
        external = []
        service.subscribe("albums", external.append)
        service.listen_to_albums(lambda albums: None)

        service.remove_listener("albums")
        service.listen_to_albums(lambda albums: None)
        fake_db.put("albums", "a1", album_doc())

        assert service.subscriber_count("albums") == 1
        assert [a.id for a in external[-1]] == ["a1"]

    def test_unsubscribe_subscriber(self, service, fake_db):
        external = []
        service.listen_to_albums(lambda albums: None)
        unsubscribe = service.subscribe("albums", external.append)

        unsubscribe()
        fake_db.put("albums", "a1", album_doc())

        assert external == []
        assert service.subscriber_count("albums") == 0


class TestFullTeardown:
    """remove_all_listeners()"""

    def test_no_delivery_after_teardown(self, service, fake_db):
        """Late transport events for closed listeners are dropped"""
        received = []
        service.listen_to_albums(received.append)
        service.listen_to_all_media(received.append)
        service.subscribe("albums", received.append)
        listeners = list(fake_db.listeners)

        service.remove_all_listeners()
        received.clear()
        for listener in listeners:
            listener.on_documents([("late", album_doc())])

        assert received == []
        assert fake_db.open_listeners() == []
        assert service.listener_count == 0

    def test_stats_torn_down_too(self, service, fake_db):
        service.listen_to_stats(lambda stats: None)

        service.remove_all_listeners()

        assert fake_db.open_listeners() == []


class TestListenerFailures:
    """Failures opening queries"""

    def test_listen_failure_raises_subscription_error(self, service, fake_db):
        fake_db.failing_collections.add("albums")

        with pytest.raises(SubscriptionError) as exc_info:
            service.listen_to_albums(lambda albums: None)

        assert exc_info.value.key == "albums"
        assert service.listener_count == 0

    def test_snapshot_raw_documents(self, service, fake_db):
        fake_db.put("albums", "a1", album_doc("Q1"), emit=False)

        rows = service.get_snapshot("albums", [Where("qrCode", "==", "Q1")])

        assert rows[0]["id"] == "a1"
        assert rows[0]["qrCode"] == "Q1"

    def test_snapshot_decoded(self, service, fake_db):
        fake_db.put("media", "m1", media_doc(), emit=False)

        items = service.get_snapshot("media", decoder=Media.from_document)

        assert isinstance(items[0], Media)

    def test_snapshot_failure(self, service, fake_db):
        fake_db.failing_collections.add("media")

        with pytest.raises(SubscriptionError):
            service.get_snapshot("media")


class TestStatsListener:
    """Combined dashboard stats"""

    def test_initial_emissions(self, service, fake_db):
        fake_db.put("invitations", "i1", invitation_doc(), emit=False)
        received = []

        service.listen_to_stats(received.append)

        assert received[-1].invitations.total == 1
        assert sorted(service.active_keys()) == ["stats-albums", "stats-invitations", "stats-media"]

    def test_media_append_emits_once(self, service, fake_db):
        """Adding one media item produces exactly one emission, media +1"""
        fake_db.put("invitations", "i1", invitation_doc("Q1"), emit=False)
        fake_db.put("albums", "a1", album_doc("A1"), emit=False)
        fake_db.put("media", "m1", media_doc("a1"), emit=False)
        received = []
        service.listen_to_stats(received.append)
        previous = received[-1]
        count = len(received)

        fake_db.put("media", "m2", media_doc("a1", fileType="video/mp4"))

        assert len(received) == count + 1
        latest = received[-1]
        assert latest.media.total_media == previous.media.total_media + 1
        assert latest.invitations == previous.invitations
        assert latest.albums.total_albums == previous.albums.total_albums
        assert latest.albums.public_albums == previous.albums.public_albums
        assert latest.albums.featured_albums == previous.albums.featured_albums

    def test_handle_closes_all_three(self, service, fake_db):
        unsubscribe = service.listen_to_stats(lambda stats: None)

        unsubscribe()

        assert fake_db.open_listeners() == []
        assert service.listener_count == 0

    def test_failure_closes_opened_sources(self, service, fake_db):
        fake_db.failing_collections.add("media")

        with pytest.raises(SubscriptionError):
            service.listen_to_stats(lambda stats: None)

        assert fake_db.open_listeners() == []

    def test_stats_subscriber(self, service, fake_db):
        external = []
        service.listen_to_stats(lambda stats: None)
        service.subscribe("stats", external.append)

        fake_db.put("albums", "a1", album_doc())

        assert external[-1].albums.total_albums == 1
