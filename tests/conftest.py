# =============================================================================
# tests/conftest.py
# Pytest Configuration and Fixtures
# =============================================================================

import json
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional, Sequence
from unittest.mock import MagicMock

import pytest
import requests

from wedding_core.config import AppSettings
from wedding_core.offline.local_store import MemoryStore
from wedding_core.realtime.database import Limit, OrderBy, Where


# =============================================================================
# FAKE DOCUMENT DATABASE
# =============================================================================

_OPS: Dict[str, Callable[[Any, Any], bool]] = {
    "==": lambda a, b: a == b,
    "!=": lambda a, b: a != b,
    "<": lambda a, b: a is not None and a < b,
    "<=": lambda a, b: a is not None and a <= b,
    ">": lambda a, b: a is not None and a > b,
    ">=": lambda a, b: a is not None and a >= b,
    "in": lambda a, b: a in b,
    "array-contains": lambda a, b: isinstance(a, list) and b in a,
}


class FakeListener:
    """One open query on the fake database"""

    def __init__(self, collection: str, constraints: Sequence, on_documents: Callable):
        self.collection = collection
        self.constraints = list(constraints)
        self.on_documents = on_documents
        self.closed = False
        self.deliveries = 0

    def close(self) -> None:
        self.closed = True

    def deliver(self, documents) -> None:
        if not self.closed:
            self.deliveries += 1
            self.on_documents(documents)


class FakeDocumentDatabase:
    """
    In-memory stand-in for Firestore with where/order_by/limit semantics.

    Snapshots are pushed synchronously: once when a listener opens (like
    Firestore's initial snapshot) and again on every write to its collection.
    """

    def __init__(self, emit_on_listen: bool = True):
        self.collections: Dict[str, Dict[str, Dict[str, Any]]] = defaultdict(dict)
        self.listeners: List[FakeListener] = []
        self.emit_on_listen = emit_on_listen
        self.failing_collections = set()

    def query(self, collection: str, constraints: Sequence) -> List:
        documents = list(self.collections[collection].items())
        limit = None
        for constraint in constraints:
            if isinstance(constraint, Where):
                op = _OPS[constraint.op]
                documents = [
                    (doc_id, data) for doc_id, data in documents
                    if op(data.get(constraint.field), constraint.value)
                ]
        for constraint in constraints:
            if isinstance(constraint, OrderBy):
                documents.sort(
                    key=lambda item: str(item[1].get(constraint.field) or ""),
                    reverse=constraint.descending,
                )
            elif isinstance(constraint, Limit):
                limit = constraint.count
        if limit is not None:
            documents = documents[:limit]
        return [(doc_id, dict(data)) for doc_id, data in documents]

    def listen(self, collection: str, constraints: Sequence, on_documents: Callable):
        if collection in self.failing_collections:
            raise RuntimeError(f"permission denied on {collection}")
        listener = FakeListener(collection, constraints, on_documents)
        self.listeners.append(listener)
        if self.emit_on_listen:
            listener.deliver(self.query(collection, constraints))
        return listener.close

    def fetch(self, collection: str, constraints: Sequence) -> List:
        if collection in self.failing_collections:
            raise RuntimeError(f"permission denied on {collection}")
        return self.query(collection, constraints)

    def emit(self, collection: str) -> None:
        """Push the current result set to every open listener on `collection`."""
        for listener in list(self.listeners):
            if listener.collection == collection:
                listener.deliver(self.query(collection, listener.constraints))

    def put(self, collection: str, doc_id: str, data: Dict[str, Any], emit: bool = True) -> None:
        self.collections[collection][doc_id] = dict(data)
        if emit:
            self.emit(collection)

    def delete(self, collection: str, doc_id: str, emit: bool = True) -> None:
        self.collections[collection].pop(doc_id, None)
        if emit:
            self.emit(collection)

    def open_listeners(self, collection: Optional[str] = None) -> List[FakeListener]:
        return [
            listener for listener in self.listeners
            if not listener.closed and (collection is None or listener.collection == collection)
        ]


class FakeClock:
    """Manually advanced clock returning epoch milliseconds"""

    def __init__(self, start_ms: float = 1_700_000_000_000):
        self.now_ms = start_ms

    def __call__(self) -> float:
        return self.now_ms

    def advance(self, ms: float) -> None:
        self.now_ms += ms


# =============================================================================
# DOCUMENT FIXTURES
# =============================================================================

def invitation_doc(qr_code: str = "QR-INV-1", **overrides) -> Dict[str, Any]:
    data = {
        "guestName": "Maria Santos",
        "guestRole": "guest",
        "customMessage": "We would love to celebrate with you",
        "invitationType": "personalized",
        "qrCode": qr_code,
        "isActive": True,
        "rsvp": {"status": "pending"},
        "createdAt": "2024-05-01T10:00:00+00:00",
        "updatedAt": "2024-05-01T10:00:00+00:00",
    }
    data.update(overrides)
    return data


def album_doc(qr_code: str = "QR-ALB-1", **overrides) -> Dict[str, Any]:
    data = {
        "name": "Reception",
        "description": "Evening party",
        "isPublic": True,
        "isFeatured": False,
        "qrCode": qr_code,
        "createdAt": "2024-05-01T10:00:00+00:00",
        "updatedAt": "2024-05-01T10:00:00+00:00",
    }
    data.update(overrides)
    return data


def media_doc(album_id: str = "album-1", **overrides) -> Dict[str, Any]:
    data = {
        "albumId": album_id,
        "fileName": "first-dance.jpg",
        "fileType": "image/jpeg",
        "fileSize": 204800,
        "fileUrl": "https://cdn.example.com/first-dance.jpg",
        "uploadedBy": "Aunt May",
        "isApproved": True,
        "createdAt": "2024-05-02T10:00:00+00:00",
        "updatedAt": "2024-05-02T10:00:00+00:00",
    }
    data.update(overrides)
    return data


def rsvp_doc(invitation_id: str = "inv-1", **overrides) -> Dict[str, Any]:
    data = {
        "invitationId": invitation_id,
        "qrCode": "QR-INV-1",
        "status": "attending",
        "attendeeCount": 2,
        "guestNames": ["Maria Santos", "Jose Santos"],
        "submittedAt": "2024-05-03T10:00:00+00:00",
    }
    data.update(overrides)
    return data


@pytest.fixture
def fake_db():
    """Empty fake document database"""
    return FakeDocumentDatabase()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_store():
    return MemoryStore()


# =============================================================================
# HTTP FIXTURES
# =============================================================================

def make_response(status_code: int = 200, body: Any = None) -> MagicMock:
    """Mock requests.Response with a JSON body"""
    response = MagicMock()
    response.status_code = status_code
    if body is None:
        response.content = b""
        response.json.side_effect = ValueError("No JSON object could be decoded")
        response.text = ""
    else:
        raw = json.dumps(body)
        response.content = raw.encode()
        response.json.return_value = body
        response.text = raw
    return response


@pytest.fixture
def mock_http():
    """Mock requests.Session; configure session.request per test"""
    session = MagicMock(spec=requests.Session)
    session.request.return_value = make_response(200, {"success": True})
    return session


@pytest.fixture
def settings(tmp_path):
    return AppSettings(
        api_base_url="https://api.test/api",
        offline_cache_path=str(tmp_path / "offline_cache.json"),
    )


@pytest.fixture
def navigator():
    return MagicMock()


@pytest.fixture
def services(settings, fake_db, memory_store, mock_http, navigator):
    """Isolated service bundle over the fake database and a mocked HTTP session"""
    from wedding_core.services import build_services

    return build_services(
        settings,
        database=fake_db,
        store=memory_store,
        session=mock_http,
        navigator=navigator,
        location=lambda: "/host/dashboard",
        credential_session={},
    )


# =============================================================================
# MOCK FIXTURES
# =============================================================================

@pytest.fixture
def mock_streamlit(monkeypatch):
    """Mock Streamlit in the session-integration module"""
    mock_st = MagicMock()
    mock_st.session_state = {}
    monkeypatch.setattr("wedding_core.state.session.st", mock_st)
    return mock_st
