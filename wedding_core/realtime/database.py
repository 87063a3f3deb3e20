# =============================================================================
# wedding_core/realtime/database.py
# Document Database Boundary (Firestore)
# =============================================================================
"""
Query constraints and the read-only document database interface used by
the real-time service.

Everything above this module speaks in Where/OrderBy/Limit and
(doc_id, data) pairs; only FirestoreDatabase knows the SDK.
"""

from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Protocol, Sequence, Tuple, Union

from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from wedding_core.config import AppSettings
from wedding_core.errors import ConfigurationError
from wedding_core.logging import get_logger

logger = get_logger(__name__)

RawDocument = Tuple[str, Dict[str, Any]]


@dataclass(frozen=True)
class Where:
    field: str
    op: str
    value: Any


@dataclass(frozen=True)
class OrderBy:
    field: str
    descending: bool = True


@dataclass(frozen=True)
class Limit:
    count: int


Constraint = Union[Where, OrderBy, Limit]


class DocumentDatabase(Protocol):
    """Read-only, push-capable document store."""

    def listen(
        self,
        collection: str,
        constraints: Sequence[Constraint],
        on_documents: Callable[[List[RawDocument]], None],
    ) -> Callable[[], None]:
        """Open a live query; returns the function that closes it."""
        ...

    def fetch(self, collection: str, constraints: Sequence[Constraint]) -> List[RawDocument]:
        """One-shot read of the query's current result set."""
        ...


class FirestoreDatabase:
    """
    DocumentDatabase backed by google-cloud-firestore.

    Snapshot callbacks run on the SDK's watch thread.
    """

    def __init__(self, client: firestore.Client):
        self.client = client

    def _query(self, collection: str, constraints: Sequence[Constraint]):
        query = self.client.collection(collection)
        for constraint in constraints:
            if isinstance(constraint, Where):
                query = query.where(filter=FieldFilter(constraint.field, constraint.op, constraint.value))
            elif isinstance(constraint, OrderBy):
                direction = (
                    firestore.Query.DESCENDING if constraint.descending else firestore.Query.ASCENDING
                )
                query = query.order_by(constraint.field, direction=direction)
            elif isinstance(constraint, Limit):
                query = query.limit(constraint.count)
            else:
                raise TypeError(f"Unsupported query constraint: {constraint!r}")
        return query

    @staticmethod
    def _documents(snapshots) -> List[RawDocument]:
        return [(snapshot.id, snapshot.to_dict() or {}) for snapshot in snapshots]

    def listen(
        self,
        collection: str,
        constraints: Sequence[Constraint],
        on_documents: Callable[[List[RawDocument]], None],
    ) -> Callable[[], None]:
        query = self._query(collection, constraints)

        def on_snapshot(snapshots, changes, read_time):
            on_documents(self._documents(snapshots))

        watch = query.on_snapshot(on_snapshot)
        return watch.unsubscribe

    def fetch(self, collection: str, constraints: Sequence[Constraint]) -> List[RawDocument]:
        return self._documents(self._query(collection, constraints).stream())


def create_firestore_client(settings: AppSettings) -> firestore.Client:
    """
    Build a Firestore client from settings.

    Emulator host wins, then an explicit service-account file, then
    application default credentials.

    Raises:
        ConfigurationError: Credentials or project could not be resolved
    """
    project = settings.firebase_project_id
    try:
        if settings.firestore_emulator_host:
            os.environ["FIRESTORE_EMULATOR_HOST"] = settings.firestore_emulator_host
            logger.info(f"Using Firestore emulator at {settings.firestore_emulator_host}")
            return firestore.Client(project=project or "demo-wedding")
        if settings.firebase_credentials_path:
            return firestore.Client.from_service_account_json(
                settings.firebase_credentials_path, project=project
            )
        return firestore.Client(project=project)
    except Exception as e:
        raise ConfigurationError(
            f"Could not create Firestore client: {e}",
            config_key="firebase_credentials_path",
        ) from e
