# =============================================================================
# wedding_core/services/container.py
# Composition Root
# =============================================================================

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, MutableMapping, Optional

import requests
import streamlit as st

from wedding_core.api.client import RestClient, session_location, session_navigator
from wedding_core.api.credentials import CredentialStore
from wedding_core.api.resources import AlbumsAPI, AuthAPI, InvitationsAPI, MediaAPI, QRAPI, RSVPAPI
from wedding_core.cache.invalidation import InvalidationBus
from wedding_core.cache.request_cache import RequestCache
from wedding_core.config import AppSettings, load_settings
from wedding_core.errors import ErrorContext
from wedding_core.logging import get_logger
from wedding_core.notifications import NotificationChannel, StreamlitToastSink
from wedding_core.offline.connection_manager import NetworkStatus
from wedding_core.offline.local_store import DurableStore, open_store
from wedding_core.offline.offline_cache import OfflineCache
from wedding_core.realtime.database import DocumentDatabase, FirestoreDatabase, create_firestore_client
from wedding_core.realtime.service import RealtimeService
from wedding_core.runtime import has_script_context
from wedding_core.state.session import release_all

logger = get_logger(__name__)

SERVICES_KEY = "_wedding_services"


@dataclass
class AppServices:
    """Everything a page needs, wired together once"""
    settings: AppSettings
    credentials: CredentialStore
    notifications: NotificationChannel
    network_status: NetworkStatus
    offline_cache: OfflineCache
    request_cache: RequestCache
    invalidation: InvalidationBus
    client: RestClient
    auth: AuthAPI
    invitations: InvitationsAPI
    albums: AlbumsAPI
    media: MediaAPI
    qr: QRAPI
    rsvp: RSVPAPI
    realtime: RealtimeService

    def shutdown(self) -> None:
        """Unmount stored bindings, close every live listener and stop background checks."""
        with ErrorContext("Releasing realtime bindings", show_user_message=False):
            if has_script_context():
                release_all(self.realtime)
            else:
                self.realtime.remove_all_listeners()
        with ErrorContext("Stopping network monitor", show_user_message=False):
            self.network_status.stop_monitoring()


def build_services(
    settings: Optional[AppSettings] = None,
    database: Optional[DocumentDatabase] = None,
    store: Optional[DurableStore] = None,
    session: Optional[requests.Session] = None,
    navigator: Callable[[str], None] = session_navigator,
    location: Callable[[], str] = session_location,
    credential_session: Optional[MutableMapping[str, Any]] = None,
) -> AppServices:
    """
    Wire an isolated set of services.

    Args:
        settings: Defaults to load_settings()
        database: Defaults to Firestore built from settings
        store: Durable store for the offline cache; defaults to the JSON
            file at settings.offline_cache_path
        session: HTTP session for the REST client
        navigator: Called with the login path when a 401 ends the session
        location: Returns the current page path
        credential_session: Mapping holding the bearer token

    Returns:
        AppServices bundle
    """
    settings = settings or load_settings()
    if database is None:
        database = FirestoreDatabase(create_firestore_client(settings))
    if store is None:
        store = open_store(settings.offline_cache_path)

    credentials = CredentialStore(credential_session)
    notifications = NotificationChannel()
    network_status = NetworkStatus(host=settings.api_host)
    offline_cache = OfflineCache(store)
    request_cache = RequestCache(default_max_age_ms=settings.request_cache_ttl_ms)
    invalidation = InvalidationBus(request_cache, offline_cache)
    client = RestClient(
        settings,
        credentials,
        request_cache,
        offline_cache,
        network_status,
        notifications,
        session=session,
        navigator=navigator,
        location=location,
    )

    logger.info(f"Services built for {settings.api_base_url}")
    return AppServices(
        settings=settings,
        credentials=credentials,
        notifications=notifications,
        network_status=network_status,
        offline_cache=offline_cache,
        request_cache=request_cache,
        invalidation=invalidation,
        client=client,
        auth=AuthAPI(client, invalidation, credentials),
        invitations=InvitationsAPI(client, invalidation),
        albums=AlbumsAPI(client, invalidation),
        media=MediaAPI(client, invalidation),
        qr=QRAPI(client, invalidation),
        rsvp=RSVPAPI(client, invalidation),
        realtime=RealtimeService(database),
    )


@st.cache_resource
def get_firestore_database() -> FirestoreDatabase:
    """Firestore connection shared by every browser session."""
    return FirestoreDatabase(create_firestore_client(load_settings()))


def get_services() -> AppServices:
    """
    The current browser session's services.

    Built once per Streamlit session and kept in st.session_state; only the
    Firestore connection is shared across sessions. Listener keys, cached
    responses and the bearer token therefore never leak between guests and
    the host.
    """
    services = st.session_state.get(SERVICES_KEY)
    if services is None:
        services = build_services(database=get_firestore_database())
        toast_sink = StreamlitToastSink()
        services.notifications.subscribe(toast_sink)
        st.session_state["_toast_sink"] = toast_sink
        services.network_status.start_monitoring()
        st.session_state[SERVICES_KEY] = services
    else:
        st.session_state["_toast_sink"].flush()
    return services
