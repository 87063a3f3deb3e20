# =============================================================================
# wedding_core/api/client.py
# REST Client for the Wedding Backend
# =============================================================================
"""
RestClient - the single gateway to the REST API.

Responsibilities:
- Bearer token on every authenticated call
- GET responses served from / written to the request cache, with concurrent
  identical GETs collapsed into one network call
- Canonical list reads mirrored into the offline cache, and served from it
  while the network is known to be down
- Every failure normalized to ApiError and broadcast as an error toast
- 401 ends the session: token and cached responses dropped, user sent to login
"""

from __future__ import annotations
from typing import Any, Callable, Dict, List, Optional, Tuple

import requests
import streamlit as st

from wedding_core.cache.request_cache import RequestCache, cache_key
from wedding_core.config import AppSettings
from wedding_core.errors import (
    ApiError,
    AuthenticationError,
    RateLimitError,
    TransportError,
)
from wedding_core.logging import get_logger
from wedding_core.notifications import NotificationChannel
from wedding_core.offline.connection_manager import NetworkStatus
from wedding_core.offline.offline_cache import OfflineCache
from wedding_core.runtime import has_script_context

from .credentials import CredentialStore

logger = get_logger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests. Please try again shortly."
TIMEOUT_MESSAGE = "Request timed out. Check your connection and try again."
DEFAULT_ERROR_MESSAGE = "Request failed"
DEFAULT_ERROR_CODE = "request_error"

# Canonical list endpoint -> offline bucket (only param-less reads are mirrored)
OFFLINE_ENDPOINTS = {
    "/invitations": "invitations",
    "/albums/host": "albums",
    "/rsvp/all": "rsvp",
    "/invitations/stats": "stats",
}

# Session-state keys shared with the page layer
CURRENT_PATH_KEY = "current_path"
REDIRECT_KEY = "redirect_to"

FileField = Tuple[str, Tuple[str, Any, str]]


def session_location() -> str:
    """Current page path as recorded by the page layer, or "" outside Streamlit."""
    if not has_script_context():
        return ""
    return str(st.session_state.get(CURRENT_PATH_KEY, ""))


def session_navigator(path: str) -> None:
    """Ask the page layer to navigate to `path` on its next run."""
    if has_script_context():
        st.session_state[REDIRECT_KEY] = path
    logger.info(f"Redirect requested to {path}")


class RestClient:
    """
    Usage:
        client = RestClient(settings, credentials, request_cache, offline_cache,
                            network_status, notifications)
        albums = client.get("/albums/host")
        client.post("/albums", json={"name": "Reception"})
    """

    def __init__(
        self,
        settings: AppSettings,
        credentials: CredentialStore,
        request_cache: RequestCache,
        offline_cache: OfflineCache,
        network_status: NetworkStatus,
        notifications: NotificationChannel,
        session: Optional[requests.Session] = None,
        navigator: Callable[[str], None] = session_navigator,
        location: Callable[[], str] = session_location,
    ):
        self.settings = settings
        self.credentials = credentials
        self.request_cache = request_cache
        self.offline_cache = offline_cache
        self.network_status = network_status
        self.notifications = notifications
        self.session = session or requests.Session()
        self._navigator = navigator
        self._location = location

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Any] = None,
        files: Optional[List[FileField]] = None,
        data: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
        authenticated: bool = True,
        expect_json: bool = True,
    ) -> Any:
        """
        Perform a request and return the decoded response body.

        Raises:
            ApiError: Normalized failure (TransportError, AuthenticationError,
                RateLimitError for the special cases)
        """
        method = method.upper()
        if method != "GET":
            try:
                return self._send(method, endpoint, params, json, files, data,
                                  timeout, authenticated, expect_json)
            except ApiError as e:
                self._broadcast(e)
                raise

        cached = self.request_cache.get(endpoint, params)
        if cached is not None:
            logger.debug(f"Request cache hit: {endpoint}")
            return cached

        return self.request_cache.deduplicate_request(
            cache_key(endpoint, params),
            lambda: self._live_get(endpoint, params, timeout, authenticated, expect_json),
        )

    def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None, **kwargs) -> Any:
        return self.request("GET", endpoint, params=params, **kwargs)

    def post(self, endpoint: str, json: Optional[Any] = None, **kwargs) -> Any:
        return self.request("POST", endpoint, json=json, **kwargs)

    def put(self, endpoint: str, json: Optional[Any] = None, **kwargs) -> Any:
        return self.request("PUT", endpoint, json=json, **kwargs)

    def delete(self, endpoint: str, **kwargs) -> Any:
        return self.request("DELETE", endpoint, **kwargs)

    def upload(
        self,
        endpoint: str,
        files: List[FileField],
        data: Optional[Dict[str, Any]] = None,
        authenticated: bool = True,
    ) -> Any:
        """Multipart POST with the longer upload timeout."""
        return self.request(
            "POST",
            endpoint,
            files=files,
            data=data,
            timeout=self.settings.upload_timeout,
            authenticated=authenticated,
        )

    # =========================================================================
    # GET PIPELINE
    # =========================================================================

    def _live_get(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]],
        timeout: Optional[float],
        authenticated: bool,
        expect_json: bool,
    ) -> Any:
        try:
            body = self._send("GET", endpoint, params, None, None, None,
                              timeout, authenticated, expect_json)
        except TransportError as e:
            fallback = self._offline_fallback(endpoint, params)
            if fallback is not None:
                logger.warning(f"Serving {endpoint} from offline cache: {e.message}")
                return fallback
            self._broadcast(e)
            raise
        except ApiError as e:
            self._broadcast(e)
            raise

        self.request_cache.set(endpoint, body, params)
        bucket = OFFLINE_ENDPOINTS.get(endpoint)
        if bucket and not params:
            self.offline_cache.set_bucket(bucket, body)
        return body

    def _offline_fallback(self, endpoint: str, params: Optional[Dict[str, Any]]) -> Optional[Any]:
        if self.network_status.is_online or params:
            return None
        bucket = OFFLINE_ENDPOINTS.get(endpoint)
        if not bucket:
            return None
        return self.offline_cache.get_bucket(bucket)

    # =========================================================================
    # TRANSPORT
    # =========================================================================

    def _url(self, endpoint: str) -> str:
        return f"{self.settings.api_base_url.rstrip('/')}/{endpoint.lstrip('/')}"

    def _headers(self, authenticated: bool) -> Dict[str, str]:
        headers = {}
        if authenticated:
            token = self.credentials.get_token()
            if token:
                headers["Authorization"] = f"Bearer {token}"
        return headers

    def _send(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]],
        json: Optional[Any],
        files: Optional[List[FileField]],
        data: Optional[Dict[str, Any]],
        timeout: Optional[float],
        authenticated: bool,
        expect_json: bool,
    ) -> Any:
        logger.debug(f"{method} {endpoint}")
        try:
            response = self.session.request(
                method=method,
                url=self._url(endpoint),
                params=params,
                json=json,
                files=files,
                data=data,
                headers=self._headers(authenticated),
                timeout=timeout or self.settings.request_timeout,
            )
        except requests.exceptions.Timeout as e:
            logger.warning(f"{method} {endpoint} timed out: {e}")
            raise TransportError(TIMEOUT_MESSAGE) from e
        except requests.exceptions.RequestException as e:
            logger.warning(f"{method} {endpoint} failed: {e}")
            raise TransportError(str(e) or DEFAULT_ERROR_MESSAGE) from e

        if response.status_code >= 400:
            raise self._normalize_http_error(method, endpoint, response)

        if not expect_json:
            return response.content
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    def _normalize_http_error(self, method: str, endpoint: str, response: requests.Response) -> ApiError:
        status = response.status_code
        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            body = {}

        message = (
            body.get("message")
            or body.get("error")
            or f"Request failed with status code {status}"
        )
        error = body.get("error") or DEFAULT_ERROR_CODE
        logger.warning(f"{method} {endpoint} -> {status}: {message}")

        if status == 401:
            self._end_session()
            return AuthenticationError(str(message), error=str(error))
        if status == 429:
            return RateLimitError(RATE_LIMIT_MESSAGE, error=str(error))
        return ApiError(str(message), status_code=status, error=str(error))

    def _end_session(self) -> None:
        self.credentials.clear()
        self.request_cache.clear()
        login_path = self.settings.login_path
        if not self._location().startswith(login_path):
            self._navigator(login_path)

    def _broadcast(self, error: ApiError) -> None:
        self.notifications.publish("error", error.message)
