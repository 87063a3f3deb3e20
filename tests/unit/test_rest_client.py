# =============================================================================
# tests/unit/test_rest_client.py
# Unit Tests for RestClient
# =============================================================================

from unittest.mock import MagicMock

import pytest
import requests

from conftest import make_response
from wedding_core.api.client import RATE_LIMIT_MESSAGE, TIMEOUT_MESSAGE, RestClient
from wedding_core.errors import ApiError, AuthenticationError, RateLimitError, TransportError


@pytest.fixture
def toasts(services):
    received = []
    services.notifications.subscribe(received.append)
    return received


class TestRestClientRequests:
    """Happy-path request handling"""

    def test_get_returns_decoded_body(self, services, mock_http):
        mock_http.request.return_value = make_response(200, [{"id": "a1"}])

        assert services.client.get("/albums/host") == [{"id": "a1"}]

        kwargs = mock_http.request.call_args.kwargs
        assert kwargs["method"] == "GET"
        assert kwargs["url"] == "https://api.test/api/albums/host"
        assert kwargs["timeout"] == services.settings.request_timeout

    def test_bearer_token_attached(self, services, mock_http):
        services.credentials.set_token("tok-123")

        services.client.get("/auth/profile")

        headers = mock_http.request.call_args.kwargs["headers"]
        assert headers == {"Authorization": "Bearer tok-123"}

    def test_unauthenticated_call_has_no_token(self, services, mock_http):
        services.credentials.set_token("tok-123")

        services.client.get("/albums/qr/QR1", authenticated=False)

        assert mock_http.request.call_args.kwargs["headers"] == {}

    def test_empty_body_returns_none(self, services, mock_http):
        mock_http.request.return_value = make_response(204)
        assert services.client.delete("/albums/a1") is None

    def test_binary_response(self, services, mock_http):
        """expect_json=False hands back raw bytes"""
        response = make_response(200)
        response.content = b"\x89PNG"
        mock_http.request.return_value = response

        body = services.client.request("POST", "/qr/generate-file", json={"url": "x"}, expect_json=False)

        assert body == b"\x89PNG"

    def test_upload_uses_upload_timeout(self, services, mock_http):
        services.client.upload("/media/upload/a1", files=[("media", ("a.jpg", b"x", "image/jpeg"))])

        kwargs = mock_http.request.call_args.kwargs
        assert kwargs["timeout"] == services.settings.upload_timeout
        assert kwargs["files"] == [("media", ("a.jpg", b"x", "image/jpeg"))]


class TestRestClientCaching:
    """GET caching and offline mirroring"""

    def test_repeated_get_served_from_cache(self, services, mock_http):
        mock_http.request.return_value = make_response(200, [{"id": "a1"}])

        services.client.get("/albums/host")
        services.client.get("/albums/host")

        assert mock_http.request.call_count == 1

    def test_mutations_always_hit_network(self, services, mock_http):
        """POST responses are never cached for a later GET"""
        mock_http.request.return_value = make_response(201, {"id": "a1"})

        services.client.post("/albums", json={"name": "Reception"})
        services.client.post("/albums", json={"name": "Reception"})
        services.client.get("/albums")

        assert mock_http.request.call_count == 3
        assert [c.kwargs["method"] for c in mock_http.request.call_args_list] == ["POST", "POST", "GET"]

    def test_canonical_get_mirrored_offline(self, services, mock_http):
        mock_http.request.return_value = make_response(200, [{"id": "a1"}])

        services.client.get("/albums/host")

        assert services.offline_cache.get_albums() == [{"id": "a1"}]

    def test_parameterized_get_not_mirrored(self, services, mock_http):
        services.client.get("/invitations", params={"page": 2})
        assert services.offline_cache.get_invitations() is None


class TestRestClientErrors:
    """Normalization of every failure"""

    def test_rate_limit_message_is_fixed(self, services, mock_http, toasts):
        """429 always yields the fixed message, whatever the body says"""
        mock_http.request.return_value = make_response(429, {"message": "slow down buddy"})

        with pytest.raises(RateLimitError) as exc_info:
            services.client.get("/albums/host")

        assert exc_info.value.status_code == 429
        assert exc_info.value.message == RATE_LIMIT_MESSAGE
        assert toasts[-1].message == RATE_LIMIT_MESSAGE
        assert toasts[-1].type == "error"

    def test_server_message_used(self, services, mock_http, toasts):
        mock_http.request.return_value = make_response(
            400, {"message": "Album name taken", "error": "duplicate"}
        )

        with pytest.raises(ApiError) as exc_info:
            services.client.post("/albums", json={"name": "Reception"})

        assert exc_info.value.to_dict() == {
            "statusCode": 400,
            "message": "Album name taken",
            "error": "duplicate",
        }
        assert toasts[-1].message == "Album name taken"

    def test_error_field_used_when_no_message(self, services, mock_http):
        mock_http.request.return_value = make_response(403, {"error": "forbidden"})

        with pytest.raises(ApiError) as exc_info:
            services.client.get("/invitations")

        assert exc_info.value.message == "forbidden"

    def test_fallback_message_without_body(self, services, mock_http):
        mock_http.request.return_value = make_response(500)

        with pytest.raises(ApiError) as exc_info:
            services.client.get("/invitations")

        assert exc_info.value.message == "Request failed with status code 500"
        assert exc_info.value.error == "request_error"

    def test_timeout_normalized(self, services, mock_http, toasts):
        mock_http.request.side_effect = requests.exceptions.Timeout("read timed out")

        with pytest.raises(TransportError) as exc_info:
            services.client.get("/albums/a1")

        assert exc_info.value.status_code == 0
        assert exc_info.value.message == TIMEOUT_MESSAGE
        assert len(toasts) == 1

    def test_failed_get_not_cached(self, services, mock_http):
        mock_http.request.return_value = make_response(500, {"message": "boom"})
        with pytest.raises(ApiError):
            services.client.get("/invitations")

        mock_http.request.return_value = make_response(200, [])
        assert services.client.get("/invitations") == []


class TestRestClientSessionEnd:
    """401 handling"""

    def test_unauthorized_ends_session(self, services, mock_http, navigator, toasts):
        """401 clears the token and cached responses and redirects to login"""
        services.credentials.set_token("tok-123")
        services.request_cache.set("/albums/host", [{"id": "a1"}])
        mock_http.request.return_value = make_response(401, {"message": "Token expired"})

        with pytest.raises(AuthenticationError) as exc_info:
            services.client.get("/invitations")

        assert exc_info.value.status_code == 401
        assert services.credentials.get_token() is None
        assert services.request_cache.size() == 0
        navigator.assert_called_once_with("/host/login")
        assert toasts[-1].message == "Token expired"

    def test_no_redirect_when_already_on_login(self, services, mock_http):
        navigator = MagicMock()
        client = RestClient(
            services.settings,
            services.credentials,
            services.request_cache,
            services.offline_cache,
            services.network_status,
            services.notifications,
            session=mock_http,
            navigator=navigator,
            location=lambda: "/host/login",
        )
        mock_http.request.return_value = make_response(401, {"message": "Invalid credentials"})

        with pytest.raises(AuthenticationError):
            client.post("/auth/login", json={"email": "a@b.co", "password": "x"}, authenticated=False)

        navigator.assert_not_called()


class TestRestClientOffline:
    """Offline-cache fallback"""

    def test_offline_fallback_served_silently(self, services, mock_http, toasts):
        """Transport failure while offline returns the offline bucket, no toast"""
        services.offline_cache.set_albums([{"id": "cached"}])
        services.network_status.set_online(False)
        mock_http.request.side_effect = requests.exceptions.ConnectionError("unreachable")

        assert services.client.get("/albums/host") == [{"id": "cached"}]
        assert toasts == []

    def test_no_fallback_while_online(self, services, mock_http, toasts):
        """A transport failure while online propagates even with offline data"""
        services.offline_cache.set_albums([{"id": "cached"}])
        mock_http.request.side_effect = requests.exceptions.ConnectionError("unreachable")

        with pytest.raises(TransportError):
            services.client.get("/albums/host")
        assert len(toasts) == 1

    def test_no_fallback_for_http_errors(self, services, mock_http):
        """Server responses are never masked by offline data"""
        services.offline_cache.set_albums([{"id": "cached"}])
        services.network_status.set_online(False)
        mock_http.request.return_value = make_response(500, {"message": "boom"})

        with pytest.raises(ApiError):
            services.client.get("/albums/host")

    def test_offline_without_cached_bucket_raises(self, services, mock_http):
        services.network_status.set_online(False)
        mock_http.request.side_effect = requests.exceptions.ConnectionError("unreachable")

        with pytest.raises(TransportError):
            services.client.get("/rsvp/all")
