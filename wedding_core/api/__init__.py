# =============================================================================
# wedding_core/api/__init__.py
# REST Client and Resource APIs
# =============================================================================

from .credentials import CredentialStore, TOKEN_KEY
from .client import (
    RestClient,
    OFFLINE_ENDPOINTS,
    RATE_LIMIT_MESSAGE,
    TIMEOUT_MESSAGE,
    session_location,
    session_navigator,
)
from .resources import (
    MediaFile,
    AuthAPI,
    InvitationsAPI,
    AlbumsAPI,
    MediaAPI,
    QRAPI,
    RSVPAPI,
)
from .validation import ValidationResult

__all__ = [
    "CredentialStore",
    "TOKEN_KEY",
    "RestClient",
    "OFFLINE_ENDPOINTS",
    "RATE_LIMIT_MESSAGE",
    "TIMEOUT_MESSAGE",
    "session_location",
    "session_navigator",
    "MediaFile",
    "AuthAPI",
    "InvitationsAPI",
    "AlbumsAPI",
    "MediaAPI",
    "QRAPI",
    "RSVPAPI",
    "ValidationResult",
]
