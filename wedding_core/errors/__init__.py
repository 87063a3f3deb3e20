# =============================================================================
# wedding_core/errors/__init__.py
# Centralized Error Handling for the Wedding Client Core
# =============================================================================

from .exceptions import (
    WeddingAppError,
    ApiError,
    TransportError,
    AuthenticationError,
    RateLimitError,
    SubscriptionError,
    DocumentDecodeError,
    CacheError,
    ValidationError,
    ConfigurationError,
)

from .handlers import (
    handle_error,
    ErrorContext,
    error_boundary,
)

__all__ = [
    # Exceptions
    "WeddingAppError",
    "ApiError",
    "TransportError",
    "AuthenticationError",
    "RateLimitError",
    "SubscriptionError",
    "DocumentDecodeError",
    "CacheError",
    "ValidationError",
    "ConfigurationError",
    # Handlers
    "handle_error",
    "ErrorContext",
    "error_boundary",
]
