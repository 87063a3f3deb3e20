# =============================================================================
# wedding_core/errors/exceptions.py
# Custom Exception Hierarchy for the Wedding Client Core
# =============================================================================

from typing import Optional, Dict, Any, List


class WeddingAppError(Exception):
    """
    Base exception for all wedding client errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (e.g., "API_001")
        details: Additional context as a dictionary
        recoverable: Whether the error can be recovered from
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = True,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or "WA_000"
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        base = f"[{self.code}] {self.message}"
        if self.details:
            base += f" | Details: {self.details}"
        return base

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization"""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
        }


# =============================================================================
# REST API EXCEPTIONS
# =============================================================================

class ApiError(WeddingAppError):
    """
    Normalized REST failure.

    Every error leaving the REST client has this shape, whatever the
    transport or server produced: a status code (0 when no response
    arrived), a user-facing message and a short machine error string.
    """

    default_code = "API_001"

    def __init__(
        self,
        message: str,
        status_code: int = 0,
        error: str = "request_error",
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        details.setdefault("status_code", status_code)
        kwargs.setdefault("code", self.default_code)

        super().__init__(message=message, details=details, **kwargs)
        self.status_code = status_code
        self.error = error

    def to_dict(self) -> Dict[str, Any]:
        """Normalized error payload as broadcast to the UI"""
        return {
            "statusCode": self.status_code,
            "message": self.message,
            "error": self.error,
        }


class TransportError(ApiError):
    """Raised when no HTTP response was received (timeout, unreachable host)"""

    default_code = "API_002"

    def __init__(self, message: str, error: str = "request_error", **kwargs):
        super().__init__(message, status_code=0, error=error, **kwargs)


class AuthenticationError(ApiError):
    """Raised on 401; the session is over and credentials have been cleared"""

    default_code = "API_401"

    def __init__(self, message: str, error: str = "request_error", **kwargs):
        kwargs.setdefault("recoverable", False)
        super().__init__(message, status_code=401, error=error, **kwargs)


class RateLimitError(ApiError):
    """Raised on 429"""

    default_code = "API_429"

    def __init__(self, message: str, error: str = "request_error", **kwargs):
        super().__init__(message, status_code=429, error=error, **kwargs)


# =============================================================================
# REAL-TIME EXCEPTIONS
# =============================================================================

class SubscriptionError(WeddingAppError):
    """Raised when a real-time listener cannot be set up"""

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        collection: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if key:
            details["key"] = key
        if collection:
            details["collection"] = collection

        super().__init__(
            message=message,
            code="RT_001",
            details=details,
            **kwargs,
        )
        self.key = key


class DocumentDecodeError(WeddingAppError):
    """Raised when a raw document does not match the expected entity shape"""

    def __init__(
        self,
        message: str,
        collection: Optional[str] = None,
        doc_id: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if collection:
            details["collection"] = collection
        if doc_id:
            details["doc_id"] = doc_id

        super().__init__(
            message=message,
            code="RT_002",
            details=details,
            **kwargs,
        )


# =============================================================================
# CACHE EXCEPTIONS
# =============================================================================

class CacheError(WeddingAppError):
    """Raised inside the cache layers; always absorbed before reaching callers"""

    def __init__(self, message: str, key: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if key:
            details["key"] = key

        super().__init__(
            message=message,
            code="CACHE_001",
            details=details,
            **kwargs,
        )


# =============================================================================
# VALIDATION EXCEPTIONS
# =============================================================================

class ValidationError(WeddingAppError):
    """Raised when client-side validation rejects input before a request"""

    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        self.errors = list(errors or [])
        if self.errors:
            details["errors"] = self.errors

        super().__init__(
            message=message,
            code="VAL_001",
            details=details,
            **kwargs,
        )


# =============================================================================
# CONFIGURATION EXCEPTIONS
# =============================================================================

class ConfigurationError(WeddingAppError):
    """Raised when configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        expected_type: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if config_key:
            details["config_key"] = config_key
        if expected_type:
            details["expected_type"] = expected_type

        super().__init__(
            message=message,
            code="CFG_001",
            details=details,
            recoverable=False,
            **kwargs,
        )
