# =============================================================================
# wedding_core/errors/handlers.py
# Reporting Errors to Logs and Pages
# =============================================================================
"""
Where a caught error ends up.

Every error is logged with its code. Pages additionally get an st.error box,
except for ApiError: the REST client has already published those on the
notification channel, so a second message would duplicate the toast.
Nothing here renders from a watch thread.
"""

from __future__ import annotations
import functools
from typing import Any, Callable, Optional, TypeVar

import streamlit as st

from wedding_core.logging import get_logger
from wedding_core.runtime import has_script_context
from .exceptions import ApiError, WeddingAppError

logger = get_logger(__name__)

T = TypeVar("T")


def handle_error(
    error: Exception,
    show_user_message: bool = True,
    user_message: Optional[str] = None,
    operation: Optional[str] = None,
) -> None:
    """
    Log an error and, inside a page run, show it.

    Args:
        error: The caught exception
        show_user_message: Render st.error when on a script thread
        user_message: Replaces the error's own message on screen
        operation: What was being attempted, for the log line
    """
    if isinstance(error, WeddingAppError):
        code, details, recoverable = error.code, error.details, error.recoverable
        message = error.message
    else:
        code, details, recoverable = "UNKNOWN", {}, True
        message = str(error) or type(error).__name__

    prefix = f"{operation}: " if operation else ""
    logger.error(f"[{code}] {prefix}{message}", extra={"details": details}, exc_info=error)

    if not show_user_message or not has_script_context() or isinstance(error, ApiError):
        return
    shown = user_message or message
    if recoverable:
        st.error(shown)
    else:
        st.error(f"{shown}. Please sign in again.")


class ErrorContext:
    """
    Run a block, reporting any failure through handle_error.

    Recoverable errors are swallowed so the caller carries on; anything
    else is re-raised after reporting.

    Usage:
        with ErrorContext("Stopping network monitor", show_user_message=False):
            network_status.stop_monitoring()
    """

    def __init__(self, operation: str, recoverable: bool = True, show_user_message: bool = True):
        self.operation = operation
        self.recoverable = recoverable
        self.show_user_message = show_user_message
        self.error: Optional[BaseException] = None

    def __enter__(self) -> ErrorContext:
        logger.debug(f"Starting: {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type is None:
            logger.debug(f"Completed: {self.operation}")
            return False
        if not issubclass(exc_type, Exception):
            return False

        self.error = exc_val
        handle_error(
            exc_val,
            show_user_message=self.show_user_message,
            user_message=f"Error during: {self.operation}",
            operation=self.operation,
        )
        return self.recoverable


def error_boundary(default_return: Any = None, show_user_message: bool = False):
    """
    Decorator returning `default_return` instead of raising.

    Usage:
        @error_boundary(default_return=0)
        def flush(self) -> int:
            ...
    """
    def decorator(func: Callable[..., T]) -> Callable[..., Optional[T]]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Optional[T]:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                handle_error(e, show_user_message=show_user_message, operation=func.__qualname__)
                return default_return

        return wrapper

    return decorator
