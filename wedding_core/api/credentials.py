# =============================================================================
# wedding_core/api/credentials.py
# Bearer Token Storage
# =============================================================================
"""
Holds the host's bearer token.

Inside a Streamlit session the token lives in a mapping kept in
st.session_state, so each browser session has its own login. The mapping is
pinned when the store is built: a 401 handled on a watch thread still
clears the session that logged in. Outside Streamlit it is kept in
process memory.
"""

from __future__ import annotations
import threading
from typing import Any, MutableMapping, Optional

import streamlit as st

from wedding_core.runtime import has_script_context

TOKEN_KEY = "auth_token"
CREDENTIALS_KEY = "_credentials"


class CredentialStore:
    """
    Usage:
        credentials = CredentialStore()
        credentials.set_token(response["token"])
        credentials.get_token()
        credentials.clear()
    """

    def __init__(self, session: Optional[MutableMapping[str, Any]] = None):
        """
        Args:
            session: Explicit session mapping; defaults to a mapping kept in
                st.session_state when built inside a script run, else a
                process-memory dict
        """
        if session is None:
            session = st.session_state.setdefault(CREDENTIALS_KEY, {}) if has_script_context() else {}
        self._session = session
        self._lock = threading.Lock()

    def get_token(self) -> Optional[str]:
        with self._lock:
            return self._session.get(TOKEN_KEY) or None

    def set_token(self, token: str) -> None:
        with self._lock:
            self._session[TOKEN_KEY] = token

    def clear(self) -> None:
        with self._lock:
            self._session.pop(TOKEN_KEY, None)

    @property
    def is_authenticated(self) -> bool:
        return self.get_token() is not None
