# =============================================================================
# wedding_core/state/session.py
# Streamlit Session Integration for Real-Time Bindings
# =============================================================================
"""
Streamlit reruns the page script on every interaction, so bindings are kept
in st.session_state and survive reruns. A rerun that asks for the same
binding with a different key (another album, another QR token) rebinds it;
the old listener is closed first.
"""

from __future__ import annotations
from typing import Callable, Dict, Optional

import streamlit as st

from wedding_core.logging import get_logger
from wedding_core.realtime.service import RealtimeService

from .bindings import (
    RealtimeBinding,
    realtime_cleanup,
    use_albums,
    use_all_media,
    use_featured_albums,
    use_invitations,
    use_pending_media,
    use_public_albums,
    use_rsvps,
    use_stats,
)

logger = get_logger(__name__)

BINDINGS_KEY = "_realtime_bindings"

# Central registry for session-state keys used by the core
SESSION_DEFAULTS = {
    "current_path": "",
    "redirect_to": None,
    "debug_mode": False,
}


def init_state() -> None:
    """Initialize session state with defaults."""
    for k, v in SESSION_DEFAULTS.items():
        if k not in st.session_state:
            st.session_state[k] = v
    if BINDINGS_KEY not in st.session_state:
        st.session_state[BINDINGS_KEY] = {}


def _bindings() -> Dict[str, RealtimeBinding]:
    if BINDINGS_KEY not in st.session_state:
        st.session_state[BINDINGS_KEY] = {}
    return st.session_state[BINDINGS_KEY]


def bind(name: str, factory: Callable[[], RealtimeBinding]) -> RealtimeBinding:
    """
    Return the mounted binding stored under `name`, creating it on first use.

    Usage:
        media = bind("album_media", lambda: use_media_by_album(service, album_id))
        state = media.snapshot()
    """
    bindings = _bindings()
    fresh = factory()
    existing = bindings.get(name)

    if existing is None:
        bindings[name] = fresh.mount()
        return bindings[name]

    if existing.key != fresh.key:
        logger.debug(f"Rebinding {name}: {existing.key} -> {fresh.key}")
        existing.rebind(fresh.key, fresh.opener)
    return existing.mount()


def release(name: str) -> None:
    """Unmount and forget one stored binding."""
    binding = _bindings().pop(name, None)
    if binding is not None:
        binding.unmount()


def release_all(service: Optional[RealtimeService] = None) -> int:
    """
    Unmount every stored binding, then close whatever the service still holds.

    Returns:
        Number of bindings released
    """
    bindings = _bindings()
    released = list(bindings.values())
    bindings.clear()
    for binding in released:
        binding.unmount()
    if service is not None:
        realtime_cleanup(service)
    logger.info(f"Released {len(released)} realtime bindings")
    return len(released)


def use_realtime_data(service: RealtimeService) -> Dict[str, RealtimeBinding]:
    """The host dashboard's bundle of live bindings."""
    return {
        "invitations": bind("invitations", lambda: use_invitations(service)),
        "albums": bind("albums", lambda: use_albums(service)),
        "public_albums": bind("public_albums", lambda: use_public_albums(service)),
        "featured_albums": bind("featured_albums", lambda: use_featured_albums(service)),
        "all_media": bind("all_media", lambda: use_all_media(service)),
        "pending_media": bind("pending_media", lambda: use_pending_media(service)),
        "rsvps": bind("rsvps", lambda: use_rsvps(service)),
        "stats": bind("stats", lambda: use_stats(service)),
    }
