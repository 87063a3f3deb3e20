# =============================================================================
# wedding_core/state/__init__.py
# View-facing bindings and Streamlit session integration
# =============================================================================

from .bindings import (
    BindingState,
    RealtimeBinding,
    use_invitations,
    use_invitations_by_role,
    use_invitation_by_qr,
    use_albums,
    use_public_albums,
    use_featured_albums,
    use_album_by_qr,
    use_media_by_album,
    use_all_media,
    use_pending_media,
    use_rsvps,
    use_rsvp_by_qr,
    use_rsvps_by_status,
    use_stats,
    realtime_cleanup,
)
from .session import (
    SESSION_DEFAULTS,
    init_state,
    bind,
    release,
    release_all,
    use_realtime_data,
)

__all__ = [
    "BindingState",
    "RealtimeBinding",
    "use_invitations",
    "use_invitations_by_role",
    "use_invitation_by_qr",
    "use_albums",
    "use_public_albums",
    "use_featured_albums",
    "use_album_by_qr",
    "use_media_by_album",
    "use_all_media",
    "use_pending_media",
    "use_rsvps",
    "use_rsvp_by_qr",
    "use_rsvps_by_status",
    "use_stats",
    "realtime_cleanup",
    "SESSION_DEFAULTS",
    "init_state",
    "bind",
    "release",
    "release_all",
    "use_realtime_data",
]
