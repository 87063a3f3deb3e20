"""
Entity records delivered by the real-time layer.
"""
from .entities import (
    RSVP_STATUSES,
    RSVP_RESPONSES,
    to_datetime,
    RSVPStatus,
    Invitation,
    Album,
    Media,
    RSVP,
    InvitationStats,
    AlbumStats,
    MediaStats,
    Stats,
)

__all__ = [
    "RSVP_STATUSES",
    "RSVP_RESPONSES",
    "to_datetime",
    "RSVPStatus",
    "Invitation",
    "Album",
    "Media",
    "RSVP",
    "InvitationStats",
    "AlbumStats",
    "MediaStats",
    "Stats",
]
