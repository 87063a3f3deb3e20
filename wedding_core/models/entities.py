# =============================================================================
# wedding_core/models/entities.py
# Typed Entity Records and Document Decoding
# =============================================================================
"""
Typed records for everything the real-time layer delivers.

Firestore hands back loosely-typed dicts with camelCase keys. Each entity
has a from_document() decoder that validates the shape and raises
DocumentDecodeError on anything malformed, so untyped data never travels
past the subscription boundary.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from wedding_core.errors import DocumentDecodeError


RSVP_STATUSES = ("pending", "attending", "not_attending")
RSVP_RESPONSES = ("attending", "not_attending")

# Epoch values above this are milliseconds (1e11 s is the year 5138)
EPOCH_MS_THRESHOLD = 1e11


# =============================================================================
# FIELD HELPERS
# =============================================================================

def to_datetime(value: Any) -> Optional[datetime]:
    """
    Normalize a Firestore timestamp into an aware datetime.

    Accepts datetime (including DatetimeWithNanoseconds), ISO-8601 strings,
    epoch seconds or milliseconds, and objects exposing to_datetime() or
    timestamp(). Values that cannot be represented give None.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # JavaScript Date.now() values are milliseconds
        seconds = value / 1000 if abs(value) > EPOCH_MS_THRESHOLD else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            return None
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    if hasattr(value, "to_datetime"):
        return to_datetime(value.to_datetime())
    if hasattr(value, "timestamp"):
        return to_datetime(value.timestamp())
    return None


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _require_mapping(collection: str, doc_id: str, data: Any) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise DocumentDecodeError(
            f"Document is not a mapping ({type(data).__name__})",
            collection=collection,
            doc_id=doc_id,
        )
    return data


def _require_str(collection: str, doc_id: str, data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise DocumentDecodeError(
            f"Missing required field '{key}'",
            collection=collection,
            doc_id=doc_id,
        )
    return value


def _optional_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _str_list(value: Any) -> List[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [str(v) for v in value if v is not None]


# =============================================================================
# INVITATIONS
# =============================================================================

@dataclass
class RSVPStatus:
    """RSVP sub-record embedded in every invitation"""
    status: str = "pending"
    attendee_count: Optional[int] = None
    guest_names: List[str] = field(default_factory=list)
    email: Optional[str] = None
    phone: Optional[str] = None
    submitted_at: Optional[datetime] = None

    @property
    def is_pending(self) -> bool:
        return self.status == "pending"

    @classmethod
    def from_dict(cls, data: Any, collection: str = "invitations", doc_id: str = "") -> RSVPStatus:
        if data is None:
            return cls()
        data = _require_mapping(collection, doc_id, data)
        status = data.get("status") or "pending"
        if status not in RSVP_STATUSES:
            raise DocumentDecodeError(
                f"Unknown RSVP status '{status}'",
                collection=collection,
                doc_id=doc_id,
            )
        return cls(
            status=status,
            attendee_count=_optional_int(data.get("attendeeCount")),
            guest_names=_str_list(data.get("guestNames")),
            email=data.get("email") or None,
            phone=data.get("phone") or None,
            submitted_at=to_datetime(data.get("submittedAt")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "attendeeCount": self.attendee_count,
            "guestNames": list(self.guest_names),
            "email": self.email,
            "phone": self.phone,
            "submittedAt": _iso(self.submitted_at),
        }


@dataclass
class Invitation:
    """Guest invitation, looked up publicly by its QR token"""
    id: str
    qr_code: str
    guest_name: str = ""
    guest_role: str = ""
    custom_message: str = ""
    invitation_type: str = ""
    is_active: bool = True
    rsvp: RSVPStatus = field(default_factory=RSVPStatus)
    opened_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    COLLECTION = "invitations"

    @property
    def is_opened(self) -> bool:
        return self.opened_at is not None

    @classmethod
    def from_document(cls, doc_id: str, data: Any) -> Invitation:
        data = _require_mapping(cls.COLLECTION, doc_id, data)
        return cls(
            id=doc_id,
            qr_code=_require_str(cls.COLLECTION, doc_id, data, "qrCode"),
            guest_name=str(data.get("guestName") or ""),
            guest_role=str(data.get("guestRole") or ""),
            custom_message=str(data.get("customMessage") or ""),
            invitation_type=str(data.get("invitationType") or ""),
            is_active=bool(data.get("isActive", True)),
            rsvp=RSVPStatus.from_dict(data.get("rsvp"), cls.COLLECTION, doc_id),
            opened_at=to_datetime(data.get("openedAt")),
            created_at=to_datetime(data.get("createdAt")),
            updated_at=to_datetime(data.get("updatedAt")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "guestName": self.guest_name,
            "guestRole": self.guest_role,
            "customMessage": self.custom_message,
            "invitationType": self.invitation_type,
            "qrCode": self.qr_code,
            "isActive": self.is_active,
            "rsvp": self.rsvp.to_dict(),
            "openedAt": _iso(self.opened_at),
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


# =============================================================================
# ALBUMS & MEDIA
# =============================================================================

@dataclass
class Album:
    """Photo album; guests upload through its QR token"""
    id: str
    qr_code: str
    name: str = ""
    description: Optional[str] = None
    is_public: bool = False
    is_featured: bool = False
    cover_image: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    COLLECTION = "albums"

    @classmethod
    def from_document(cls, doc_id: str, data: Any) -> Album:
        data = _require_mapping(cls.COLLECTION, doc_id, data)
        return cls(
            id=doc_id,
            qr_code=_require_str(cls.COLLECTION, doc_id, data, "qrCode"),
            name=str(data.get("name") or ""),
            description=data.get("description") or None,
            is_public=bool(data.get("isPublic", False)),
            is_featured=bool(data.get("isFeatured", False)),
            cover_image=data.get("coverImage") or None,
            created_by=data.get("createdBy") or None,
            created_at=to_datetime(data.get("createdAt")),
            updated_at=to_datetime(data.get("updatedAt")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "isPublic": self.is_public,
            "isFeatured": self.is_featured,
            "coverImage": self.cover_image,
            "qrCode": self.qr_code,
            "createdBy": self.created_by,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


@dataclass
class Media:
    """Uploaded photo or video; guest uploads start unapproved"""
    id: str
    album_id: str
    file_name: str = ""
    file_type: str = ""
    file_size: int = 0
    file_url: str = ""
    thumbnail_url: Optional[str] = None
    uploaded_by: str = ""
    is_approved: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    COLLECTION = "media"

    @property
    def is_image(self) -> bool:
        return self.file_type.startswith("image/")

    @property
    def is_video(self) -> bool:
        return self.file_type.startswith("video/")

    @classmethod
    def from_document(cls, doc_id: str, data: Any) -> Media:
        data = _require_mapping(cls.COLLECTION, doc_id, data)
        return cls(
            id=doc_id,
            album_id=_require_str(cls.COLLECTION, doc_id, data, "albumId"),
            file_name=str(data.get("fileName") or ""),
            file_type=str(data.get("fileType") or ""),
            file_size=_optional_int(data.get("fileSize")) or 0,
            file_url=str(data.get("fileUrl") or ""),
            thumbnail_url=data.get("thumbnailUrl") or None,
            uploaded_by=str(data.get("uploadedBy") or ""),
            is_approved=bool(data.get("isApproved", False)),
            created_at=to_datetime(data.get("createdAt")),
            updated_at=to_datetime(data.get("updatedAt")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "albumId": self.album_id,
            "fileName": self.file_name,
            "fileType": self.file_type,
            "fileSize": self.file_size,
            "fileUrl": self.file_url,
            "thumbnailUrl": self.thumbnail_url,
            "uploadedBy": self.uploaded_by,
            "isApproved": self.is_approved,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


# =============================================================================
# RSVP
# =============================================================================

@dataclass
class RSVP:
    """Standalone RSVP projection used by the host listing"""
    id: str
    invitation_id: str
    qr_code: str = ""
    status: str = "attending"
    attendee_count: Optional[int] = None
    guest_names: List[str] = field(default_factory=list)
    email: Optional[str] = None
    phone: Optional[str] = None
    submitted_at: Optional[datetime] = None

    COLLECTION = "rsvp"

    @classmethod
    def from_document(cls, doc_id: str, data: Any) -> RSVP:
        data = _require_mapping(cls.COLLECTION, doc_id, data)
        status = data.get("status")
        if status not in RSVP_STATUSES:
            raise DocumentDecodeError(
                f"Unknown RSVP status '{status}'",
                collection=cls.COLLECTION,
                doc_id=doc_id,
            )
        return cls(
            id=doc_id,
            invitation_id=_require_str(cls.COLLECTION, doc_id, data, "invitationId"),
            qr_code=str(data.get("qrCode") or ""),
            status=status,
            attendee_count=_optional_int(data.get("attendeeCount")),
            guest_names=_str_list(data.get("guestNames")),
            email=data.get("email") or None,
            phone=data.get("phone") or None,
            submitted_at=to_datetime(data.get("submittedAt")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "invitationId": self.invitation_id,
            "qrCode": self.qr_code,
            "status": self.status,
            "attendeeCount": self.attendee_count,
            "guestNames": list(self.guest_names),
            "email": self.email,
            "phone": self.phone,
            "submittedAt": _iso(self.submitted_at),
        }


# =============================================================================
# STATS (derived, never persisted)
# =============================================================================

@dataclass(frozen=True)
class InvitationStats:
    total: int = 0
    active: int = 0
    opened: int = 0


@dataclass(frozen=True)
class AlbumStats:
    total_albums: int = 0
    public_albums: int = 0
    featured_albums: int = 0
    total_media: int = 0


@dataclass(frozen=True)
class MediaStats:
    total_media: int = 0
    image_count: int = 0
    video_count: int = 0


@dataclass(frozen=True)
class Stats:
    """Dashboard aggregate recomputed from the live collections"""
    invitations: InvitationStats = field(default_factory=InvitationStats)
    albums: AlbumStats = field(default_factory=AlbumStats)
    media: MediaStats = field(default_factory=MediaStats)
    last_updated: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "invitations": {
                "total": self.invitations.total,
                "active": self.invitations.active,
                "opened": self.invitations.opened,
            },
            "albums": {
                "totalAlbums": self.albums.total_albums,
                "publicAlbums": self.albums.public_albums,
                "featuredAlbums": self.albums.featured_albums,
                "totalMedia": self.albums.total_media,
            },
            "media": {
                "totalMedia": self.media.total_media,
                "imageCount": self.media.image_count,
                "videoCount": self.media.video_count,
            },
            "lastUpdated": self.last_updated,
        }
