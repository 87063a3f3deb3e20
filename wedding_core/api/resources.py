# =============================================================================
# wedding_core/api/resources.py
# Typed Wrappers for the REST Resources
# =============================================================================
"""
One class per REST resource. Each method maps to a single route; successful
mutations invalidate the resource keys whose cached reads they make stale.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence

from wedding_core.cache.invalidation import InvalidationBus
from wedding_core.errors import ValidationError
from wedding_core.logging import get_logger, LogContext
from wedding_core.models import RSVP_RESPONSES

from . import validation
from .client import RestClient
from .credentials import CredentialStore

logger = get_logger(__name__)


@dataclass
class MediaFile:
    """A file selected for upload."""
    name: str
    content: bytes
    content_type: str

    @property
    def size(self) -> int:
        return len(self.content)

    @classmethod
    def from_uploaded(cls, uploaded: Any) -> MediaFile:
        """Build from a Streamlit UploadedFile (name, type, getvalue())."""
        return cls(name=uploaded.name, content=uploaded.getvalue(), content_type=uploaded.type)

    def describe(self) -> validation.FileInfo:
        return (self.name, self.size, self.content_type)

    def to_field(self, field_name: str):
        return (field_name, (self.name, self.content, self.content_type))


def _drop_none(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in payload.items() if v is not None}


def _raise_if_invalid(result: validation.ValidationResult, message: str) -> None:
    if not result.is_valid:
        raise ValidationError(f"{message}: {'; '.join(result.errors)}", errors=result.errors)


class ResourceAPI:
    """Shared plumbing: the client and the invalidation bus."""

    def __init__(self, client: RestClient, invalidation: InvalidationBus):
        self.client = client
        self.invalidation = invalidation

    def _invalidate(self, keys: Iterable[str], reason: str) -> None:
        self.invalidation.invalidate_multiple(list(keys), reason)


# =============================================================================
# AUTH
# =============================================================================

class AuthAPI(ResourceAPI):

    def __init__(self, client: RestClient, invalidation: InvalidationBus, credentials: CredentialStore):
        super().__init__(client, invalidation)
        self.credentials = credentials

    def login(self, email: str, password: str) -> Any:
        """POST /auth/login; stores the returned token when present."""
        response = self.client.post(
            "/auth/login", json={"email": email, "password": password}, authenticated=False
        )
        if isinstance(response, dict) and response.get("token"):
            self.credentials.set_token(response["token"])
            logger.info("Host signed in")
        return response

    def get_profile(self) -> Any:
        return self.client.get("/auth/profile")

    def change_password(self, current_password: str, new_password: str) -> Any:
        return self.client.put(
            "/auth/change-password",
            json={"currentPassword": current_password, "newPassword": new_password},
        )

    def logout(self) -> Any:
        """POST /auth/logout, then forget the token and every cached response."""
        response = self.client.post("/auth/logout")
        self.credentials.clear()
        self.client.request_cache.clear()
        logger.info("Host signed out")
        return response


# =============================================================================
# INVITATIONS
# =============================================================================

class InvitationsAPI(ResourceAPI):

    INVALIDATES = ("/invitations", "/stats")

    def create(
        self,
        guest_name: str,
        guest_role: str,
        custom_message: str,
        invitation_type: str,
        qr_center_type: Optional[str] = None,
        qr_center_options: Optional[Dict[str, Any]] = None,
    ) -> Any:
        _raise_if_invalid(
            validation.validate_form({
                "guestName": validation.validate_guest_name(guest_name),
                "customMessage": validation.validate_invitation_message(custom_message),
            }),
            "Invalid invitation",
        )
        response = self.client.post("/invitations", json=_drop_none({
            "guestName": guest_name,
            "guestRole": guest_role,
            "customMessage": custom_message,
            "invitationType": invitation_type,
            "qrCenterType": qr_center_type,
            "qrCenterOptions": qr_center_options,
        }))
        self._invalidate(self.INVALIDATES, "invitation created")
        return response

    def get_all(self, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET /invitations (page, limit, status, role)."""
        return self.client.get("/invitations", params=params)

    def get_by_qr_code(self, qr_code: str) -> Any:
        """Public lookup; returns the invitation object itself."""
        response = self.client.get(f"/invitations/qr/{qr_code}", authenticated=False)
        if isinstance(response, dict):
            return response.get("invitation")
        return None

    def update(
        self,
        invitation_id: str,
        guest_name: str,
        guest_role: str,
        custom_message: str,
        is_active: bool,
    ) -> Any:
        response = self.client.put(f"/invitations/{invitation_id}", json={
            "guestName": guest_name,
            "guestRole": guest_role,
            "customMessage": custom_message,
            "isActive": is_active,
        })
        self._invalidate(self.INVALIDATES, "invitation updated")
        return response

    def delete(self, invitation_id: str) -> Any:
        response = self.client.delete(f"/invitations/{invitation_id}")
        self._invalidate(self.INVALIDATES, "invitation deleted")
        return response

    def get_stats(self) -> Any:
        return self.client.get("/invitations/stats")


# =============================================================================
# ALBUMS
# =============================================================================

class AlbumsAPI(ResourceAPI):

    INVALIDATES = ("/albums", "/stats")

    def create(
        self,
        name: str,
        description: Optional[str] = None,
        is_public: Optional[bool] = None,
        cover_image: Optional[str] = None,
        qr_center_type: Optional[str] = None,
        qr_center_options: Optional[Dict[str, Any]] = None,
    ) -> Any:
        _raise_if_invalid(
            validation.validate_form({
                "name": validation.validate_album_name(name),
                "description": validation.validate_album_description(description),
            }),
            "Invalid album",
        )
        response = self.client.post("/albums", json=_drop_none({
            "name": name,
            "description": description,
            "isPublic": is_public,
            "coverImage": cover_image,
            "qrCenterType": qr_center_type,
            "qrCenterOptions": qr_center_options,
        }))
        self._invalidate(self.INVALIDATES, "album created")
        return response

    def get_host_albums(self) -> Any:
        return self.client.get("/albums/host")

    def get_by_qr_code(self, qr_code: str) -> Any:
        return self.client.get(f"/albums/qr/{qr_code}", authenticated=False)

    def regenerate_qr(self, album_id: str) -> Any:
        response = self.client.put(f"/albums/{album_id}/regenerate-qr")
        self._invalidate(self.INVALIDATES, "album QR regenerated")
        return response

    def get_all(self, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET /albums (page, limit, featured)."""
        return self.client.get("/albums", params=params)

    def get_by_id(self, album_id: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self.client.get(f"/albums/{album_id}", params=params)

    def update(
        self,
        album_id: str,
        name: str,
        description: Optional[str] = None,
        is_public: Optional[bool] = None,
        is_featured: Optional[bool] = None,
    ) -> Any:
        _raise_if_invalid(validation.validate_album_name(name), "Invalid album")
        response = self.client.put(f"/albums/{album_id}", json=_drop_none({
            "name": name,
            "description": description,
            "isPublic": is_public,
            "isFeatured": is_featured,
        }))
        self._invalidate(self.INVALIDATES, "album updated")
        return response

    def delete(self, album_id: str) -> Any:
        response = self.client.delete(f"/albums/{album_id}")
        self._invalidate(self.INVALIDATES, "album deleted")
        return response

    def set_cover(self, album_id: str, cover_image: str) -> Any:
        response = self.client.put(f"/albums/{album_id}/cover", json={"coverImage": cover_image})
        self._invalidate(self.INVALIDATES, "album cover changed")
        return response

    def get_stats(self) -> Any:
        return self.client.get("/albums/stats/overview")


# =============================================================================
# MEDIA
# =============================================================================

class MediaAPI(ResourceAPI):

    INVALIDATES = ("/media", "/albums", "/stats")

    def _upload(
        self,
        endpoint: str,
        files: Sequence[MediaFile],
        uploaded_by: Optional[str],
        max_files: int,
        authenticated: bool,
    ) -> Any:
        _raise_if_invalid(
            validation.validate_files([f.describe() for f in files], max_files=max_files),
            "Invalid upload",
        )
        data = {"uploadedBy": uploaded_by} if uploaded_by else None
        with LogContext(logger, f"Uploading {len(files)} file(s) to {endpoint}"):
            response = self.client.upload(
                endpoint,
                files=[f.to_field("media") for f in files],
                data=data,
                authenticated=authenticated,
            )
        self._invalidate(self.INVALIDATES, "media uploaded")
        return response

    def upload(self, album_id: str, files: Sequence[MediaFile], uploaded_by: str) -> Any:
        """Guest upload into an album."""
        return self._upload(
            f"/media/upload/{album_id}", files, uploaded_by,
            validation.MAX_GUEST_PHOTOS, authenticated=False,
        )

    def upload_host(self, album_id: str, files: Sequence[MediaFile], uploaded_by: Optional[str] = None) -> Any:
        return self._upload(
            f"/media/host/upload/{album_id}", files, uploaded_by,
            validation.MAX_HOST_PHOTOS, authenticated=True,
        )

    def upload_by_qr(self, qr_code: str, files: Sequence[MediaFile], uploaded_by: str) -> Any:
        return self._upload(
            f"/media/upload/qr/{qr_code}", files, uploaded_by,
            validation.MAX_GUEST_PHOTOS, authenticated=False,
        )

    def get_all(self, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET /media (page, limit, album, type, approved)."""
        return self.client.get("/media", params=params)

    def get_by_id(self, media_id: str) -> Any:
        return self.client.get(f"/media/{media_id}")

    def approve(self, media_id: str, is_approved: bool) -> Any:
        response = self.client.put(f"/media/{media_id}/approve", json={"isApproved": is_approved})
        self._invalidate(self.INVALIDATES, "media approval changed")
        return response

    def delete(self, media_id: str) -> Any:
        response = self.client.delete(f"/media/{media_id}")
        self._invalidate(self.INVALIDATES, "media deleted")
        return response

    def add_tags(self, media_id: str, tags: List[str]) -> Any:
        response = self.client.put(f"/media/{media_id}/tags", json={"tags": tags})
        self._invalidate(("/media",), "media tagged")
        return response

    def get_stats(self) -> Any:
        return self.client.get("/media/stats/overview")


# =============================================================================
# QR CODES
# =============================================================================

class QRAPI(ResourceAPI):

    def generate(
        self,
        url: str,
        size: Optional[int] = None,
        margin: Optional[int] = None,
        center_type: Optional[str] = None,
        center_options: Optional[Dict[str, Any]] = None,
    ) -> Any:
        return self.client.post("/qr/generate", json=_drop_none({
            "url": url,
            "size": size,
            "margin": margin,
            "centerType": center_type,
            "centerOptions": center_options,
        }))

    def generate_file(
        self,
        url: str,
        size: Optional[int] = None,
        margin: Optional[int] = None,
        center_type: Optional[str] = None,
        center_options: Optional[Dict[str, Any]] = None,
    ) -> bytes:
        """Returns the rendered QR image bytes."""
        return self.client.request("POST", "/qr/generate-file", json=_drop_none({
            "url": url,
            "size": size,
            "margin": margin,
            "centerType": center_type,
            "centerOptions": center_options,
        }), expect_json=False)

    def batch_generate(self, urls: List[str], size: Optional[int] = None, margin: Optional[int] = None) -> Any:
        return self.client.post("/qr/batch-generate", json=_drop_none({
            "urls": urls,
            "size": size,
            "margin": margin,
        }))

    def upload_logo(self, logo: MediaFile) -> Any:
        _raise_if_invalid(
            validation.validate_files(
                [logo.describe()], max_files=1, allowed_types=validation.ALLOWED_IMAGE_TYPES
            ),
            "Invalid logo",
        )
        response = self.client.request("POST", "/qr/upload-logo", files=[logo.to_field("logo")])
        self._invalidate(("/qr/logos",), "logo uploaded")
        return response

    def get_logos(self) -> Any:
        return self.client.get("/qr/logos")

    def delete_logo(self, filename: str) -> Any:
        response = self.client.delete(f"/qr/logos/{filename}")
        self._invalidate(("/qr/logos",), "logo deleted")
        return response

    def get_options(self) -> Any:
        return self.client.get("/qr/options")


# =============================================================================
# RSVP
# =============================================================================

class RSVPAPI(ResourceAPI):

    INVALIDATES = ("/rsvp", "/invitations", "/stats")

    def submit(
        self,
        qr_code: str,
        status: str,
        attendee_count: Optional[int] = None,
        guest_names: Optional[List[str]] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> Any:
        """
        Record a guest's response.

        Raises:
            ValidationError: status is not attending/not_attending, or the
                contact details are malformed
        """
        checks = {
            "email": validation.validate_email(email),
            "phone": validation.validate_phone(phone),
        }
        if status not in RSVP_RESPONSES:
            checks["status"] = validation.ValidationResult(
                is_valid=False, errors=[f"Must be one of: {', '.join(RSVP_RESPONSES)}."]
            )
        if attendee_count is not None and attendee_count < 0:
            checks["attendeeCount"] = validation.ValidationResult(
                is_valid=False, errors=["Must not be negative."]
            )
        _raise_if_invalid(validation.validate_form(checks), "Invalid RSVP")

        response = self.client.post(f"/rsvp/submit/{qr_code}", json=_drop_none({
            "status": status,
            "attendeeCount": attendee_count,
            "guestNames": guest_names,
            "email": email,
            "phone": phone,
        }), authenticated=False)
        self._invalidate(self.INVALIDATES, "RSVP submitted")
        return response

    def get_status(self, qr_code: str) -> Any:
        return self.client.get(f"/rsvp/status/{qr_code}", authenticated=False)

    def get_all(
        self,
        status: Optional[str] = None,
        role: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Any:
        """GET /rsvp/all; "all" and blank filters are omitted."""
        params = {}
        if status and status != "all":
            params["status"] = status
        if role and role != "all":
            params["role"] = role
        if search and search.strip():
            params["search"] = search.strip()
        return self.client.get("/rsvp/all", params=params or None)

    def get_details(self, rsvp_id: str) -> Any:
        return self.client.get(f"/rsvp/details/{rsvp_id}")

    def update(
        self,
        rsvp_id: str,
        status: Optional[str] = None,
        attendee_count: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> Any:
        response = self.client.put(f"/rsvp/update/{rsvp_id}", json=_drop_none({
            "status": status,
            "attendeeCount": attendee_count,
            "notes": notes,
        }))
        self._invalidate(self.INVALIDATES, "RSVP updated")
        return response
