# =============================================================================
# wedding_core/api/validation.py
# Client-Side Form and File Validation
# =============================================================================
"""
Input checks run before any request leaves the client.

Files are described as (name, size_in_bytes, content_type) tuples so the
same rules apply to Streamlit UploadedFile objects and to plain paths.
"""

from __future__ import annotations
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Pattern, Sequence, Tuple

FileInfo = Tuple[str, int, str]

MB = 1024 * 1024

MAX_GUEST_PHOTOS = 20
MAX_HOST_PHOTOS = 50
MAX_FILE_SIZE = 50 * MB
MAX_FILE_NAME_LENGTH = 255
ALLOWED_IMAGE_TYPES = ["image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"]
ALLOWED_VIDEO_TYPES = ["video/mp4", "video/mov", "video/avi", "video/wmv", "video/webm"]
ALLOWED_EXTENSIONS = [".jpg", ".jpeg", ".png", ".gif", ".webp", ".mp4", ".mov", ".avi", ".wmv", ".webm"]

# (min_length, max_length)
GUEST_NAME_LIMITS = (2, 100)
ALBUM_NAME_LIMITS = (1, 100)
ALBUM_DESCRIPTION_MAX = 500
INVITATION_MESSAGE_LIMITS = (10, 1000)
QR_MONOGRAM_LIMITS = (1, 10)

EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
PHONE_PATTERN = re.compile(r"\+?[1-9][0-9]{0,15}")
ALBUM_NAME_PATTERN = re.compile(r"[a-zA-Z0-9\s\-_&'.,!]+")
MONOGRAM_PATTERN = re.compile(r"[A-Za-z0-9&\s]+")
PHONE_FORMATTING = re.compile(r"[\s\-().]")

RESERVED_GUEST_NAME_WORDS = ("test", "admin", "null", "undefined")


@dataclass
class ValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.is_valid

    @property
    def first_error(self) -> Optional[str]:
        return self.errors[0] if self.errors else None


def _mb(size: float) -> int:
    return int(size / MB + 0.5)


def validate_files(
    files: Sequence[FileInfo],
    max_files: int = MAX_GUEST_PHOTOS,
    max_file_size: int = MAX_FILE_SIZE,
    allowed_types: Optional[Sequence[str]] = None,
    min_files: int = 1,
) -> ValidationResult:
    """Check count, per-file size, type and name length, and total size."""
    if allowed_types is None:
        allowed_types = ALLOWED_IMAGE_TYPES + ALLOWED_VIDEO_TYPES

    errors: List[str] = []
    warnings: List[str] = []

    if len(files) < min_files:
        errors.append(f"Please select at least {min_files} file{'s' if min_files > 1 else ''}.")

    if len(files) > max_files:
        errors.append(
            f"You can only upload up to {max_files} files at a time. You selected {len(files)} files."
        )

    for name, size, content_type in files:
        if size > max_file_size:
            errors.append(
                f'File "{name}" is too large ({_mb(size)}MB). Maximum size is {_mb(max_file_size)}MB.'
            )

        if content_type not in allowed_types:
            errors.append(
                f'File "{name}" has an unsupported format. Allowed formats: {", ".join(ALLOWED_EXTENSIONS)}'
            )

        if len(name) > MAX_FILE_NAME_LENGTH:
            errors.append(
                f'File "{name}" has a name that\'s too long. '
                f"Please rename it to be under {MAX_FILE_NAME_LENGTH} characters."
            )

        if size > max_file_size * 0.8:
            warnings.append(f'File "{name}" is quite large ({_mb(size)}MB). Upload may take longer.')

    total_size = sum(size for _, size, _ in files)
    max_total_size = max_file_size * min(len(files), 10)
    if total_size > max_total_size:
        errors.append(
            f"Total file size ({_mb(total_size)}MB) exceeds the limit ({_mb(max_total_size)}MB). "
            "Please select fewer or smaller files."
        )

    return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)


def validate_text_field(
    value: Optional[str],
    required: bool = False,
    min_length: int = 0,
    max_length: Optional[int] = None,
    pattern: Optional[Pattern] = None,
    custom_validator: Optional[Callable[[str], Optional[str]]] = None,
) -> ValidationResult:
    """
    Generic text check. Length, pattern and custom rules only run on
    non-blank input; blank input fails only when required.
    """
    errors: List[str] = []
    trimmed = (value or "").strip()

    if required and not trimmed:
        errors.append("This field is required.")

    if trimmed:
        if len(trimmed) < min_length:
            errors.append(f"Must be at least {min_length} characters long.")
        if max_length is not None and len(trimmed) > max_length:
            errors.append(f"Must be no more than {max_length} characters long.")
        if pattern is not None and not pattern.fullmatch(trimmed):
            errors.append("Invalid format.")
        if custom_validator is not None:
            custom_error = custom_validator(trimmed)
            if custom_error:
                errors.append(custom_error)

    return ValidationResult(is_valid=not errors, errors=errors)


def validate_guest_name(name: Optional[str]) -> ValidationResult:
    def reserved(value: str) -> Optional[str]:
        lowered = value.lower()
        if any(word in lowered for word in RESERVED_GUEST_NAME_WORDS):
            return "Please enter a valid guest name."
        return None

    return validate_text_field(
        name,
        required=True,
        min_length=GUEST_NAME_LIMITS[0],
        max_length=GUEST_NAME_LIMITS[1],
        custom_validator=reserved,
    )


def validate_album_name(name: Optional[str]) -> ValidationResult:
    def characters(value: str) -> Optional[str]:
        if not ALBUM_NAME_PATTERN.fullmatch(value):
            return (
                "Album name contains invalid characters. "
                "Use only letters, numbers, spaces, and basic punctuation."
            )
        return None

    return validate_text_field(
        name,
        required=True,
        min_length=ALBUM_NAME_LIMITS[0],
        max_length=ALBUM_NAME_LIMITS[1],
        custom_validator=characters,
    )


def validate_album_description(description: Optional[str]) -> ValidationResult:
    return validate_text_field(description, max_length=ALBUM_DESCRIPTION_MAX)


def validate_invitation_message(message: Optional[str]) -> ValidationResult:
    def word_count(value: str) -> Optional[str]:
        if len(value.split()) < 3:
            return "Please provide a more detailed invitation message (at least 3 words)."
        return None

    return validate_text_field(
        message,
        required=True,
        min_length=INVITATION_MESSAGE_LIMITS[0],
        max_length=INVITATION_MESSAGE_LIMITS[1],
        custom_validator=word_count,
    )


def validate_qr_monogram(monogram: Optional[str]) -> ValidationResult:
    def short(value: str) -> Optional[str]:
        if len(value) > 5:
            return "Monogram should be short (5 characters or less) for best display."
        return None

    return validate_text_field(
        monogram,
        required=True,
        min_length=QR_MONOGRAM_LIMITS[0],
        max_length=QR_MONOGRAM_LIMITS[1],
        pattern=MONOGRAM_PATTERN,
        custom_validator=short,
    )


def validate_email(email: Optional[str], required: bool = False) -> ValidationResult:
    def address(value: str) -> Optional[str]:
        if not EMAIL_PATTERN.fullmatch(value):
            return "Please enter a valid email address."
        return None

    return validate_text_field(
        email,
        required=required,
        pattern=EMAIL_PATTERN,
        custom_validator=address,
    )


def validate_phone(phone: Optional[str], required: bool = False) -> ValidationResult:
    def number(value: str) -> Optional[str]:
        clean = PHONE_FORMATTING.sub("", value)
        if not PHONE_PATTERN.fullmatch(clean):
            return "Please enter a valid phone number."
        if len(clean) < 10:
            return "Phone number must be at least 10 digits."
        return None

    return validate_text_field(phone, required=required, custom_validator=number)


def validate_form(validations: Dict[str, ValidationResult]) -> ValidationResult:
    """Merge per-field results, prefixing each message with its field name."""
    errors: List[str] = []
    warnings: List[str] = []
    is_valid = True

    for field_name, result in validations.items():
        if not result.is_valid:
            is_valid = False
            errors.extend(f"{field_name}: {error}" for error in result.errors)
        warnings.extend(f"{field_name}: {warning}" for warning in result.warnings)

    return ValidationResult(is_valid=is_valid, errors=errors, warnings=warnings)
