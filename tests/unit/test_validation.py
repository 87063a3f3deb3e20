# =============================================================================
# tests/unit/test_validation.py
# Unit Tests for Client-Side Validation
# =============================================================================

import pytest

from wedding_core.api import validation
from wedding_core.api.validation import MB


class TestValidateFiles:
    """Upload batch checks"""

    def test_valid_batch(self):
        result = validation.validate_files([("a.jpg", MB, "image/jpeg"), ("b.mp4", 2 * MB, "video/mp4")])
        assert result.is_valid
        assert result.errors == []

    def test_empty_batch(self):
        result = validation.validate_files([])
        assert result.errors == ["Please select at least 1 file."]

    def test_too_many_files(self):
        files = [(f"{i}.jpg", 10, "image/jpeg") for i in range(21)]

        result = validation.validate_files(files)

        assert not result
        assert "You can only upload up to 20 files at a time. You selected 21 files." in result.errors

    def test_host_limit(self):
        files = [(f"{i}.jpg", 10, "image/jpeg") for i in range(50)]
        assert validation.validate_files(files, max_files=validation.MAX_HOST_PHOTOS)

    def test_oversized_file(self):
        result = validation.validate_files([("huge.mp4", 60 * MB, "video/mp4")])
        assert 'File "huge.mp4" is too large (60MB). Maximum size is 50MB.' in result.errors

    def test_large_file_warning(self):
        result = validation.validate_files([("big.mp4", 45 * MB, "video/mp4")])
        assert result.is_valid
        assert result.warnings == ['File "big.mp4" is quite large (45MB). Upload may take longer.']

    def test_unsupported_type(self):
        result = validation.validate_files([("doc.pdf", 10, "application/pdf")])
        assert result.first_error.startswith('File "doc.pdf" has an unsupported format.')

    def test_long_name(self):
        result = validation.validate_files([("x" * 256 + ".jpg", 10, "image/jpeg")])
        assert not result.is_valid


class TestTextValidators:
    """Form fields"""

    @pytest.mark.parametrize("name", ["Maria Santos", "Jo"])
    def test_guest_name_valid(self, name):
        assert validation.validate_guest_name(name)

    @pytest.mark.parametrize("name", ["", "   ", "M", "Test Guest", "admin", "x" * 101])
    def test_guest_name_invalid(self, name):
        assert not validation.validate_guest_name(name)

    def test_album_name_characters(self):
        assert validation.validate_album_name("Ceremony & Reception, 2024!")
        result = validation.validate_album_name("Party <script>")
        assert "invalid characters" in result.first_error

    def test_album_description_optional(self):
        assert validation.validate_album_description(None)
        assert not validation.validate_album_description("x" * 501)

    def test_invitation_message_needs_three_words(self):
        assert validation.validate_invitation_message("Please join our celebration")
        result = validation.validate_invitation_message("Pleasejoin ourcelebration")
        assert "at least 3 words" in result.first_error

    def test_qr_monogram(self):
        assert validation.validate_qr_monogram("M&J")
        assert not validation.validate_qr_monogram("M&J!")
        assert "5 characters or less" in validation.validate_qr_monogram("ABCDEFG").first_error

    @pytest.mark.parametrize("email", ["maria@example.com", "a.b+c@d.co"])
    def test_email_valid(self, email):
        assert validation.validate_email(email)

    @pytest.mark.parametrize("email", ["maria", "maria@example", "ma ria@example.com"])
    def test_email_invalid(self, email):
        assert not validation.validate_email(email)

    def test_email_optional(self):
        assert validation.validate_email("")
        assert not validation.validate_email("", required=True)

    @pytest.mark.parametrize("phone", ["+63 917 123 4567", "(555) 123-4567"])
    def test_phone_valid(self, phone):
        assert validation.validate_phone(phone)

    def test_phone_too_short(self):
        assert validation.validate_phone("12345").first_error == "Phone number must be at least 10 digits."

    def test_phone_letters(self):
        assert validation.validate_phone("call me maybe").first_error == "Please enter a valid phone number."


class TestValidateForm:
    """Merging field results"""

    def test_errors_prefixed_with_field(self):
        result = validation.validate_form({
            "email": validation.validate_email("nope"),
            "name": validation.validate_guest_name("Maria"),
        })

        assert not result.is_valid
        assert result.errors == [
            "email: Invalid format.",
            "email: Please enter a valid email address.",
        ]
