"""Unit tests for upload file checks

Covers size limits, filename validation and sanitization used by the
content and attachment endpoints.
"""

import pytest

from config import get_settings
from domain.documents import (
    PayloadTooLarge,
    StructuralError,
    check_upload,
    sanitize_filename,
    validate_file_size,
    validate_filename,
)


class TestFileSizeValidation:
    """Test file size validation"""

    def test_valid_small_file(self):
        is_valid, error = validate_file_size(1024)
        assert is_valid is True
        assert error is None

    def test_file_at_configured_limit(self):
        """Test file exactly at MAX_UPLOAD_SIZE_BYTES is accepted"""
        is_valid, error = validate_file_size(get_settings().MAX_UPLOAD_SIZE_BYTES)
        assert is_valid is True
        assert error is None

    def test_file_exceeds_configured_limit(self):
        is_valid, error = validate_file_size(get_settings().MAX_UPLOAD_SIZE_BYTES + 1)
        assert is_valid is False
        assert "exceeds maximum size" in error.lower()

    def test_default_limit_is_20_mib(self):
        assert get_settings().MAX_UPLOAD_SIZE_BYTES == 20 * 1024 * 1024

    def test_empty_file(self):
        is_valid, error = validate_file_size(0)
        assert is_valid is False
        assert "empty" in error.lower()

    def test_custom_max_size(self):
        is_valid, error = validate_file_size(6 * 1024 * 1024, max_size=5 * 1024 * 1024)
        assert is_valid is False
        assert "exceeds maximum size" in error.lower()


class TestFilenameValidation:
    """Test filename validation"""

    @pytest.mark.parametrize("filename", [
        "certificate.pdf",
        "audit report 2026.pdf",
        "scan_0001.jpeg",
    ])
    def test_valid_filenames(self, filename):
        is_valid, error = validate_filename(filename)
        assert is_valid is True
        assert error is None

    @pytest.mark.parametrize("filename", ["", "   "])
    def test_empty_filename(self, filename):
        is_valid, error = validate_filename(filename)
        assert is_valid is False
        assert "empty" in error.lower()

    def test_filename_too_long(self):
        is_valid, error = validate_filename("a" * 256 + ".pdf")
        assert is_valid is False
        assert "exceeds 255 characters" in error.lower()

    @pytest.mark.parametrize("filename", [
        "../../etc/passwd",
        "..\\..\\windows\\system32\\config",
        "folder/file.pdf",
    ])
    def test_path_traversal_rejected(self, filename):
        is_valid, error = validate_filename(filename)
        assert is_valid is False
        assert "path traversal" in error.lower()

    def test_null_byte_rejected(self):
        is_valid, error = validate_filename("file\x00.pdf")
        assert is_valid is False
        assert "null byte" in error.lower()

    def test_control_characters_rejected(self):
        is_valid, error = validate_filename("file\x01.pdf")
        assert is_valid is False
        assert "control character" in error.lower()


class TestFilenameSanitization:
    """Test filename sanitization"""

    def test_simple_filename_unchanged(self):
        assert sanitize_filename("certificate.pdf") == "certificate.pdf"

    def test_directory_components_removed(self):
        assert sanitize_filename("../../certificate.pdf") == "certificate.pdf"
        assert sanitize_filename("C:\\scans\\certificate.pdf") == "certificate.pdf"

    def test_special_characters_replaced(self):
        assert sanitize_filename("audit (copy).pdf") == "audit_copy_.pdf"

    def test_long_filename_keeps_extension(self):
        sanitized = sanitize_filename("a" * 300 + ".pdf")
        assert len(sanitized) == 255
        assert sanitized.endswith(".pdf")


class TestCheckUpload:
    """Test the raising file stage used by the endpoints"""

    def test_returns_sanitized_filename(self):
        assert check_upload("audit (copy).pdf", 1024) == "audit_copy_.pdf"

    def test_empty_file_is_structural(self):
        with pytest.raises(StructuralError) as exc_info:
            check_upload("audit.pdf", 0)

        assert exc_info.value.code == "validation_error"
        assert exc_info.value.details["errors"][0]["field"] == "content"

    def test_bad_filename_is_structural(self):
        with pytest.raises(StructuralError):
            check_upload("../audit.pdf", 1024)

    def test_oversize_file(self):
        with pytest.raises(PayloadTooLarge) as exc_info:
            check_upload("audit.pdf", 2048, max_size=1024)

        assert exc_info.value.details == {"sizeBytes": 2048, "maxSizeBytes": 1024}
