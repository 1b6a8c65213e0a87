"""
Unit tests for upload boundary checks and local file storage.
"""

import re
from pathlib import Path

import pytest

from app.core.storage import (
    UploadRejectedError,
    build_file_name,
    save_upload,
    validate_upload,
)

MB = 1024 * 1024


class TestValidateUpload:
    """Tests for validate_upload."""

    def test_executable_is_unsupported(self):
        with pytest.raises(UploadRejectedError) as exc_info:
            validate_upload("setup.exe", "application/octet-stream", 1024)
        assert exc_info.value.reason == "unsupported_media_type"

    def test_extension_and_mime_must_both_match(self):
        with pytest.raises(UploadRejectedError):
            validate_upload("photo.png", "text/html", 1024)
        with pytest.raises(UploadRejectedError):
            validate_upload("notes.txt", "application/pdf", 1024)

    def test_missing_content_type(self):
        with pytest.raises(UploadRejectedError):
            validate_upload("birth.pdf", None, 1024)

    def test_six_megabytes_is_too_large(self):
        with pytest.raises(UploadRejectedError) as exc_info:
            validate_upload("birth.pdf", "application/pdf", 6 * MB, max_bytes=5 * MB)
        assert exc_info.value.reason == "payload_too_large"
        assert "5 MB" in exc_info.value.message

    def test_type_is_checked_before_size(self):
        with pytest.raises(UploadRejectedError) as exc_info:
            validate_upload("setup.exe", "application/octet-stream", 6 * MB, max_bytes=5 * MB)
        assert exc_info.value.reason == "unsupported_media_type"

    @pytest.mark.parametrize(
        ("filename", "content_type"),
        [
            ("birth.pdf", "application/pdf"),
            ("photo.JPG", "image/jpeg"),
            ("photo.jpeg", "image/jpg"),
            ("photo.png", "IMAGE/PNG"),
        ],
    )
    def test_allowed_files(self, filename, content_type):
        validate_upload(filename, content_type, 2 * MB, max_bytes=5 * MB)

    def test_exactly_at_limit_is_allowed(self):
        validate_upload("birth.pdf", "application/pdf", 5 * MB, max_bytes=5 * MB)


class TestSaveUpload:
    def test_build_file_name(self):
        name = build_file_name("form137", "Diploma.PDF")
        assert re.fullmatch(r"form137-\d{13}-\d+\.pdf", name)

    @pytest.mark.asyncio
    async def test_writes_file(self, tmp_path):
        stored = await save_upload(
            b"%PDF-1.7 test",
            original_name="tor.pdf",
            content_type="application/pdf",
            prefix="shs_transcript",
            upload_dir=str(tmp_path / "documents"),
        )

        path = Path(stored.file_path)
        assert path.read_bytes() == b"%PDF-1.7 test"
        assert path.parent == tmp_path / "documents"
        assert stored.file_name.startswith("shs_transcript-")
        assert stored.original_name == "tor.pdf"
        assert stored.file_size == len(b"%PDF-1.7 test")
        assert stored.mime_type == "application/pdf"
