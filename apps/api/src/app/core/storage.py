"""
File Storage

Boundary checks and local-disk persistence for uploaded documents.

Only images and PDFs up to the configured size are accepted. Both the file
extension and the declared MIME type must be on the allow-list.
"""

import asyncio
import logging
import secrets
import time
from dataclasses import dataclass
from pathlib import Path

from app.core.config import settings

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {"jpeg", "jpg", "png", "pdf"}
ALLOWED_MIME_TYPES = {"image/jpeg", "image/jpg", "image/png", "application/pdf"}


class UploadRejectedError(ValueError):
    """Raised when an upload fails a boundary check."""

    def __init__(self, reason: str, message: str):
        self.reason = reason  # "unsupported_media_type" or "payload_too_large"
        self.message = message
        super().__init__(message)


@dataclass(frozen=True)
class StoredFile:
    """A file written to storage."""

    file_name: str
    original_name: str
    file_path: str
    file_size: int
    mime_type: str


def _extension(filename: str) -> str:
    return filename.rsplit(".", 1)[-1].lower() if "." in filename else ""


def validate_upload(
    filename: str,
    content_type: str | None,
    file_size: int,
    max_bytes: int | None = None,
) -> None:
    """
    Validate an upload against the allow-list and size ceiling.

    Raises:
        UploadRejectedError: If the type is not allowed or the file is too large
    """
    limit = max_bytes if max_bytes is not None else settings.max_upload_bytes

    ext = _extension(filename)
    if ext not in ALLOWED_EXTENSIONS or (content_type or "").lower() not in ALLOWED_MIME_TYPES:
        raise UploadRejectedError(
            "unsupported_media_type",
            "Only .png, .jpg, .jpeg and .pdf format allowed!",
        )

    if file_size > limit:
        max_mb = limit / (1024 * 1024)
        raise UploadRejectedError(
            "payload_too_large",
            f"File size exceeds {max_mb:g} MB limit",
        )


def build_file_name(prefix: str, original_name: str) -> str:
    """Generate a unique stored file name: <prefix>-<millis>-<random>.<ext>."""
    suffix = f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}"
    ext = _extension(original_name)
    return f"{prefix}-{suffix}.{ext}" if ext else f"{prefix}-{suffix}"


def _write_file(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)


async def save_upload(
    data: bytes,
    original_name: str,
    content_type: str,
    prefix: str,
    upload_dir: str | None = None,
) -> StoredFile:
    """
    Write an already-validated upload to the upload directory.

    Args:
        data: File contents
        original_name: Name supplied by the client
        content_type: Declared MIME type
        prefix: Stored file name prefix (the document type)
        upload_dir: Directory override (defaults to settings.upload_dir)

    Returns:
        StoredFile describing the written file
    """
    directory = Path(upload_dir or settings.upload_dir)
    file_name = build_file_name(prefix, original_name)
    path = directory / file_name

    await asyncio.to_thread(_write_file, path, data)
    logger.info(f"Stored upload {file_name} ({len(data)} bytes)")

    return StoredFile(
        file_name=file_name,
        original_name=original_name,
        file_path=str(path),
        file_size=len(data),
        mime_type=content_type,
    )
