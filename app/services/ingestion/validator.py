"""Upload screening: MIME allow-list, filename repair and batch caps."""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from app.core.config import settings
from app.core.constants import ALLOWED_CONTENT_TYPES
from app.core.errors import PayloadTooLargeError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationResult:
    accepted: bool
    reason: Optional[str] = None


def validate_content_type(content_type: Optional[str]) -> ValidationResult:
    """Accept or reject a declared MIME type against the allow-list.

    Rejection is a result, not an exception.
    """
    if content_type in ALLOWED_CONTENT_TYPES:
        return ValidationResult(accepted=True)
    return ValidationResult(accepted=False, reason=f"Unsupported file type: {content_type}")


def normalize_filename(name: Optional[str]) -> str:
    """Undo latin-1 mangling of UTF-8 filenames from multipart uploads.

    Names that are pure ASCII, or whose latin-1 bytes are not valid UTF-8,
    come back unchanged.
    """
    if not name:
        return "unnamed"
    if name.isascii():
        return name
    try:
        return name.encode("latin-1").decode("utf-8")
    except (UnicodeEncodeError, UnicodeDecodeError):
        return name


def check_declared_length(content_length: Optional[str]) -> None:
    """Reject a request whose declared body already exceeds the upload cap."""
    if not content_length:
        return
    try:
        declared = int(content_length)
    except ValueError:
        raise ValidationError("Invalid Content-Length header")
    if declared > settings.MAX_UPLOAD_BYTES:
        raise PayloadTooLargeError(
            f"Upload too large: {declared} bytes (max: {settings.MAX_UPLOAD_BYTES} bytes)"
        )


def check_batch(sizes: Iterable[int]) -> None:
    """Enforce the per-request file count and total size caps.

    Raises:
        ValidationError: no files, or more than ``MAX_UPLOAD_FILES``
        PayloadTooLargeError: total size above ``MAX_UPLOAD_BYTES``
    """
    sizes = list(sizes)
    if not sizes:
        raise ValidationError("No files uploaded")
    if len(sizes) > settings.MAX_UPLOAD_FILES:
        raise ValidationError(f"Too many files: {len(sizes)} (max: {settings.MAX_UPLOAD_FILES})")
    total = sum(sizes)
    if total > settings.MAX_UPLOAD_BYTES:
        logger.warning(f"Rejecting upload batch of {total} bytes")
        raise PayloadTooLargeError(f"Upload too large: {total} bytes (max: {settings.MAX_UPLOAD_BYTES} bytes)")
