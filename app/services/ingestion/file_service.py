"""Service for staging uploaded bytes on disk until ingestion picks them up."""

import hashlib
import logging
import os
import uuid
from typing import Optional

from app.core.config import settings
from app.core.constants import ALLOWED_CONTENT_TYPES

logger = logging.getLogger(__name__)

STAGING_SUBDIR = "uploads"


class FileService:
    """Service for handling staged upload files.

    Staged paths are relative to ``<data_dir>/uploads`` so they can travel in
    a JSON task payload.
    """

    def __init__(self, data_dir: Optional[str] = None):
        """Initialize the file service."""
        self.data_dir = data_dir or settings.DATA_DIR
        self.staging_dir = os.path.join(self.data_dir, STAGING_SUBDIR)
        # Ensure the staging directory exists
        if not os.path.exists(self.staging_dir):
            os.makedirs(self.staging_dir, exist_ok=True)
            logger.info(f"Created staging directory: {self.staging_dir}")

    def _full_path(self, rel_path: str) -> str:
        full_path = os.path.realpath(os.path.join(self.staging_dir, rel_path))
        if not full_path.startswith(os.path.realpath(self.staging_dir) + os.sep):
            raise ValueError(f"Path escapes staging directory: {rel_path}")
        return full_path

    def stage(self, data: bytes, content_type: str) -> str:
        """Write upload bytes to a uniquely named file.

        Returns:
            Path of the staged file, relative to the staging directory
        """
        extension = ALLOWED_CONTENT_TYPES.get(content_type, "")
        rel_path = f"{uuid.uuid4().hex}{extension}"
        with open(self._full_path(rel_path), "wb") as f:
            f.write(data)
        logger.info(f"Staged {len(data)} bytes at {rel_path}")
        return rel_path

    def read(self, rel_path: str) -> bytes:
        """Read staged bytes back."""
        with open(self._full_path(rel_path), "rb") as f:
            return f.read()

    def remove(self, rel_path: str) -> None:
        """Delete a staged file; a missing file is not an error."""
        try:
            os.remove(self._full_path(rel_path))
        except FileNotFoundError:
            logger.debug(f"Staged file already gone: {rel_path}")

    @staticmethod
    def calculate_hash(data: bytes) -> str:
        """SHA256 hash of file bytes, kept for deduplication bookkeeping."""
        return hashlib.sha256(data).hexdigest()
