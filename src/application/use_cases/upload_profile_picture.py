from __future__ import annotations

import logging
import os
import secrets
import time
from dataclasses import dataclass, field
from pathlib import PurePath

from src.domain.errors import FileTooLargeError, InvalidFileTypeError
from src.infrastructure.storage.upload_storage import StoredFile, UploadStorage

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = frozenset({"jpeg", "jpg", "png", "gif"})
ALLOWED_CONTENT_TYPES = frozenset({"image/jpeg", "image/jpg", "image/png", "image/gif"})
DEFAULT_MAX_BYTES = 5 * 1024 * 1024
FIELD_NAME = "profilePicture"


def max_upload_bytes() -> int:
    return int(os.getenv("MAX_UPLOAD_BYTES", str(DEFAULT_MAX_BYTES)))


def generate_filename(original_filename: str) -> str:
    """Collision-resistant name: field, epoch millis, random suffix, original extension."""
    suffix = PurePath(original_filename).suffix.lower()
    return f"{FIELD_NAME}-{int(time.time() * 1000)}-{secrets.randbelow(10**9):09d}{suffix}"


def discard_picture(storage: UploadStorage, path: str | None) -> None:
    """Best-effort removal of a stored picture; failures are logged, not raised."""
    if not path:
        return
    try:
        if not storage.delete(path):
            logger.info("Profile picture %s already gone", path)
    except OSError:
        logger.warning("Could not delete profile picture %s", path, exc_info=True)


@dataclass
class UploadProfilePictureUseCase:
    storage: UploadStorage
    max_bytes: int = field(default_factory=max_upload_bytes)

    def validate(self, filename: str, content_type: str | None, size: int) -> None:
        ext = PurePath(filename or "").suffix.lower().lstrip(".")
        mime = (content_type or "").split(";")[0].strip().lower()
        # both checks must pass
        if ext not in ALLOWED_EXTENSIONS or mime not in ALLOWED_CONTENT_TYPES:
            raise InvalidFileTypeError()
        if size > self.max_bytes:
            raise FileTooLargeError(f"File too large. Maximum size is {self.max_bytes / (1024 * 1024):g} MB.")

    def execute(self, filename: str, content_type: str | None, data: bytes) -> StoredFile:
        """Validate and store one profile picture, returning its public path."""
        self.validate(filename, content_type, len(data))
        stored = self.storage.save(generate_filename(filename), data)
        logger.info("Uploaded profile picture %s (%d bytes)", stored.path, stored.size)
        return stored
