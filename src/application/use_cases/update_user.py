from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from src.application.dtos.user_dto import UploadedFile
from src.application.use_cases.upload_profile_picture import (
    UploadProfilePictureUseCase,
    discard_picture,
)
from src.domain.entities.user import FIELD_MAP, UserEntity
from src.domain.errors import DuplicateKeyError, UserNotFoundError, UserValidationError
from src.domain.services.user_validator import normalize_fields, validate_user
from src.infrastructure.database.repositories.user_repository import UserRepository
from src.infrastructure.storage.upload_storage import UploadStorage

logger = logging.getLogger(__name__)


@dataclass
class UpdateUserUseCase:
    users: UserRepository
    storage: UploadStorage

    def execute(self, user_id: str, patch: dict[str, Any], upload: UploadedFile | None = None) -> UserEntity:
        """
        Apply a partial update.

        A new picture replaces the old one: the old file is removed
        (best-effort) only after the new path has been stored.
        """
        current = self.users.find_by_id(user_id)
        if current is None:
            raise UserNotFoundError()

        changes = {k: v for k, v in normalize_fields(patch).items() if k in FIELD_MAP}
        # clients may clear the picture but only the upload path may set it
        if changes.get("profilePicture") is not None:
            del changes["profilePicture"]
        new_picture: str | None = None
        if upload is not None:
            stored = UploadProfilePictureUseCase(self.storage).execute(
                upload.filename, upload.content_type, upload.data
            )
            new_picture = stored.path
            changes["profilePicture"] = new_picture

        try:
            merged = current.merged(changes)
            violations = validate_user(merged.to_fields())
            if violations:
                raise UserValidationError(violations)
            if merged.email != current.email:
                owner = self.users.find_by_email(merged.email)
                if owner is not None and owner.id != current.id:
                    raise DuplicateKeyError()
            updated = self.users.update_by_id(current.id, changes)
        except Exception:
            discard_picture(self.storage, new_picture)
            raise

        old_picture = current.profile_picture
        if old_picture and old_picture != updated.profile_picture:
            discard_picture(self.storage, old_picture)

        logger.info("Updated user %s", updated.id)
        return updated
