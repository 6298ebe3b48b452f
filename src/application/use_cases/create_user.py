from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from src.application.dtos.user_dto import UploadedFile
from src.application.use_cases.upload_profile_picture import (
    UploadProfilePictureUseCase,
    discard_picture,
)
from src.domain.entities.user import UserEntity
from src.domain.errors import DuplicateKeyError, UserValidationError
from src.domain.services.user_validator import (
    missing_required_fields,
    normalize_fields,
    validate_user,
)
from src.infrastructure.database.repositories.user_repository import UserRepository
from src.infrastructure.storage.upload_storage import UploadStorage

logger = logging.getLogger(__name__)


@dataclass
class CreateUserUseCase:
    users: UserRepository
    storage: UploadStorage

    def execute(self, fields: dict[str, Any], upload: UploadedFile | None = None) -> UserEntity:
        """
        Create a user, storing the profile picture first when one is sent.

        The email pre-check is advisory; the repository's uniqueness guard is
        what actually rejects duplicates.
        """
        fields = normalize_fields(fields)
        picture: str | None = None
        if upload is not None:
            stored = UploadProfilePictureUseCase(self.storage).execute(
                upload.filename, upload.content_type, upload.data
            )
            picture = stored.path
        try:
            missing = missing_required_fields(fields)
            if missing:
                raise UserValidationError(
                    [v for v in validate_user(fields) if v.field in missing],
                    message="All fields are required.",
                )
            email = fields["email"]
            if isinstance(email, str) and self.users.find_by_email(email) is not None:
                raise DuplicateKeyError()
            fields["profilePicture"] = picture
            violations = validate_user(fields)
            if violations:
                raise UserValidationError(violations)
            entity = self.users.insert(fields)
        except Exception:
            discard_picture(self.storage, picture)
            raise
        logger.info("Created user %s", entity.id)
        return entity
