from __future__ import annotations

import logging
from dataclasses import dataclass

from src.application.use_cases.upload_profile_picture import discard_picture
from src.domain.errors import UserNotFoundError
from src.infrastructure.database.repositories.user_repository import UserRepository
from src.infrastructure.storage.upload_storage import UploadStorage

logger = logging.getLogger(__name__)


@dataclass
class DeleteUserUseCase:
    users: UserRepository
    storage: UploadStorage

    def execute(self, user_id: str) -> None:
        """Delete the picture (best-effort) and then the record."""
        current = self.users.find_by_id(user_id)
        if current is None:
            raise UserNotFoundError()
        discard_picture(self.storage, current.profile_picture)
        self.users.delete_by_id(current.id)
        logger.info("Deleted user %s", current.id)
