from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from fastapi import Request
from starlette.datastructures import UploadFile

from src.application.dtos.user_dto import UploadedFile
from src.application.use_cases.upload_profile_picture import FIELD_NAME, max_upload_bytes
from src.domain.errors import FieldViolation, UserValidationError
from src.infrastructure.api.errors import BadRequestBody
from src.infrastructure.database.repositories.user_repository import UserRepository
from src.infrastructure.storage.upload_storage import UploadStorage

FORM_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


@dataclass
class UserPayload:
    fields: dict[str, Any] = field(default_factory=dict)
    upload: UploadedFile | None = None


def get_user_repo(request: Request) -> UserRepository:
    return request.app.state.users


def get_upload_storage(request: Request) -> UploadStorage:
    return request.app.state.storage


def _single_file_error() -> UserValidationError:
    return UserValidationError(
        [FieldViolation(FIELD_NAME, "Only a single profilePicture file is allowed.")]
    )


async def read_user_payload(request: Request) -> UserPayload:
    """Read user fields from a multipart/urlencoded form or a JSON object.

    At most one file is accepted and only in the ``profilePicture`` field.
    File bytes are read up to one past the size limit so oversized uploads
    are still rejected without buffering them whole.
    """
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    payload = UserPayload()

    if content_type in FORM_TYPES:
        form = await request.form()
        try:
            for key, value in form.multi_items():
                if isinstance(value, UploadFile):
                    if key != FIELD_NAME or payload.upload is not None:
                        raise _single_file_error()
                    data = await value.read(max_upload_bytes() + 1)
                    payload.upload = UploadedFile(
                        filename=value.filename or "",
                        content_type=value.content_type,
                        data=data,
                    )
                else:
                    payload.fields[key] = value
        finally:
            await form.close()
        return payload

    body = await request.body()
    if not body.strip():
        return payload
    try:
        data = json.loads(body)
    except ValueError as exc:
        raise BadRequestBody("Request body must be valid JSON.") from exc
    if not isinstance(data, dict):
        raise BadRequestBody("Request body must be a JSON object.")
    payload.fields = data
    return payload

