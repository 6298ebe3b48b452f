from __future__ import annotations

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from src.application.dtos.common_dto import (
    MessageResponse,
    ServerErrorResponse,
    ValidationErrorResponse,
)
from src.application.dtos.user_dto import UserEnvelope, UserResponse
from src.application.use_cases.create_user import CreateUserUseCase
from src.application.use_cases.delete_user import DeleteUserUseCase
from src.application.use_cases.update_user import UpdateUserUseCase
from src.domain.errors import MissingUserIdError, UserNotFoundError
from src.infrastructure.api.dependencies import (
    UserPayload,
    get_upload_storage,
    get_user_repo,
    read_user_payload,
)
from src.infrastructure.database.repositories.user_repository import UserRepository
from src.infrastructure.storage.upload_storage import UploadStorage

router = APIRouter(
    prefix="/api",
    tags=["Users"],
    responses={
        400: {"model": ValidationErrorResponse, "description": "Bad Request - Missing or invalid fields, duplicate email, bad file"},
        500: {"model": ServerErrorResponse, "description": "Internal Server Error - Unexpected failure, message passed through"},
    },
)

USER_BODY_DOC = {
    "requestBody": {
        "content": {
            "multipart/form-data": {
                "schema": {
                    "type": "object",
                    "properties": {
                        "firstName": {"type": "string"},
                        "lastName": {"type": "string"},
                        "email": {"type": "string"},
                        "phoneNumber": {"type": "string"},
                        "gender": {"type": "string", "enum": ["M", "F"]},
                        "profilePicture": {"type": "string", "format": "binary"},
                    },
                }
            },
            "application/json": {"schema": {"type": "object"}},
        }
    }
}


def _require_id(user_id: str | None) -> str:
    if not user_id or not user_id.strip():
        raise MissingUserIdError()
    return user_id.strip()


@router.post(
    "/user",
    response_model=UserEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create User",
    description="""
    Create a user from a multipart form or a JSON object.

    **Required fields**: firstName, lastName, email, phoneNumber, gender
    **Optional file**: profilePicture (jpeg, jpg, png or gif, at most 5 MB)

    The email must not belong to another user. An uploaded picture is served
    afterwards from the returned `/uploads/...` path.
    """,
    response_description="Confirmation and the created user",
    openapi_extra=USER_BODY_DOC,
)
async def create_user(
    payload: UserPayload = Depends(read_user_payload),
    users: UserRepository = Depends(get_user_repo),
    storage: UploadStorage = Depends(get_upload_storage),
):
    """Create a new user."""
    uc = CreateUserUseCase(users=users, storage=storage)
    entity = await run_in_threadpool(uc.execute, payload.fields, payload.upload)
    return UserEnvelope(message="User created successfully.", data=UserResponse.from_entity(entity))


@router.get(
    "/users",
    response_model=list[UserResponse],
    summary="List Users",
    description="Return every stored user. An empty store answers 404.",
    responses={404: {"model": MessageResponse, "description": "Not Found - No users stored"}},
)
async def list_users(users: UserRepository = Depends(get_user_repo)):
    """List all users."""
    items = await run_in_threadpool(users.find_all)
    if not items:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"message": "No users found."})
    return [UserResponse.from_entity(it) for it in items]


@router.get("/user", include_in_schema=False)
@router.put("/update/user", include_in_schema=False)
@router.delete("/delete/user", include_in_schema=False)
async def missing_user_id():
    raise MissingUserIdError()


@router.get(
    "/user/{user_id}",
    response_model=UserResponse,
    summary="Get User",
    description="Fetch one user by the identifier the store generated.",
    responses={404: {"model": MessageResponse, "description": "Not Found - User does not exist"}},
)
async def get_user(user_id: str, users: UserRepository = Depends(get_user_repo)):
    """Get a single user."""
    entity = await run_in_threadpool(users.find_by_id, _require_id(user_id))
    if entity is None:
        raise UserNotFoundError()
    return UserResponse.from_entity(entity)


@router.put(
    "/update/user/{user_id}",
    response_model=UserEnvelope,
    summary="Update User",
    description="""
    Partially update a user. Only the fields sent are changed; the merged
    record is validated again before it is stored.

    Sending a new profilePicture replaces the previous file, which is removed
    from the content directory.
    """,
    response_description="Confirmation and the updated user",
    responses={404: {"model": MessageResponse, "description": "Not Found - User does not exist"}},
    openapi_extra=USER_BODY_DOC,
)
async def update_user(
    user_id: str,
    payload: UserPayload = Depends(read_user_payload),
    users: UserRepository = Depends(get_user_repo),
    storage: UploadStorage = Depends(get_upload_storage),
):
    """Update an existing user."""
    uc = UpdateUserUseCase(users=users, storage=storage)
    entity = await run_in_threadpool(uc.execute, _require_id(user_id), payload.fields, payload.upload)
    return UserEnvelope(message="User updated successfully.", data=UserResponse.from_entity(entity))


@router.delete(
    "/delete/user/{user_id}",
    response_model=MessageResponse,
    summary="Delete User",
    description="Permanently delete a user and, best-effort, their profile picture.",
    responses={404: {"model": MessageResponse, "description": "Not Found - User does not exist"}},
)
async def delete_user(
    user_id: str,
    users: UserRepository = Depends(get_user_repo),
    storage: UploadStorage = Depends(get_upload_storage),
):
    """Delete a user."""
    uc = DeleteUserUseCase(users=users, storage=storage)
    await run_in_threadpool(uc.execute, _require_id(user_id))
    return MessageResponse(message="User deleted successfully.")
