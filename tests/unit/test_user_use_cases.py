import uuid

import pytest

from src.application.dtos.user_dto import UploadedFile
from src.application.use_cases.create_user import CreateUserUseCase
from src.application.use_cases.delete_user import DeleteUserUseCase
from src.application.use_cases.update_user import UpdateUserUseCase
from src.domain.errors import (
    DuplicateKeyError,
    InvalidFileTypeError,
    UserNotFoundError,
    UserValidationError,
)
from src.infrastructure.database.repositories.user_repository import UserRepository
from src.infrastructure.storage.upload_storage import InMemoryUploadStorage

VALID = {
    "firstName": "John",
    "lastName": "Doe",
    "email": "john@x.com",
    "phoneNumber": "+15551234567",
    "gender": "M",
}
PNG = UploadedFile(filename="me.png", content_type="image/png", data=b"\x89PNG fake")


@pytest.fixture()
def users():
    return UserRepository(client=None)


@pytest.fixture()
def storage():
    return InMemoryUploadStorage()


def test_create_with_picture(users, storage):
    user = CreateUserUseCase(users, storage).execute(dict(VALID), PNG)
    assert user.profile_picture.startswith("/uploads/")
    assert storage.exists(user.profile_picture)


def test_create_ignores_client_supplied_picture_path(users, storage):
    user = CreateUserUseCase(users, storage).execute({**VALID, "profilePicture": "/etc/passwd"})
    assert user.profile_picture is None


def test_create_missing_fields_discards_upload(users, storage):
    with pytest.raises(UserValidationError) as exc:
        CreateUserUseCase(users, storage).execute({"firstName": "John"}, PNG)
    assert exc.value.message == "All fields are required."
    assert {v.field for v in exc.value.violations} == {"lastName", "email", "phoneNumber", "gender"}
    assert storage.files == {}


def test_create_duplicate_email(users, storage):
    uc = CreateUserUseCase(users, storage)
    uc.execute(dict(VALID))
    with pytest.raises(DuplicateKeyError):
        uc.execute({**VALID, "firstName": "Jane", "gender": "F"}, PNG)
    assert storage.files == {}


def test_create_bad_file_stores_nothing(users, storage):
    bad = UploadedFile(filename="notes.txt", content_type="text/plain", data=b"hi")
    with pytest.raises(InvalidFileTypeError):
        CreateUserUseCase(users, storage).execute(dict(VALID), bad)
    assert users.count() == 0


def test_update_replaces_old_picture(users, storage):
    user = CreateUserUseCase(users, storage).execute(dict(VALID), PNG)
    old = user.profile_picture
    updated = UpdateUserUseCase(users, storage).execute(user.id, {"firstName": "Jane"}, PNG)
    assert updated.first_name == "Jane"
    assert updated.profile_picture != old
    assert not storage.exists(old)
    assert storage.exists(updated.profile_picture)


def test_update_invalid_keeps_old_picture(users, storage):
    user = CreateUserUseCase(users, storage).execute(dict(VALID), PNG)
    with pytest.raises(UserValidationError):
        UpdateUserUseCase(users, storage).execute(user.id, {"firstName": "A"}, PNG)
    assert list(storage.files) == [user.profile_picture.rsplit("/", 1)[1]]
    assert users.find_by_id(user.id).first_name == "John"


def test_update_store_failure_keeps_old_picture(users, storage, monkeypatch):
    user = CreateUserUseCase(users, storage).execute(dict(VALID), PNG)

    def unavailable(user_id, changes):
        raise RuntimeError("PostgreSQL update user failed: connection reset")

    monkeypatch.setattr(users, "update_by_id", unavailable)
    with pytest.raises(RuntimeError):
        UpdateUserUseCase(users, storage).execute(user.id, {"firstName": "Jane"}, PNG)
    assert storage.exists(user.profile_picture)
    assert list(storage.files) == [user.profile_picture.rsplit("/", 1)[1]]


def test_update_can_clear_picture(users, storage):
    user = CreateUserUseCase(users, storage).execute(dict(VALID), PNG)
    updated = UpdateUserUseCase(users, storage).execute(user.id, {"profilePicture": ""})
    assert updated.profile_picture is None
    assert storage.files == {}


def test_update_to_taken_email(users, storage):
    create = CreateUserUseCase(users, storage)
    create.execute(dict(VALID))
    other = create.execute({**VALID, "email": "jane@x.com"})
    with pytest.raises(DuplicateKeyError):
        UpdateUserUseCase(users, storage).execute(other.id, {"email": "john@x.com"})


def test_update_missing_user(users, storage):
    with pytest.raises(UserNotFoundError):
        UpdateUserUseCase(users, storage).execute(str(uuid.uuid4()), {"firstName": "Jane"}, PNG)
    assert storage.files == {}


def test_delete_removes_record_and_picture(users, storage):
    user = CreateUserUseCase(users, storage).execute(dict(VALID), PNG)
    DeleteUserUseCase(users, storage).execute(user.id)
    assert users.find_by_id(user.id) is None
    assert storage.files == {}


def test_delete_without_picture(users, storage):
    user = CreateUserUseCase(users, storage).execute(dict(VALID))
    DeleteUserUseCase(users, storage).execute(user.id)
    assert users.count() == 0
    with pytest.raises(UserNotFoundError):
        DeleteUserUseCase(users, storage).execute(user.id)
