"""Error taxonomy for the user service.

The API layer maps each class to an HTTP status in
``src.infrastructure.api.errors``.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldViolation:
    field: str
    message: str


class UserServiceError(Exception):
    message = "User service error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.message
        super().__init__(self.message)


class UserValidationError(UserServiceError):
    message = "Validation failed"

    def __init__(self, violations: list[FieldViolation] | None = None, message: str | None = None) -> None:
        self.violations = list(violations or [])
        if message is None and self.violations:
            message = self.violations[0].message
        super().__init__(message)


class InvalidFileTypeError(UserValidationError):
    message = "Only image files (jpeg, jpg, png, gif) are allowed."

    def __init__(self, message: str | None = None) -> None:
        super().__init__([FieldViolation("profilePicture", message or self.message)])


class FileTooLargeError(UserValidationError):
    message = "File too large. Maximum size is 5 MB."

    def __init__(self, message: str | None = None) -> None:
        super().__init__([FieldViolation("profilePicture", message or self.message)])


class DuplicateKeyError(UserServiceError):
    message = "User already exists."


class InvalidUserIdError(UserServiceError):
    message = "Invalid user ID."


class UserNotFoundError(UserServiceError):
    message = "User not found."


class MissingUserIdError(UserServiceError):
    message = "User ID is required."
