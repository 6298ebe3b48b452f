from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any

# JSON key -> entity attribute
FIELD_MAP: dict[str, str] = {
    "firstName": "first_name",
    "lastName": "last_name",
    "email": "email",
    "phoneNumber": "phone_number",
    "gender": "gender",
    "profilePicture": "profile_picture",
}

REQUIRED_FIELDS: tuple[str, ...] = ("firstName", "lastName", "email", "phoneNumber", "gender")


@dataclass(frozen=True)
class UserEntity:
    id: str
    first_name: str
    last_name: str
    email: str
    phone_number: str
    gender: str  # "M" or "F"
    profile_picture: str | None = None  # public path /uploads/<name>
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_fields(self) -> dict[str, Any]:
        """Editable fields keyed by their JSON names."""
        return {key: getattr(self, attr) for key, attr in FIELD_MAP.items()}

    def merged(self, changes: dict[str, Any]) -> UserEntity:
        updates = {FIELD_MAP[key]: value for key, value in changes.items() if key in FIELD_MAP}
        return replace(self, **updates)
