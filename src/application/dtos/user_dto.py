from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.domain.entities.user import UserEntity


@dataclass(frozen=True)
class UploadedFile:
    """A file part pulled off the request, already read into memory."""
    filename: str
    content_type: str | None
    data: bytes


class UserResponse(BaseModel):
    """A stored user as returned by the API."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(..., description="Identifier generated by the store", examples=["3f1c2a9e-8d4b-4c55-9d0a-6b1e2f7a9c10"])
    first_name: str = Field(..., description="Given name, 2-50 letters or spaces", examples=["John"])
    last_name: str = Field(..., description="Family name, 2-50 letters or spaces", examples=["Doe"])
    email: str = Field(..., description="Unique email address", examples=["john@example.com"])
    phone_number: str = Field(..., description="Phone number", examples=["+15551234567"])
    gender: str = Field(..., description="M or F", examples=["M"])
    profile_picture: str | None = Field(None, description="Public path of the profile picture", examples=["/uploads/profilePicture-1700000000000-123456789.png"])
    created_at: datetime | None = Field(None, description="When the user was created")
    updated_at: datetime | None = Field(None, description="When the user was last updated")

    @classmethod
    def from_entity(cls, entity: UserEntity) -> UserResponse:
        return cls(
            id=entity.id,
            first_name=entity.first_name,
            last_name=entity.last_name,
            email=entity.email,
            phone_number=entity.phone_number,
            gender=entity.gender,
            profile_picture=entity.profile_picture,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )


class UserEnvelope(BaseModel):
    """Confirmation message plus the affected user."""
    message: str = Field(..., examples=["User created successfully."])
    data: UserResponse
