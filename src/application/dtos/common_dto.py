"""Common DTOs for API responses and error handling."""
from __future__ import annotations

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    """Plain confirmation or error message."""
    message: str = Field(..., description="Human-readable message", examples=["User deleted successfully."])


class FieldError(BaseModel):
    field: str = Field(..., description="JSON name of the offending field", examples=["firstName"])
    message: str = Field(..., description="Why the value was rejected")


class ValidationErrorResponse(BaseModel):
    """Validation failure with one entry per rejected field."""
    message: str = Field(..., description="First violation, or a summary", examples=["All fields are required."])
    errors: list[FieldError] = Field(default_factory=list)


class ServerErrorResponse(BaseModel):
    """Envelope returned for unexpected failures."""
    success: bool = Field(False)
    message: str = Field(..., description="Raw error message")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Health status", examples=["healthy"])
    backend: str = Field(..., description="Active persistence backend", examples=["memory"])
    users: int = Field(..., description="Number of stored users", examples=[3], ge=0)


class RootResponse(BaseModel):
    """Root endpoint response model."""
    status: str = Field(..., description="API status", examples=["ok"])
    service: str = Field(..., description="Service name", examples=["user-records-service"])
    version: str = Field(..., description="API version", examples=["0.1.0"])
