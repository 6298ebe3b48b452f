"""Field rules for the User entity.

Validation is pure: it never touches the store, so email uniqueness is left
to the repository.
"""
from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from src.domain.entities.user import REQUIRED_FIELDS
from src.domain.errors import FieldViolation

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50
GENDERS = ("M", "F")

NAME_PATTERN = re.compile(r"^[A-Za-z ]+$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\+?[0-9(][0-9 \-().]*$")
PHONE_MIN_DIGITS = 7
PHONE_MAX_DIGITS = 15


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _check_name(label: str, value: Any) -> str | None:
    if _is_blank(value):
        return f"{label} is required"
    if not isinstance(value, str):
        return f"{label} must be a string"
    if len(value) < NAME_MIN_LENGTH:
        return f"{label} must be at least {NAME_MIN_LENGTH} characters long"
    if len(value) > NAME_MAX_LENGTH:
        return f"{label} cannot exceed {NAME_MAX_LENGTH} characters"
    if not NAME_PATTERN.match(value):
        return f"{label} must only contain alphabets"
    return None


def _check_email(value: Any) -> str | None:
    if _is_blank(value):
        return "Email address is required"
    if not isinstance(value, str) or not EMAIL_PATTERN.match(value):
        return "Please enter a valid email address"
    return None


def _check_phone(value: Any) -> str | None:
    if _is_blank(value):
        return "Phone number is required"
    if not isinstance(value, str) or not PHONE_PATTERN.match(value):
        return "Please enter a valid phone number"
    digits = sum(ch.isdigit() for ch in value)
    if not PHONE_MIN_DIGITS <= digits <= PHONE_MAX_DIGITS:
        return "Please enter a valid phone number"
    return None


def _check_gender(value: Any) -> str | None:
    if _is_blank(value):
        return "Gender is required"
    if value not in GENDERS:
        return "Gender must be either 'M' or 'F'"
    return None


def _check_profile_picture(value: Any) -> str | None:
    if value is None or isinstance(value, str):
        return None
    return "Profile picture must be a string path"


_RULES = (
    ("firstName", lambda v: _check_name("First name", v)),
    ("lastName", lambda v: _check_name("Last name", v)),
    ("email", _check_email),
    ("phoneNumber", _check_phone),
    ("gender", _check_gender),
    ("profilePicture", _check_profile_picture),
)


def normalize_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Strip surrounding whitespace from string values; empty picture becomes None."""
    out: dict[str, Any] = {}
    for key, value in fields.items():
        if isinstance(value, str):
            value = value.strip()
        out[key] = value
    if out.get("profilePicture") == "":
        out["profilePicture"] = None
    return out


def missing_required_fields(fields: Mapping[str, Any]) -> list[str]:
    return [key for key in REQUIRED_FIELDS if _is_blank(fields.get(key))]


def validate_user(fields: Mapping[str, Any]) -> list[FieldViolation]:
    """Check a complete candidate field set.

    Returns one violation per failing field, in declaration order. An empty
    list means the candidate is valid.
    """
    violations: list[FieldViolation] = []
    for key, rule in _RULES:
        message = rule(fields.get(key))
        if message:
            violations.append(FieldViolation(key, message))
    return violations
