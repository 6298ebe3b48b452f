import pytest

from src.domain.services.user_validator import (
    missing_required_fields,
    normalize_fields,
    validate_user,
)

VALID = {
    "firstName": "John",
    "lastName": "Doe",
    "email": "john.doe@example.com",
    "phoneNumber": "+1 (555) 123-4567",
    "gender": "M",
}


def messages(fields):
    return {v.field: v.message for v in validate_user(fields)}


def test_valid_user_has_no_violations():
    assert validate_user(VALID) == []
    assert validate_user({**VALID, "profilePicture": None}) == []
    assert validate_user({**VALID, "firstName": "Mary Ann"}) == []


def test_first_name_too_short():
    assert messages({**VALID, "firstName": "A"}) == {
        "firstName": "First name must be at least 2 characters long"
    }


def test_last_name_too_long():
    assert messages({**VALID, "lastName": "x" * 51}) == {
        "lastName": "Last name cannot exceed 50 characters"
    }


def test_name_with_digits_rejected():
    assert messages({**VALID, "firstName": "John123"}) == {
        "firstName": "First name must only contain alphabets"
    }


@pytest.mark.parametrize("email", ["invalidemail", "a@b", "a b@c.com", "@x.com"])
def test_invalid_email(email):
    assert messages({**VALID, "email": email}) == {"email": "Please enter a valid email address"}


@pytest.mark.parametrize("phone", ["+15551234567", "0771234567", "+94 77 123 4567", "555.123.4567", "(555) 123-4567"])
def test_valid_phone_numbers(phone):
    assert validate_user({**VALID, "phoneNumber": phone}) == []


@pytest.mark.parametrize("phone", ["123", "phone", "+1-555-abc-4567", "1234567890123456", "555\t123\t4567", "555 123\n4567"])
def test_invalid_phone_numbers(phone):
    assert messages({**VALID, "phoneNumber": phone}) == {
        "phoneNumber": "Please enter a valid phone number"
    }


def test_gender_must_be_m_or_f():
    assert messages({**VALID, "gender": "X"}) == {"gender": "Gender must be either 'M' or 'F'"}


def test_missing_fields_reported_in_order():
    result = validate_user({"firstName": "John"})
    assert [v.field for v in result] == ["lastName", "email", "phoneNumber", "gender"]
    assert result[0].message == "Last name is required"
    assert missing_required_fields({"firstName": "John", "email": "  "}) == [
        "lastName",
        "email",
        "phoneNumber",
        "gender",
    ]


def test_profile_picture_must_be_string():
    assert messages({**VALID, "profilePicture": 42}) == {
        "profilePicture": "Profile picture must be a string path"
    }


def test_normalize_strips_and_clears_empty_picture():
    out = normalize_fields({"firstName": "  John ", "profilePicture": "", "extra": 1})
    assert out == {"firstName": "John", "profilePicture": None, "extra": 1}
