"""Tests for request body validation."""

import uuid

import pytest
from pydantic import ValidationError

from weather_portal.models.account import (
    ChangePasswordRequest,
    CheckoutRequest,
    FavoriteCreateRequest,
    FavoriteDeleteRequest,
    LoginRequest,
    RegisterRequest,
    is_valid_email,
)


def register_body(**overrides) -> dict:
    body = {
        "email": "ada@example.com",
        "password": "secret1",
        "confirmPassword": "secret1",
        "last_name": "Lovelace",
        "first_name": "Ada",
        "phone": "+33 1 23 45 67 89",
        "locality": "Paris",
    }
    body.update(overrides)
    return body


class TestEmail:
    """Tests for the email format check."""

    @pytest.mark.parametrize("email", ["a@b.co", "ada.lovelace@example.com", "x+y@sub.domain.fr"])
    def test_valid(self, email):
        assert is_valid_email(email)

    @pytest.mark.parametrize("email", ["", "ada", "ada@", "ada@example", "ada @example.com", "@example.com"])
    def test_invalid(self, email):
        assert not is_valid_email(email)


class TestRegisterRequest:
    """Tests for the sign-up form."""

    def test_valid(self):
        request = RegisterRequest.model_validate(register_body())

        assert request.email == "ada@example.com"
        assert request.profile() == {
            "last_name": "Lovelace",
            "first_name": "Ada",
            "phone": "+33 1 23 45 67 89",
            "locality": "Paris",
        }

    def test_passwords_must_match(self):
        with pytest.raises(ValidationError, match="Passwords do not match"):
            RegisterRequest.model_validate(register_body(confirmPassword="secret2"))

    @pytest.mark.parametrize(
        "field, value",
        [
            ("email", "not-an-email"),
            ("password", "12345"),
            ("last_name", "L"),
            ("first_name", "A"),
            ("phone", "012345"),
            ("phone", "01234abcde"),
            ("locality", "P"),
        ],
    )
    def test_field_rules(self, field, value):
        body = register_body(**{field: value})
        if field == "password":
            body["confirmPassword"] = value
        with pytest.raises(ValidationError):
            RegisterRequest.model_validate(body)


class TestOtherRequests:
    """Tests for the smaller request bodies."""

    def test_login_rejects_bad_email(self):
        with pytest.raises(ValidationError):
            LoginRequest(email="nope", password="x")

    def test_change_password(self):
        request = ChangePasswordRequest.model_validate(
            {"currentPassword": "old", "newPassword": "secret1", "confirmNewPassword": "secret1"}
        )
        assert request.new_password == "secret1"

    def test_change_password_mismatch(self):
        with pytest.raises(ValidationError, match="New passwords do not match"):
            ChangePasswordRequest.model_validate(
                {"currentPassword": "old", "newPassword": "secret1", "confirmNewPassword": "other1"}
            )

    @pytest.mark.parametrize("key", ["place", "ville"])
    def test_favorite_place_aliases(self, key):
        request = FavoriteCreateRequest.model_validate({"userId": "u1", key: "Paris"})
        assert request.user_id == "u1"
        assert request.place == "Paris"

    def test_favorite_delete_by_id(self):
        favorite_id = uuid.uuid4()
        request = FavoriteDeleteRequest.model_validate({"id": str(favorite_id)})
        assert request.id == favorite_id
        assert request.place is None

    def test_checkout_fields_optional(self):
        request = CheckoutRequest.model_validate({})
        assert request.user_id is None
        assert request.user_email is None
