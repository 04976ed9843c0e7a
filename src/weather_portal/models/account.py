"""Request bodies for account, favorites and checkout endpoints.

JSON keys follow the front end's camelCase (`userId`, `userEmail`); the
Python attributes are snake_case.
"""

from __future__ import annotations

import re
import uuid
from typing import Any, Self

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^[0-9+\-\s]+$")


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(value or ""))


def _check_email(value: str) -> str:
    value = value.strip()
    if not is_valid_email(value):
        raise ValueError("Invalid email address")
    return value


class ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ProfileFields(ApiModel):
    """Profile fields shared by sign-up and profile update."""

    last_name: str = Field(..., min_length=2)
    first_name: str = Field(..., min_length=2)
    phone: str = Field(..., min_length=10)
    locality: str = Field(..., min_length=2)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        if not PHONE_PATTERN.match(v):
            raise ValueError("Phone number may only contain digits, +, - and spaces")
        return v

    def profile(self) -> dict[str, Any]:
        return self.model_dump(include={"last_name", "first_name", "phone", "locality"})


class RegisterRequest(ProfileFields):
    """Sign-up form."""

    email: str
    password: str = Field(..., min_length=6)
    confirm_password: str = Field(..., alias="confirmPassword")

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _check_email(v)

    @model_validator(mode="after")
    def passwords_match(self) -> Self:
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class LoginRequest(ApiModel):
    email: str
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _check_email(v)


class ProfileUpdateRequest(ProfileFields):
    """Profile form. The email cannot be changed here."""


class ChangePasswordRequest(ApiModel):
    current_password: str = Field(..., min_length=1, alias="currentPassword")
    new_password: str = Field(..., min_length=6, alias="newPassword")
    confirm_new_password: str = Field(..., alias="confirmNewPassword")

    @model_validator(mode="after")
    def passwords_match(self) -> Self:
        if self.new_password != self.confirm_new_password:
            raise ValueError("New passwords do not match")
        return self


class UserData(ApiModel):
    email: str | None = None
    last_name: str | None = None
    first_name: str | None = None
    phone: str | None = None
    locality: str | None = None


class CreateUserRequest(ApiModel):
    """Directory row creation. Presence checks happen in the route."""

    user_id: str | None = Field(default=None, alias="userId")
    user_data: UserData | None = Field(default=None, alias="userData")


class FavoriteCreateRequest(ApiModel):
    user_id: str | None = Field(default=None, alias="userId")
    place: str | None = Field(default=None, validation_alias=AliasChoices("place", "ville"))


class FavoriteDeleteRequest(ApiModel):
    id: uuid.UUID | None = None
    user_id: str | None = Field(default=None, alias="userId")
    place: str | None = Field(default=None, validation_alias=AliasChoices("place", "ville"))


class CheckoutRequest(ApiModel):
    user_id: str | None = Field(default=None, alias="userId")
    user_email: str | None = Field(default=None, alias="userEmail")
