"""User directory routes.

- POST /users - Create the directory row after a registration
- GET /users/premium-status?userId= - Current premium status (lazy expiry)
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from weather_portal.api.dependencies import get_directory, get_entitlements
from weather_portal.database.models import User
from weather_portal.directory import UserDirectory
from weather_portal.entitlements import EntitlementResolver, as_utc
from weather_portal.errors import ValidationError
from weather_portal.models.account import CreateUserRequest

logger = logging.getLogger(__name__)

router = APIRouter()


class UserResponse(BaseModel):
    """User directory row."""

    id: str
    email: str
    last_name: str
    first_name: str
    phone: str
    locality: str
    is_premium: bool
    premium_expires_at: datetime | None
    stripe_customer_id: str | None
    created_at: datetime | None

    @classmethod
    def from_user(cls, user: User) -> UserResponse:
        return cls(
            id=user.id,
            email=user.email,
            last_name=user.last_name,
            first_name=user.first_name,
            phone=user.phone,
            locality=user.locality,
            is_premium=bool(user.is_premium),
            premium_expires_at=as_utc(user.premium_expires_at),
            stripe_customer_id=user.stripe_customer_id,
            created_at=as_utc(user.created_at),
        )


class UserCreatedResponse(BaseModel):
    data: UserResponse
    message: str
    timestamp: datetime


class PremiumStatusResponse(BaseModel):
    is_premium: bool
    premium_expires_at: datetime | None
    checked_at: datetime
    user_id: str


@router.post("", response_model=UserCreatedResponse)
async def create_user(
    payload: CreateUserRequest,
    directory: UserDirectory = Depends(get_directory),
) -> UserCreatedResponse:
    """Create the directory row for a user registered at the identity provider.

    Profile fields are optional and default to empty strings.
    """
    if not payload.user_id or payload.user_data is None:
        raise ValidationError(
            "userId and userData are required",
            received={
                "hasUserId": bool(payload.user_id),
                "hasUserData": payload.user_data is not None,
            },
        )
    if not payload.user_data.email:
        raise ValidationError("email is required in userData")

    user = await directory.create(
        payload.user_id,
        payload.user_data.email,
        payload.user_data.model_dump(exclude={"email"}),
    )

    return UserCreatedResponse(
        data=UserResponse.from_user(user),
        message="User profile created",
        timestamp=datetime.now(timezone.utc),
    )


@router.get("/premium-status", response_model=PremiumStatusResponse)
async def premium_status(
    userId: str | None = None,
    resolver: EntitlementResolver = Depends(get_entitlements),
) -> PremiumStatusResponse:
    """Get a user's premium status.

    An expired premium is downgraded in storage before answering.
    """
    if not userId:
        raise ValidationError("userId is required")

    status = await resolver.get_status(userId)
    return PremiumStatusResponse(
        is_premium=status.is_premium,
        premium_expires_at=status.premium_expires_at,
        checked_at=resolver.clock(),
        user_id=userId,
    )
