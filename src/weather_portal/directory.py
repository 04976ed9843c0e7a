"""User directory.

Profile and entitlement rows addressed by the identity provider's user id.
The directory is the only component that touches the `users` table.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from weather_portal.database.models import Favorite, User
from weather_portal.errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("last_name", "first_name", "phone", "locality")


class UserDirectory:
    """Repository over the `users` table.

    Example:
        ```python
        directory = UserDirectory(session)
        user = await directory.create("u1", "a@x.com", {"first_name": "Ada"})
        ```
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find(self, user_id: str) -> User | None:
        """Get a user by id, or None."""
        return await self.session.get(User, user_id)

    async def get(self, user_id: str) -> User:
        """Get a user by id.

        Raises:
            NotFoundError: If no such user exists
        """
        user = await self.find(user_id)
        if user is None:
            raise NotFoundError("User not found", user_id=user_id)
        return user

    async def find_by_email(self, email: str) -> User | None:
        """Get a user by email (case-insensitive), or None."""
        result = await self.session.execute(
            select(User).where(User.email == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def create(
        self,
        user_id: str,
        email: str,
        profile: dict[str, Any] | None = None,
    ) -> User:
        """Create the directory row for a freshly registered user.

        Missing profile fields default to empty strings.

        Raises:
            ValidationError: If user_id or email is empty
            ConflictError: If the id or the email is already taken
        """
        if not user_id:
            raise ValidationError("userId is required")
        if not email:
            raise ValidationError("email is required in userData")

        if await self.find(user_id) is not None:
            raise ConflictError(
                "A user with this id already exists",
                code="USER_ALREADY_EXISTS",
                user_id=user_id,
            )

        profile = profile or {}
        user = User(
            id=user_id,
            email=email.strip().lower(),
            **{field: profile.get(field) or "" for field in PROFILE_FIELDS},
        )
        self.session.add(user)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise ConflictError(
                "A user with this id or email already exists",
                code="USER_ALREADY_EXISTS",
                user_id=user_id,
            )

        logger.info(f"Directory row created for user {user_id}")
        return user

    async def update_profile(self, user_id: str, updates: dict[str, Any]) -> User:
        """Update the profile fields present in `updates`.

        Keys other than the profile fields are ignored.
        """
        user = await self.get(user_id)
        for field in PROFILE_FIELDS:
            if updates.get(field) is not None:
                setattr(user, field, updates[field])
        await self.session.commit()
        return user

    async def set_entitlement(
        self,
        user_id: str,
        is_premium: bool,
        premium_expires_at: datetime | None = None,
        stripe_customer_id: str | None = None,
        keep_expiry: bool = False,
    ) -> User:
        """Persist entitlement fields.

        With `keep_expiry` the stored expiry is left untouched (used by the
        lazy downgrade, which reports the old expiry date).
        """
        user = await self.get(user_id)
        user.is_premium = is_premium
        if not keep_expiry:
            user.premium_expires_at = premium_expires_at
        if stripe_customer_id:
            user.stripe_customer_id = stripe_customer_id
        await self.session.commit()
        return user

    async def delete(self, user_id: str) -> None:
        """Delete a user row and the user's favorites."""
        await self.session.execute(delete(Favorite).where(Favorite.user_id == user_id))
        await self.session.execute(delete(User).where(User.id == user_id))
        await self.session.commit()
        logger.info(f"Directory row deleted for user {user_id}")
