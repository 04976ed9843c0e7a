"""Favorite places per user.

Free users may keep up to `quota` favorites (3 by default); premium users
are not limited. Place names are unique per user, ignoring case.

## Concurrency

The count check and the insert run in one transaction that first locks
the owner's `users` row (`SELECT ... FOR UPDATE`), so two concurrent adds
for the same user are serialized on PostgreSQL. The unique constraint on
(user_id, place_key) catches concurrent duplicates.
"""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from weather_portal.database.connection import table_exists
from weather_portal.database.models import Favorite, User
from weather_portal.errors import (
    DuplicateFavoriteError,
    NotFoundError,
    QuotaExceededError,
    StoreNotProvisionedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

DEFAULT_QUOTA = 3


def _place_key(place: str) -> str:
    return place.strip().lower()


class FavoritesStore:
    """Repository over the `favorites` table.

    Example:
        ```python
        store = FavoritesStore(session)
        await store.add("u1", "Paris")
        favorites = await store.list("u1")
        ```
    """

    def __init__(self, session: AsyncSession, quota: int = DEFAULT_QUOTA):
        self.session = session
        self.quota = quota

    async def ensure_provisioned(self) -> None:
        """Raise StoreNotProvisionedError if the favorites table is missing."""
        connection = await self.session.connection()
        if not await table_exists(connection, Favorite.__tablename__):
            logger.warning("Favorites table does not exist")
            raise StoreNotProvisionedError(Favorite.__tablename__)

    async def list(self, user_id: str | None = None) -> list[Favorite]:
        """List favorites, most recent first.

        Without a user id every favorite is returned.
        """
        query = select(Favorite).order_by(Favorite.created_at.desc())
        if user_id:
            query = query.where(Favorite.user_id == user_id)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count(self, user_id: str) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(Favorite).where(Favorite.user_id == user_id)
        )
        return result.scalar_one()

    async def contains(self, user_id: str, place: str) -> bool:
        """Check if a place is among the user's favorites (ignoring case)."""
        result = await self.session.execute(
            select(Favorite.id).where(
                Favorite.user_id == user_id,
                Favorite.place_key == _place_key(place),
            )
        )
        return result.first() is not None

    async def add(
        self,
        user_id: str | None,
        place: str,
        unlimited: bool = False,
    ) -> Favorite:
        """Add a place to the user's favorites.

        Args:
            user_id: Owner (None stores an anonymous favorite, no quota)
            place: Place name, trimmed before storing
            unlimited: Skip the quota check (premium users)

        Raises:
            ValidationError: If the place name is blank
            QuotaExceededError: If the user already has `quota` favorites
            DuplicateFavoriteError: If the place is already a favorite
        """
        place = (place or "").strip()
        if not place:
            raise ValidationError("place is required")

        if user_id:
            # Serialize concurrent adds for this user (no-op on SQLite)
            await self.session.execute(
                select(User.id).where(User.id == user_id).with_for_update()
            )

            existing = await self.session.execute(
                select(Favorite.place_key).where(Favorite.user_id == user_id)
            )
            keys = [row[0] for row in existing]

            if _place_key(place) in keys:
                await self.session.rollback()
                raise DuplicateFavoriteError(place)

            if not unlimited and len(keys) >= self.quota:
                await self.session.rollback()
                logger.info(f"Favorites quota reached for user {user_id}")
                raise QuotaExceededError(len(keys), self.quota)

        favorite = Favorite(
            id=uuid.uuid4(),
            user_id=user_id,
            place=place,
            place_key=_place_key(place),
        )
        self.session.add(favorite)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise DuplicateFavoriteError(place)

        logger.info(f"Favorite {place!r} added for user {user_id}")
        return favorite

    async def remove(
        self,
        user_id: str | None = None,
        place: str | None = None,
        favorite_id: uuid.UUID | None = None,
    ) -> Favorite:
        """Remove one favorite, by id or else by exact place name.

        The place-name match is scoped to `user_id` when one is given.

        Raises:
            ValidationError: If neither a place nor an id is given
            NotFoundError: If nothing matched
        """
        if favorite_id is None and not place:
            raise ValidationError("place or id is required to delete a favorite")

        query = select(Favorite)
        if favorite_id is not None:
            query = query.where(Favorite.id == favorite_id)
        else:
            query = query.where(Favorite.place == place)
            if user_id:
                query = query.where(Favorite.user_id == user_id)

        result = await self.session.execute(query.limit(1))
        favorite = result.scalar_one_or_none()
        if favorite is None:
            raise NotFoundError("Favorite not found")

        await self.session.delete(favorite)
        await self.session.commit()

        logger.info(f"Favorite {favorite.place!r} removed for user {favorite.user_id}")
        return favorite
