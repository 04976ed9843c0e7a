"""Premium entitlement lifecycle.

Premium is a one-time purchase that lasts a fixed number of days. There is
no background job: expiry is applied lazily when the status is read.

```
free --activate()--> premium --(expiry passes, next get_status())--> free
```
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError

from weather_portal.directory import UserDirectory

logger = logging.getLogger(__name__)

DEFAULT_PREMIUM_DAYS = 30

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (SQLite drops the offset)."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass
class EntitlementStatus:
    """Current premium status of a user."""

    is_premium: bool
    premium_expires_at: datetime | None


class EntitlementResolver:
    """Reads and changes the premium status stored in the user directory.

    Args:
        directory: User directory bound to the current session
        clock: Returns the current aware UTC time
        premium_days: How long an activation lasts
    """

    def __init__(
        self,
        directory: UserDirectory,
        clock: Clock = utc_now,
        premium_days: int = DEFAULT_PREMIUM_DAYS,
    ):
        self.directory = directory
        self.clock = clock
        self.premium_days = premium_days

    async def get_status(self, user_id: str) -> EntitlementStatus:
        """Get the premium status, downgrading an expired premium.

        Raises:
            NotFoundError: If the user does not exist
        """
        user = await self.directory.get(user_id)
        is_premium = bool(user.is_premium)
        expires_at = as_utc(user.premium_expires_at)

        if is_premium and expires_at is not None and self.clock() > expires_at:
            logger.info(f"Premium expired for user {user_id} at {expires_at.isoformat()}")
            try:
                await self.directory.set_entitlement(user_id, False, keep_expiry=True)
            except SQLAlchemyError:
                # The caller still sees the expired status; next read retries
                logger.exception(f"Failed to persist premium expiry for user {user_id}")
                await self.directory.session.rollback()
            is_premium = False

        return EntitlementStatus(is_premium=is_premium, premium_expires_at=expires_at)

    async def activate(
        self,
        user_id: str,
        stripe_customer_id: str | None = None,
    ) -> EntitlementStatus:
        """Grant premium for `premium_days` starting now.

        Raises:
            NotFoundError: If the user does not exist
            SQLAlchemyError: If the change cannot be persisted
        """
        expires_at = self.clock() + timedelta(days=self.premium_days)
        await self.directory.set_entitlement(
            user_id,
            True,
            premium_expires_at=expires_at,
            stripe_customer_id=stripe_customer_id,
        )
        logger.info(f"Premium activated for user {user_id} until {expires_at.isoformat()}")
        return EntitlementStatus(is_premium=True, premium_expires_at=expires_at)
