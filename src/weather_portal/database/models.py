"""Database models for the weather portal.

## Schema Overview

```
users           - profile + entitlement, keyed by the identity provider id
favorites       - place names per user (no FK: demo users have no row)
```

User ids are issued by the identity provider (a UUID string for the live
provider, `demo-user-...` in demo mode), so they are stored as strings.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    DateTime,
    Index,
    String,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all database models."""


class User(Base):
    """User directory entry.

    Created when a live registration succeeds. Profile fields belong to the
    user; the premium fields are only written by payment reconciliation and
    by the lazy expiry check.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)

    # Profile
    last_name: Mapped[str] = mapped_column(String(128), default="")
    first_name: Mapped[str] = mapped_column(String(128), default="")
    phone: Mapped[str] = mapped_column(String(32), default="")
    locality: Mapped[str] = mapped_column(String(128), default="")

    # Entitlement
    is_premium: Mapped[bool] = mapped_column(Boolean, default=False)
    premium_expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    stripe_customer_id: Mapped[str | None] = mapped_column(String(255))

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )

    def __repr__(self) -> str:
        return f"<User {self.email}>"


class Favorite(Base):
    """A favorite place of a user.

    `place_key` is the lower-cased place name; the unique constraint on it
    makes duplicates case-insensitive at the storage level too.
    """

    __tablename__ = "favorites"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str | None] = mapped_column(String(255))
    place: Mapped[str] = mapped_column(String(255), nullable=False)
    place_key: Mapped[str] = mapped_column(String(255), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("user_id", "place_key", name="uq_favorite_user_place"),
        Index("ix_favorites_user", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<Favorite {self.place} user_id={self.user_id}>"
