"""Favorite places routes.

- GET /favorites?userId= - List favorites, most recent first
- POST /favorites - Add a favorite (quota for free users)
- DELETE /favorites - Remove a favorite by id, or by place name

Every method answers 503 with `needs_setup` while the favorites table has
not been created.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime

from fastapi import APIRouter, Body, Depends, Request, status
from pydantic import BaseModel

from weather_portal.api.dependencies import get_entitlements, get_favorites_store
from weather_portal.database.models import Favorite
from weather_portal.entitlements import EntitlementResolver, as_utc
from weather_portal.errors import MethodNotAllowedError, NotFoundError, ValidationError
from weather_portal.favorites import FavoritesStore
from weather_portal.models.account import FavoriteCreateRequest, FavoriteDeleteRequest

logger = logging.getLogger(__name__)

router = APIRouter()

ALLOWED_METHODS = ["GET", "POST", "DELETE"]


class FavoriteResponse(BaseModel):
    id: uuid.UUID
    user_id: str | None
    place: str
    created_at: datetime | None

    @classmethod
    def from_favorite(cls, favorite: Favorite) -> FavoriteResponse:
        return cls(
            id=favorite.id,
            user_id=favorite.user_id,
            place=favorite.place,
            created_at=as_utc(favorite.created_at),
        )


class FavoriteListResponse(BaseModel):
    data: list[FavoriteResponse]


class FavoriteChangeResponse(BaseModel):
    data: FavoriteResponse
    message: str


async def _has_unlimited_favorites(resolver: EntitlementResolver, user_id: str) -> bool:
    """Premium users are not limited; users without a directory row are free."""
    try:
        return (await resolver.get_status(user_id)).is_premium
    except NotFoundError:
        return False


@router.get("", response_model=FavoriteListResponse)
async def list_favorites(
    userId: str | None = None,
    store: FavoritesStore = Depends(get_favorites_store),
) -> FavoriteListResponse:
    """List favorites. Without userId every favorite is listed."""
    await store.ensure_provisioned()
    favorites = await store.list(userId)
    return FavoriteListResponse(data=[FavoriteResponse.from_favorite(f) for f in favorites])


@router.post("", response_model=FavoriteChangeResponse, status_code=status.HTTP_201_CREATED)
async def add_favorite(
    payload: FavoriteCreateRequest,
    store: FavoritesStore = Depends(get_favorites_store),
    resolver: EntitlementResolver = Depends(get_entitlements),
) -> FavoriteChangeResponse:
    """Add a place to a user's favorites."""
    await store.ensure_provisioned()

    if not payload.place or not payload.place.strip():
        raise ValidationError("place is required")

    unlimited = False
    if payload.user_id:
        unlimited = await _has_unlimited_favorites(resolver, payload.user_id)

    favorite = await store.add(payload.user_id, payload.place, unlimited=unlimited)
    return FavoriteChangeResponse(
        data=FavoriteResponse.from_favorite(favorite),
        message=f"{favorite.place} added to favorites",
    )


@router.delete("", response_model=FavoriteChangeResponse)
async def remove_favorite(
    payload: FavoriteDeleteRequest | None = Body(default=None),
    store: FavoritesStore = Depends(get_favorites_store),
) -> FavoriteChangeResponse:
    """Remove a favorite by id, or by place name (scoped to userId if given)."""
    await store.ensure_provisioned()

    payload = payload or FavoriteDeleteRequest()
    favorite = await store.remove(
        user_id=payload.user_id,
        place=payload.place,
        favorite_id=payload.id,
    )
    return FavoriteChangeResponse(
        data=FavoriteResponse.from_favorite(favorite),
        message=f"{favorite.place} removed from favorites",
    )


@router.api_route("", methods=["PUT", "PATCH"], include_in_schema=False)
async def unsupported_method(request: Request) -> None:
    raise MethodNotAllowedError(request.method, ALLOWED_METHODS)
