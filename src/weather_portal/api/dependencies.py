"""FastAPI dependencies wiring services to the request's database session."""

from __future__ import annotations

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from weather_portal.config import Settings
from weather_portal.database.connection import get_db_session
from weather_portal.directory import UserDirectory
from weather_portal.entitlements import EntitlementResolver
from weather_portal.favorites import FavoritesStore
from weather_portal.payments import PaymentReconciler, StripeProcessor
from weather_portal.providers import MetNoForecastClient, PlaceSearch


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_payment_processor(request: Request) -> StripeProcessor:
    return request.app.state.payments


def get_place_search(request: Request) -> PlaceSearch:
    return request.app.state.places


def get_forecast_client(request: Request) -> MetNoForecastClient:
    return request.app.state.forecasts


def get_directory(db: AsyncSession = Depends(get_db_session)) -> UserDirectory:
    return UserDirectory(db)


def get_entitlements(
    directory: UserDirectory = Depends(get_directory),
    settings: Settings = Depends(get_app_settings),
) -> EntitlementResolver:
    return EntitlementResolver(directory, premium_days=settings.premium_duration_days)


def get_favorites_store(
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
) -> FavoritesStore:
    return FavoritesStore(db, quota=settings.favorites_quota)


def get_reconciler(
    processor: StripeProcessor = Depends(get_payment_processor),
    directory: UserDirectory = Depends(get_directory),
    resolver: EntitlementResolver = Depends(get_entitlements),
) -> PaymentReconciler:
    return PaymentReconciler(processor, directory, resolver)
