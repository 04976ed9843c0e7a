"""Pytest fixtures for weather portal tests.

This module provides test fixtures that ensure:
1. No external API calls are made (identity provider, Stripe, weather APIs)
2. No real database connections: every test gets a fresh in-memory SQLite
3. Isolated test environment with controlled configuration
"""

import os
from datetime import datetime, timedelta, timezone

import pytest

# Set test environment BEFORE importing application modules
# This ensures no real services are contacted during test collection
os.environ.setdefault("SECRET_KEY", "test-secret-key-at-least-32-characters-long")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("DEMO_LATENCY_SECONDS", "0")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_dummy")
os.environ.pop("SUPABASE_URL", None)
os.environ.pop("SUPABASE_ANON_KEY", None)

import httpx
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from weather_portal.config import Settings, get_settings
from weather_portal.database.connection import close_db, get_db, init_db
from weather_portal.database.models import Base, User
from weather_portal.models.location import Coordinates, Place
from weather_portal.models.weather import Forecast, HourlyForecast, WeatherCondition

TEST_SECRET = "test-secret-key-at-least-32-characters-long"


# =============================================================================
# Test Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Reset settings cache before each test to ensure clean state."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    """Settings for a demo-mode app with payments configured."""
    return Settings(
        secret_key=TEST_SECRET,
        database_url="sqlite+aiosqlite:///:memory:",
        demo_latency_seconds=0,
        stripe_secret_key="sk_test_dummy",
        supabase_url=None,
        supabase_anon_key=None,
    )


def _memory_engine():
    return create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )


@pytest.fixture
async def engine():
    """In-memory database with all tables, registered as the app database."""
    engine = _memory_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    await init_db(engine)
    yield engine
    await close_db()


@pytest.fixture
async def empty_engine():
    """In-memory database without any table (schema not provisioned)."""
    engine = _memory_engine()
    await init_db(engine)
    yield engine
    await close_db()


@pytest.fixture
async def db_session(engine):
    async with get_db() as session:
        yield session


@pytest.fixture
async def user(db_session) -> User:
    """A free user in the directory."""
    user = User(
        id="u1",
        email="ada@example.com",
        first_name="Ada",
        last_name="Lovelace",
        phone="0123456789",
        locality="Paris",
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# HTTP Fixtures
# =============================================================================


@pytest.fixture
def app(engine, settings):
    from weather_portal.api import create_app

    return create_app(settings)


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# =============================================================================
# Weather Fixtures
# =============================================================================


@pytest.fixture
def paris() -> Place:
    return Place(
        name="Paris",
        postal_codes=["75001"],
        coordinates=Coordinates(latitude=48.8589, longitude=2.347),
    )


@pytest.fixture
def sample_forecast(paris: Place) -> Forecast:
    """Three-hourly forecast over 5 days starting 2025-03-10 00:00 UTC."""
    base_time = datetime(2025, 3, 10, 0, 0, tzinfo=timezone.utc)
    hourly = [
        HourlyForecast(
            time=base_time + timedelta(hours=3 * i),
            condition=WeatherCondition.CLEAR if i % 2 else WeatherCondition.CLOUDY,
            symbol_code="clearsky_day" if i % 2 else "cloudy",
            temperature_c=10.0 + i * 0.5,
            wind_speed_ms=3.0,
            precipitation_mm=0.0,
            humidity=60.0,
        )
        for i in range(40)
    ]
    return Forecast(
        place=paris,
        generated_at=base_time,
        provider="test",
        hourly=hourly,
    )
