"""Domain and request models for the weather portal."""

from weather_portal.models.location import Coordinates, Place
from weather_portal.models.weather import (
    WeatherCondition,
    HourlyForecast,
    Forecast,
    DayForecast,
    WeekForecast,
)
from weather_portal.models.account import (
    RegisterRequest,
    LoginRequest,
    ProfileUpdateRequest,
    ChangePasswordRequest,
    CreateUserRequest,
    FavoriteCreateRequest,
    FavoriteDeleteRequest,
    CheckoutRequest,
    is_valid_email,
)

__all__ = [
    # Location
    "Coordinates",
    "Place",
    # Weather
    "WeatherCondition",
    "HourlyForecast",
    "Forecast",
    "DayForecast",
    "WeekForecast",
    # Requests
    "RegisterRequest",
    "LoginRequest",
    "ProfileUpdateRequest",
    "ChangePasswordRequest",
    "CreateUserRequest",
    "FavoriteCreateRequest",
    "FavoriteDeleteRequest",
    "CheckoutRequest",
    "is_valid_email",
]
