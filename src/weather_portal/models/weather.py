"""Weather and forecast models."""

from __future__ import annotations

import datetime as dt
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from weather_portal.models.location import Place


class WeatherCondition(str, Enum):
    """General weather condition categories."""

    CLEAR = "clear"
    PARTLY_CLOUDY = "partly_cloudy"
    CLOUDY = "cloudy"
    FOG = "fog"
    LIGHT_RAIN = "light_rain"
    RAIN = "rain"
    HEAVY_RAIN = "heavy_rain"
    THUNDERSTORM = "thunderstorm"
    SNOW = "snow"
    LIGHT_SNOW = "light_snow"
    HEAVY_SNOW = "heavy_snow"
    SLEET = "sleet"
    UNKNOWN = "unknown"


class HourlyForecast(BaseModel):
    """Weather for one forecast time step."""

    time: datetime
    condition: WeatherCondition = WeatherCondition.UNKNOWN
    symbol_code: str | None = Field(
        default=None, description="Provider icon code, e.g. 'partlycloudy_day'"
    )
    temperature_c: float
    wind_speed_ms: float | None = Field(default=None, ge=0)
    precipitation_mm: float | None = Field(default=None, ge=0)
    humidity: float | None = Field(default=None, ge=0, le=100)


class Forecast(BaseModel):
    """Hourly forecast for a place, ordered by time."""

    place: Place
    generated_at: datetime
    provider: str
    hourly: list[HourlyForecast] = Field(default_factory=list)


class DayForecast(BaseModel):
    """One carousel card: a day split into three slots.

    A slot is None when the forecast has no entry for that day.
    """

    date: dt.date
    label: str = Field(..., description="Weekday name, e.g. 'Monday'")
    morning: HourlyForecast | None = None
    afternoon: HourlyForecast | None = None
    evening: HourlyForecast | None = None


class WeekForecast(BaseModel):
    """Seven consecutive days starting today."""

    place: Place
    generated_at: datetime
    days: list[DayForecast] = Field(..., min_length=7, max_length=7)
