"""Weather routes.

- GET /weather/places?q= - Commune autocomplete (up to 7 results)
- GET /weather/forecast?city= - 7-day carousel for a city
"""

from __future__ import annotations

import logging
from datetime import datetime
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from weather_portal.api.dependencies import (
    get_app_settings,
    get_forecast_client,
    get_place_search,
)
from weather_portal.carousel import build_week
from weather_portal.config import Settings
from weather_portal.errors import ValidationError
from weather_portal.models.location import Place
from weather_portal.models.weather import WeekForecast
from weather_portal.providers import MetNoForecastClient, PlaceSearch

logger = logging.getLogger(__name__)

router = APIRouter()


class PlaceListResponse(BaseModel):
    data: list[Place]


@router.get("/places", response_model=PlaceListResponse)
async def search_places(
    q: str = "",
    places: PlaceSearch = Depends(get_place_search),
) -> PlaceListResponse:
    """Autocomplete commune names. Fewer than 2 characters yields nothing."""
    return PlaceListResponse(data=await places.search(q))


@router.get("/forecast", response_model=WeekForecast)
async def get_forecast(
    city: str = "",
    places: PlaceSearch = Depends(get_place_search),
    forecasts: MetNoForecastClient = Depends(get_forecast_client),
    settings: Settings = Depends(get_app_settings),
) -> WeekForecast:
    """Get the 7-day morning/afternoon/evening forecast for a city."""
    if not city.strip():
        raise ValidationError("city is required")

    place = await places.resolve(city)
    forecast = await forecasts.get_forecast(place)

    tz = ZoneInfo(settings.forecast_timezone)
    return build_week(forecast, today=datetime.now(tz).date(), tz=tz)
