"""MET Norway weather provider.

## API Documentation Summary
Source: https://api.met.no/weatherapi/locationforecast/2.0/documentation

## Endpoint
- Base URL: https://api.met.no/weatherapi/locationforecast/2.0/
- Full URL example: https://api.met.no/weatherapi/locationforecast/2.0/compact?lat=48.8566&lon=2.3522

## Authentication
- No API key required
- MUST include User-Agent header with application identifier
- Prohibited/missing User-Agent returns 403 Forbidden

## Response Format (GeoJSON, trimmed)
```json
{
  "properties": {
    "meta": {"updated_at": "2024-01-01T12:00:00Z"},
    "timeseries": [
      {
        "time": "2024-01-01T12:00:00Z",
        "data": {
          "instant": {"details": {"air_temperature": 5.2, "wind_speed": 3.1}},
          "next_1_hours": {
            "summary": {"symbol_code": "cloudy"},
            "details": {"precipitation_amount": 0.0}
          },
          "next_6_hours": {...}
        }
      }
    ]
  }
}
```

## Variable Translation

| MET.no Field                  | HourlyForecast field |
|-------------------------------|----------------------|
| instant air_temperature       | temperature_c        |
| instant wind_speed            | wind_speed_ms        |
| instant relative_humidity     | humidity             |
| next_1h/6h precipitation_amount | precipitation_mm   |
| next_1h/6h symbol_code        | symbol_code, condition |
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from weather_portal.models.location import Place
from weather_portal.models.weather import Forecast, HourlyForecast, WeatherCondition
from weather_portal.providers.base import HTTPCollaborator, ProviderError

logger = logging.getLogger(__name__)


# Symbol code to WeatherCondition mapping
SYMBOL_TO_CONDITION: dict[str, WeatherCondition] = {
    "clearsky": WeatherCondition.CLEAR,
    "fair": WeatherCondition.PARTLY_CLOUDY,
    "partlycloudy": WeatherCondition.PARTLY_CLOUDY,
    "cloudy": WeatherCondition.CLOUDY,
    "fog": WeatherCondition.FOG,
    "lightrain": WeatherCondition.LIGHT_RAIN,
    "lightrainshowers": WeatherCondition.LIGHT_RAIN,
    "rain": WeatherCondition.RAIN,
    "rainshowers": WeatherCondition.RAIN,
    "heavyrain": WeatherCondition.HEAVY_RAIN,
    "heavyrainshowers": WeatherCondition.HEAVY_RAIN,
    "lightsleet": WeatherCondition.SLEET,
    "sleet": WeatherCondition.SLEET,
    "heavysleet": WeatherCondition.SLEET,
    "lightsnow": WeatherCondition.LIGHT_SNOW,
    "lightsnowshowers": WeatherCondition.LIGHT_SNOW,
    "snow": WeatherCondition.SNOW,
    "snowshowers": WeatherCondition.SNOW,
    "heavysnow": WeatherCondition.HEAVY_SNOW,
    "heavysnowshowers": WeatherCondition.HEAVY_SNOW,
    "rainandthunder": WeatherCondition.THUNDERSTORM,
    "lightrainandthunder": WeatherCondition.THUNDERSTORM,
    "heavyrainandthunder": WeatherCondition.THUNDERSTORM,
    "snowandthunder": WeatherCondition.THUNDERSTORM,
}


def parse_symbol_code(symbol_code: str | None) -> WeatherCondition:
    """Parse MET.no symbol code to WeatherCondition.

    Symbol codes may have suffixes like _day, _night, _polartwilight,
    which are ignored.
    """
    if not symbol_code:
        return WeatherCondition.UNKNOWN
    return SYMBOL_TO_CONDITION.get(symbol_code.split("_")[0], WeatherCondition.UNKNOWN)


def _parse_time(value: str | None) -> datetime | None:
    try:
        return datetime.fromisoformat((value or "").replace("Z", "+00:00"))
    except ValueError:
        return None


class MetNoForecastClient(HTTPCollaborator):
    """MET Norway Locationforecast 2.0 client.

    No API key is required, but a User-Agent identifying the application
    is mandatory.

    Example:
        ```python
        async with MetNoForecastClient(user_agent="my-app/1.0 contact@example.com") as metno:
            forecast = await metno.get_forecast(place)
        ```
    """

    name = "metno"
    base_url = "https://api.met.no/weatherapi/locationforecast/2.0"

    async def get_forecast(self, place: Place) -> Forecast:
        """Get the hourly forecast for a place.

        Raises:
            ValueError: If the place has no coordinates
            ProviderError: If the request fails
            RateLimitError: If MET.no throttles the client
        """
        if place.coordinates is None:
            raise ValueError(f"Place {place.name!r} has no coordinates")

        # MET.no requires max 4 decimal places
        params = {
            "lat": round(place.coordinates.latitude, 4),
            "lon": round(place.coordinates.longitude, 4),
        }
        response = await self._fetch(f"{self.base_url}/compact", params=params)

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(
                f"Failed to parse response: {e}",
                provider=self.name,
                status_code=response.status_code,
                response_body=response.text,
            )

        return self._translate_response(data, place)

    def _translate_response(self, response_data: dict[str, Any], place: Place) -> Forecast:
        properties = response_data.get("properties", {})
        meta = properties.get("meta", {})

        generated_at = _parse_time(meta.get("updated_at")) or datetime.now(timezone.utc)

        hourly: list[HourlyForecast] = []
        for entry in properties.get("timeseries", []):
            time = _parse_time(entry.get("time"))
            if time is None:
                continue

            data = entry.get("data", {})
            instant = data.get("instant", {}).get("details", {})

            # Prefer the 1-hour period, fall back to 6-hour further out
            next_1h = data.get("next_1_hours", {})
            next_6h = data.get("next_6_hours", {})
            summary = next_1h.get("summary", next_6h.get("summary", {}))
            details = next_1h.get("details", next_6h.get("details", {}))

            symbol_code = summary.get("symbol_code")
            hourly.append(
                HourlyForecast(
                    time=time,
                    condition=parse_symbol_code(symbol_code),
                    symbol_code=symbol_code,
                    temperature_c=instant.get("air_temperature", 0),
                    wind_speed_ms=instant.get("wind_speed"),
                    precipitation_mm=details.get("precipitation_amount"),
                    humidity=instant.get("relative_humidity"),
                )
            )

        logger.debug(f"MET.no returned {len(hourly)} time steps for {place.name}")
        return Forecast(
            place=place,
            generated_at=generated_at,
            provider=self.name,
            hourly=hourly,
        )
