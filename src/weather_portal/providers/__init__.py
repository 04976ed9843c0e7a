"""HTTP collaborators for place search and weather forecasts.

## Available Providers

| Provider | Purpose             | Auth                | Coverage |
|----------|---------------------|---------------------|----------|
| geo_api  | Commune autocomplete | None               | France   |
| metno    | Hourly forecast     | User-Agent required | Global   |

The identity provider client (`weather_portal.auth.live`) shares the same
base class.
"""

from weather_portal.providers.base import (
    HTTPCollaborator,
    ProviderError,
    RateLimitError,
)
from weather_portal.providers.metno import MetNoForecastClient
from weather_portal.providers.places import PlaceSearch

__all__ = [
    "HTTPCollaborator",
    "ProviderError",
    "RateLimitError",
    "MetNoForecastClient",
    "PlaceSearch",
]
