"""French commune search (geo.api.gouv.fr).

## Endpoint
- https://geo.api.gouv.fr/communes?nom=<query>&fields=nom,centre,codesPostaux&boost=population&limit=7

## Authentication
- None

## Response Format
```json
[
  {
    "nom": "Paris",
    "centre": {"type": "Point", "coordinates": [2.347, 48.8589]},
    "codesPostaux": ["75001", "75002"],
    "_score": 1.0
  }
]
```

`centre.coordinates` is GeoJSON, so longitude comes first.
"""

from __future__ import annotations

import logging
from typing import Any

from weather_portal.errors import NotFoundError
from weather_portal.models.location import Coordinates, Place
from weather_portal.providers.base import HTTPCollaborator, ProviderError

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2
MAX_RESULTS = 7


def _parse_commune(entry: dict[str, Any]) -> Place | None:
    name = entry.get("nom")
    if not name:
        return None

    coordinates = None
    centre = (entry.get("centre") or {}).get("coordinates")
    if centre and len(centre) >= 2:
        coordinates = Coordinates(latitude=centre[1], longitude=centre[0])

    return Place(
        name=name,
        postal_codes=list(entry.get("codesPostaux") or []),
        coordinates=coordinates,
    )


class PlaceSearch(HTTPCollaborator):
    """Autocomplete over French communes, most populated first.

    Example:
        ```python
        async with PlaceSearch() as places:
            matches = await places.search("Lyo")
        ```
    """

    name = "geo_api"

    def __init__(
        self,
        base_url: str = "https://geo.api.gouv.fr",
        user_agent: str | None = None,
        timeout: float = 30.0,
        transport=None,
    ):
        super().__init__(user_agent=user_agent, timeout=timeout, transport=transport)
        self.base_url = base_url.rstrip("/")

    async def search(self, query: str, limit: int = MAX_RESULTS) -> list[Place]:
        """Find communes whose name matches `query`.

        Queries shorter than 2 characters return no results without
        calling the API.
        """
        query = (query or "").strip()
        if len(query) < MIN_QUERY_LENGTH:
            return []

        response = await self._fetch(
            f"{self.base_url}/communes",
            params={
                "nom": query,
                "fields": "nom,centre,codesPostaux",
                "boost": "population",
                "limit": limit,
            },
        )

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(
                f"Failed to parse response: {e}",
                provider=self.name,
                status_code=response.status_code,
                response_body=response.text,
            )

        places = [place for place in map(_parse_commune, data or []) if place is not None]
        logger.debug(f"Place search {query!r} returned {len(places)} results")
        return places

    async def resolve(self, city: str) -> Place:
        """Resolve a city name to the best matching commune with coordinates.

        An exact (case-insensitive) name match wins over the top-ranked
        result.

        Raises:
            NotFoundError: If no commune with coordinates matches
        """
        candidates = [p for p in await self.search(city) if p.coordinates is not None]
        if not candidates:
            raise NotFoundError("City not found", city=city)

        wanted = city.strip().lower()
        for place in candidates:
            if place.name.lower() == wanted:
                return place
        return candidates[0]
