"""Location models for the weather portal."""

from __future__ import annotations

import re
from typing import Self

from pydantic import BaseModel, Field


# Regex for parsing lat/long coordinates: "latitude,longitude"
COORDINATE_PATTERN = re.compile(
    r"^(?P<lat>[-+]?\d*\.?\d+)\s*,\s*(?P<lon>[-+]?\d*\.?\d+)$"
)


class Coordinates(BaseModel):
    """Geographic coordinates (latitude/longitude) in decimal degrees."""

    latitude: float = Field(..., ge=-90, le=90, description="Latitude in decimal degrees")
    longitude: float = Field(..., ge=-180, le=180, description="Longitude in decimal degrees")

    @classmethod
    def from_string(cls, value: str) -> Self:
        """Parse coordinates from string format 'latitude,longitude'.

        Examples:
            '48.8566,2.3522' -> Paris
            '45.764,4.8357' -> Lyon
        """
        match = COORDINATE_PATTERN.match(value.strip())
        if not match:
            raise ValueError(
                f"Invalid coordinate format: '{value}'. "
                "Expected format: 'latitude,longitude' (e.g., '48.8566,2.3522')"
            )
        return cls(
            latitude=float(match.group("lat")),
            longitude=float(match.group("lon")),
        )

    def __str__(self) -> str:
        return f"{self.latitude},{self.longitude}"


class Place(BaseModel):
    """A searchable place (a French commune)."""

    name: str = Field(..., min_length=1, description="Commune name, e.g. 'Paris'")
    postal_codes: list[str] = Field(default_factory=list)
    coordinates: Coordinates | None = Field(
        default=None, description="Commune centre, when the search returned it"
    )

    def display_name(self) -> str:
        if self.postal_codes:
            return f"{self.name} ({self.postal_codes[0]})"
        return self.name
