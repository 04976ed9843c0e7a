"""Seven-day forecast carousel.

Groups an hourly forecast into one card per day, each with a morning,
afternoon and evening slot. A slot is the forecast entry whose local hour
is closest to the slot's target hour; on ties the earliest entry wins.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, timedelta, tzinfo
from zoneinfo import ZoneInfo

from weather_portal.models.weather import DayForecast, Forecast, HourlyForecast, WeekForecast

DAYS_SHOWN = 7

# Target local hours for each slot
SLOT_HOURS = {
    "morning": 9,
    "afternoon": 15,
    "evening": 21,
}

WEEKDAY_LABELS = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)


def rotate(index: int, step: int, length: int) -> int:
    """Move `step` cards from `index`, wrapping around at both ends."""
    if length <= 0:
        raise ValueError("Carousel length must be positive")
    return (index + step) % length


def closest_to_hour(
    entries: list[tuple[datetime, HourlyForecast]],
    hour: int,
) -> HourlyForecast | None:
    best: tuple[datetime, HourlyForecast] | None = None
    for local_time, entry in entries:
        if best is None or abs(local_time.hour - hour) < abs(best[0].hour - hour):
            best = (local_time, entry)
    return best[1] if best else None


def build_week(
    forecast: Forecast,
    today: date,
    tz: tzinfo | str = "Europe/Paris",
) -> WeekForecast:
    """Build the 7 carousel cards starting at `today`.

    Args:
        forecast: Hourly forecast (any order)
        today: First day shown, in the local calendar
        tz: Time zone the slot hours refer to

    Returns:
        Exactly 7 days; days beyond the forecast horizon have empty slots
    """
    if isinstance(tz, str):
        tz = ZoneInfo(tz)

    by_day: dict[date, list[tuple[datetime, HourlyForecast]]] = defaultdict(list)
    for entry in sorted(forecast.hourly, key=lambda h: h.time):
        local_time = entry.time.astimezone(tz)
        by_day[local_time.date()].append((local_time, entry))

    days = []
    for offset in range(DAYS_SHOWN):
        day = today + timedelta(days=offset)
        entries = by_day.get(day, [])
        days.append(
            DayForecast(
                date=day,
                label=WEEKDAY_LABELS[day.weekday()],
                **{slot: closest_to_hour(entries, hour) for slot, hour in SLOT_HOURS.items()},
            )
        )

    return WeekForecast(place=forecast.place, generated_at=forecast.generated_at, days=days)
