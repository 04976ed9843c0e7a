"""Command-line interface for the weather portal."""

import argparse
import asyncio
import logging
import sys
from datetime import datetime
from zoneinfo import ZoneInfo

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(debug: bool = False) -> None:
    """Set the root log format and level."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def serve(args: argparse.Namespace) -> int:
    import uvicorn

    from weather_portal.api import create_app
    from weather_portal.config import get_settings

    settings = get_settings()
    configure_logging(settings.debug)
    uvicorn.run(
        create_app(settings),
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_config=None,
    )
    return 0


async def _init_db() -> None:
    from weather_portal.database.connection import close_db, create_tables, init_db

    await init_db()
    try:
        await create_tables()
    finally:
        await close_db()


def init_db(args: argparse.Namespace) -> int:
    configure_logging()
    asyncio.run(_init_db())
    return 0


async def _forecast(city: str, timezone: str) -> int:
    from weather_portal.carousel import build_week
    from weather_portal.errors import PortalError
    from weather_portal.providers import MetNoForecastClient, PlaceSearch

    tz = ZoneInfo(timezone)
    try:
        async with PlaceSearch() as places, MetNoForecastClient() as metno:
            place = await places.resolve(city)
            week = build_week(await metno.get_forecast(place), datetime.now(tz).date(), tz)
    except PortalError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    print(place.display_name())
    for day in week.days:
        slots = []
        for slot in (day.morning, day.afternoon, day.evening):
            slots.append(f"{slot.temperature_c:5.1f}°C {slot.condition.value:<14}" if slot else "-".ljust(22))
        print(f"{day.label:<10} {day.date.isoformat()}  " + "  ".join(slots))
    return 0


def forecast(args: argparse.Namespace) -> int:
    configure_logging(args.debug)
    return asyncio.run(_forecast(args.city, args.timezone))


def main() -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Weather Portal - forecasts, favorites and premium accounts"
    )
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 0.1.0",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", help="Bind address (default: HOST setting)")
    serve_parser.add_argument("--port", type=int, help="Port (default: PORT setting)")
    serve_parser.set_defaults(handler=serve)

    # Init-db command
    initdb_parser = subparsers.add_parser(
        "init-db", help="Create the database tables"
    )
    initdb_parser.set_defaults(handler=init_db)

    # Forecast command
    forecast_parser = subparsers.add_parser(
        "forecast", help="Print the 7-day forecast for a French city"
    )
    forecast_parser.add_argument("city", help="City name, e.g. 'Lyon'")
    forecast_parser.add_argument(
        "--timezone",
        default="Europe/Paris",
        help="Time zone of the morning/afternoon/evening slots",
    )
    forecast_parser.add_argument("--debug", action="store_true", help="Verbose logging")
    forecast_parser.set_defaults(handler=forecast)

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return 0

    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())
