"""FastAPI application factory.

Creates and configures the FastAPI application with all routes, error
handlers and collaborators.

## Usage

```python
from weather_portal.api import create_app

app = create_app()

# Run with uvicorn
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
```

## Collaborators

Built once per application and kept on `app.state`:

- `auth`: auth facade (live or demo backend)
- `payments`: Stripe Checkout client
- `places` / `forecasts`: commune search and MET Norway clients
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from weather_portal.auth.facade import build_auth_facade
from weather_portal.config import Settings, get_settings
from weather_portal.database.connection import close_db, init_db
from weather_portal.errors import PortalError
from weather_portal.payments import StripeProcessor
from weather_portal.providers import MetNoForecastClient, PlaceSearch

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Opens the database on startup; closes HTTP clients and the database on
    shutdown.
    """
    settings: Settings = app.state.settings

    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    await init_db()

    yield

    logger.info("Shutting down")
    await app.state.auth.aclose()
    await app.state.places.aclose()
    await app.state.forecasts.aclose()
    await close_db()


async def portal_error_handler(request: Request, exc: PortalError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg", ""),
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "details": details},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use (defaults to the cached environment settings)

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Weather forecasts, favorites and premium accounts",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.auth = build_auth_facade(settings)
    app.state.payments = StripeProcessor(settings)
    app.state.places = PlaceSearch(
        base_url=settings.geo_api_url,
        user_agent=settings.metno_user_agent,
        timeout=settings.http_timeout_seconds,
    )
    app.state.forecasts = MetNoForecastClient(
        user_agent=settings.metno_user_agent,
        timeout=settings.http_timeout_seconds,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
        allow_headers=["*"],
    )

    app.add_exception_handler(PortalError, portal_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Include routers
    from weather_portal.api.routes import auth, checkout, favorites, users, weather

    app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
    app.include_router(users.router, prefix="/users", tags=["Users"])
    app.include_router(favorites.router, prefix="/favorites", tags=["Favorites"])
    app.include_router(checkout.router, prefix="/checkout-sessions", tags=["Payments"])
    app.include_router(weather.router, prefix="/weather", tags=["Weather"])

    # Health check endpoint
    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": settings.app_version,
            "auth_mode": app.state.auth.mode,
            "payments_configured": settings.payments_configured,
        }

    return app
