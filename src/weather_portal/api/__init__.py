"""FastAPI application and routes.

## API Structure

- /auth - Registration, login and account management (live or demo)
- /users - User directory rows and premium status
- /favorites - Favorite places (3 for free users)
- /checkout-sessions - Premium purchase and payment confirmation
- /weather - Commune search and 7-day forecast
- /health - Liveness and auth mode

## Authentication

Account endpoints take the access token from an `Authorization: Bearer`
header or from the session cookie set at login.
"""

from weather_portal.api.app import create_app

__all__ = ["create_app"]
