"""FastAPI dependencies for authentication.

The access token is read from the `Authorization: Bearer ...` header, or
from the session cookie set at login.

## Usage

```python
from fastapi import Depends
from weather_portal.auth import AuthSession, get_current_session

@router.get("/profile")
async def get_profile(session: AuthSession = Depends(get_current_session)):
    return session.user.to_dict()
```
"""

from __future__ import annotations

import logging

from fastapi import Depends, Request

from weather_portal.auth.base import AuthSession
from weather_portal.auth.facade import AuthFacade
from weather_portal.errors import AuthenticationError

logger = logging.getLogger(__name__)


def get_auth_facade(request: Request) -> AuthFacade:
    """Return the facade built at application startup."""
    return request.app.state.auth


def get_access_token(request: Request) -> str | None:
    """Extract the access token from the request, if any."""
    authorization = request.headers.get("Authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()

    cookie_name = request.app.state.settings.session_cookie_name
    return request.cookies.get(cookie_name) or None


async def get_current_session_optional(
    token: str | None = Depends(get_access_token),
    auth: AuthFacade = Depends(get_auth_facade),
) -> AuthSession | None:
    """Get the current session if signed in, or None."""
    if token is None:
        return None
    return await auth.get_session(token)


async def get_current_session(
    session: AuthSession | None = Depends(get_current_session_optional),
) -> AuthSession:
    """Get the current session.

    Raises:
        AuthenticationError: If no valid session accompanies the request
    """
    if session is None:
        raise AuthenticationError("Not authenticated")
    return session
