"""Authentication routes.

All routes go through the auth facade, so they behave the same in live
and demo mode.

1. POST /auth/register - Create an account
2. POST /auth/login - Sign in, returns the session and sets the cookie
3. POST /auth/logout - End the session, clears the cookie
4. GET /auth/session - Current session, if any
5. PATCH /auth/profile - Update profile fields
6. POST /auth/password - Change password
7. DELETE /auth/account - Delete the account
8. GET /auth/mode - "live" or "demo"

## Session Management

The access token is returned in the login response and also stored in an
HTTP-only cookie. Either the cookie or an `Authorization: Bearer` header
authenticates later requests.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from weather_portal.api.dependencies import get_app_settings
from weather_portal.auth.base import AuthSession
from weather_portal.auth.dependencies import (
    get_access_token,
    get_auth_facade,
    get_current_session,
    get_current_session_optional,
)
from weather_portal.auth.facade import AuthFacade
from weather_portal.config import Settings
from weather_portal.models.account import (
    ChangePasswordRequest,
    LoginRequest,
    ProfileUpdateRequest,
    RegisterRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class AuthStatusResponse(BaseModel):
    """Authentication status response."""

    authenticated: bool
    mode: str
    session: dict[str, Any] | None = None


def _set_session_cookie(response: Response, session: AuthSession, settings: Settings) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=session.access_token,
        max_age=settings.session_max_age_seconds,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    auth: AuthFacade = Depends(get_auth_facade),
) -> dict:
    """Create an account. The user must sign in afterwards."""
    user = await auth.register(payload.email, payload.password, payload.profile())
    return {
        "user": user.to_dict(),
        "mode": auth.mode,
        "message": "Registration successful",
    }


@router.post("/login")
async def login(
    payload: LoginRequest,
    response: Response,
    auth: AuthFacade = Depends(get_auth_facade),
    settings: Settings = Depends(get_app_settings),
) -> dict:
    """Sign in with email and password."""
    session = await auth.login(payload.email, payload.password)
    _set_session_cookie(response, session, settings)

    logger.info(f"User {session.user.id} signed in ({auth.mode} mode)")
    return {"session": session.to_dict(), "mode": auth.mode}


@router.post("/logout")
async def logout(
    response: Response,
    token: str | None = Depends(get_access_token),
    auth: AuthFacade = Depends(get_auth_facade),
    settings: Settings = Depends(get_app_settings),
) -> dict:
    """End the current session. Succeeds even without one."""
    if token:
        await auth.logout(token)
    response.delete_cookie(key=settings.session_cookie_name)
    return {"status": "logged_out"}


@router.get("/session", response_model=AuthStatusResponse)
async def get_session(
    session: AuthSession | None = Depends(get_current_session_optional),
    auth: AuthFacade = Depends(get_auth_facade),
) -> AuthStatusResponse:
    """Get the current session, if signed in."""
    return AuthStatusResponse(
        authenticated=session is not None,
        mode=auth.mode,
        session=session.to_dict() if session else None,
    )


@router.patch("/profile")
async def update_profile(
    payload: ProfileUpdateRequest,
    session: AuthSession = Depends(get_current_session),
    auth: AuthFacade = Depends(get_auth_facade),
) -> dict:
    """Update the signed-in user's profile."""
    user = await auth.update_profile(session.access_token, payload.profile())
    return {"user": user.to_dict(), "message": "Profile updated"}


@router.post("/password")
async def change_password(
    payload: ChangePasswordRequest,
    session: AuthSession = Depends(get_current_session),
    auth: AuthFacade = Depends(get_auth_facade),
) -> dict:
    """Change the signed-in user's password."""
    await auth.change_password(
        session.access_token,
        payload.current_password,
        payload.new_password,
    )
    return {"status": "password_changed"}


@router.delete("/account")
async def delete_account(
    response: Response,
    session: AuthSession = Depends(get_current_session),
    auth: AuthFacade = Depends(get_auth_facade),
    settings: Settings = Depends(get_app_settings),
) -> dict:
    """Delete the signed-in user's account.

    This permanently deletes the account and the user's directory data.
    """
    await auth.delete_account(session.access_token)
    response.delete_cookie(key=settings.session_cookie_name)
    return {"status": "deleted"}


@router.get("/mode")
async def get_mode(auth: AuthFacade = Depends(get_auth_facade)) -> dict:
    """Report which auth backend is serving requests."""
    return {"mode": auth.mode}
