"""Live auth backend backed by a Supabase (GoTrue) identity provider.

## Endpoints used

| Operation        | Request                                         |
|------------------|-------------------------------------------------|
| register         | POST /auth/v1/signup                            |
| login            | POST /auth/v1/token?grant_type=password         |
| logout           | POST /auth/v1/logout                            |
| get_session      | GET  /auth/v1/user                              |
| update_profile   | PUT  /auth/v1/user  {"data": {...}}             |
| change_password  | PUT  /auth/v1/user  {"password": "..."}         |
| delete_account   | POST /rest/v1/rpc/delete_user_account           |

Every request carries the project's anon key in the `apikey` header. Calls
made on behalf of a user send the user's access token as a bearer token.

## User directory mirroring

Registration, profile updates and account deletion are mirrored into the
`users` table. A failed mirror write never fails the provider operation:
it is logged as a data-consistency warning and the provider-side change
stands.
"""

from __future__ import annotations

import logging
from contextlib import AbstractAsyncContextManager
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from weather_portal.auth.base import AuthBackend, AuthEvent, AuthSession, AuthUser
from weather_portal.database.connection import get_db
from weather_portal.directory import UserDirectory
from weather_portal.errors import AuthenticationError, ConflictError, UpstreamError
from weather_portal.providers.base import HTTPCollaborator, ProviderError

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


def _error_message(response: httpx.Response) -> str:
    """Pull the human-readable message out of a GoTrue error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if not isinstance(body, dict):
        return str(body)
    for key in ("msg", "error_description", "message", "error"):
        if body.get(key):
            return str(body[key])
    return f"HTTP {response.status_code}"


def _parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def _parse_user(data: dict[str, Any]) -> AuthUser:
    return AuthUser(
        id=str(data["id"]),
        email=data.get("email") or "",
        metadata=dict(data.get("user_metadata") or {}),
        created_at=_parse_datetime(data.get("created_at")),
    )


def _parse_session(data: dict[str, Any]) -> AuthSession:
    expires_at = None
    if data.get("expires_at"):
        expires_at = datetime.fromtimestamp(int(data["expires_at"]), tz=timezone.utc)
    elif data.get("expires_in"):
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=int(data["expires_in"]))

    return AuthSession(
        access_token=data["access_token"],
        refresh_token=data.get("refresh_token"),
        token_type=data.get("token_type") or "bearer",
        expires_at=expires_at,
        user=_parse_user(data["user"]),
    )


class LiveBackend(HTTPCollaborator, AuthBackend):
    """Auth backend delegating to the identity provider.

    Args:
        base_url: Project URL, e.g. https://xyz.supabase.co
        anon_key: Project anon (public) key
        session_factory: Opens a database session for directory mirroring
        timeout: Request timeout in seconds
        transport: Custom httpx transport (tests)
    """

    name = "identity_provider"

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        session_factory: SessionFactory = get_db,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        HTTPCollaborator.__init__(self, timeout=timeout, transport=transport)
        AuthBackend.__init__(self)
        self.base_url = base_url.rstrip("/")
        self.anon_key = anon_key
        self.session_factory = session_factory

    def _get_default_headers(self) -> dict[str, str]:
        headers = super()._get_default_headers()
        headers["apikey"] = self.anon_key
        headers["Authorization"] = f"Bearer {self.anon_key}"
        return headers

    def _bearer(self, access_token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {access_token}"}

    def _translate_error(self, response: httpx.Response, action: str) -> UpstreamError:
        """Map a provider error response to the service's error taxonomy."""
        message = _error_message(response)
        lowered = message.lower()
        status = response.status_code

        if "already registered" in lowered or "already been registered" in lowered:
            return ConflictError("This email address is already in use")
        if "signup is disabled" in lowered or "signups not allowed" in lowered:
            return UpstreamError(
                "Sign-up is disabled for this project",
                provider=self.name,
                status_code=403,
                provider_status=status,
            )
        if status == 429 or "rate limit" in lowered:
            return UpstreamError(
                "Email rate limit exceeded, please try again later",
                provider=self.name,
                status_code=429,
                provider_status=status,
            )
        if "invalid login credentials" in lowered:
            return AuthenticationError("Invalid email or password")
        if status in (401, 403):
            return AuthenticationError("Session expired or invalid")

        return ProviderError(
            f"{action} error: {message}",
            provider=self.name,
            status_code=status,
            response_body=response.text,
        )

    async def _mirror(self, description: str, operation: Callable) -> None:
        """Run a directory write, logging instead of failing on errors."""
        try:
            async with self.session_factory() as db:
                await operation(UserDirectory(db))
        except Exception:
            logger.warning(
                f"Data consistency: {description} succeeded at the identity "
                "provider but the user directory write failed",
                exc_info=True,
            )

    async def register(
        self,
        email: str,
        password: str,
        profile: dict[str, Any],
    ) -> AuthUser:
        response = await self._send(
            "POST",
            f"{self.base_url}/auth/v1/signup",
            json={"email": email, "password": password, "data": profile},
        )
        if response.status_code >= 400:
            raise self._translate_error(response, "Registration")

        body = response.json()
        # With auto-confirm the provider returns a session wrapping the user
        user = _parse_user(body.get("user") or body)
        logger.info(f"Registered {email} at the identity provider")

        await self._mirror(
            f"registration of {user.id}",
            lambda directory: directory.create(user.id, user.email or email, profile),
        )

        if body.get("access_token"):
            self._notify(AuthEvent.SIGNED_IN, _parse_session(body))
        return user

    async def login(self, email: str, password: str) -> AuthSession:
        response = await self._send(
            "POST",
            f"{self.base_url}/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        if response.status_code >= 400:
            error = self._translate_error(response, "Login")
            if response.status_code == 400 and isinstance(error, ProviderError):
                raise AuthenticationError("Invalid email or password")
            raise error

        session = _parse_session(response.json())
        self._notify(AuthEvent.SIGNED_IN, session)
        return session

    async def logout(self, access_token: str) -> None:
        response = await self._send(
            "POST",
            f"{self.base_url}/auth/v1/logout",
            headers=self._bearer(access_token),
        )
        # An already invalid token is as good as logged out
        if response.status_code >= 400 and response.status_code not in (401, 403):
            raise self._translate_error(response, "Logout")
        self._notify(AuthEvent.SIGNED_OUT, None)

    async def _get_user(self, access_token: str) -> AuthUser | None:
        response = await self._send(
            "GET",
            f"{self.base_url}/auth/v1/user",
            headers=self._bearer(access_token),
        )
        if response.status_code in (401, 403):
            return None
        if response.status_code >= 400:
            raise self._translate_error(response, "Session")
        return _parse_user(response.json())

    async def get_session(self, access_token: str) -> AuthSession | None:
        user = await self._get_user(access_token)
        if user is None:
            return None
        return AuthSession(access_token=access_token, user=user)

    async def _require_user(self, access_token: str) -> AuthUser:
        user = await self._get_user(access_token)
        if user is None:
            raise AuthenticationError("User not signed in")
        return user

    async def update_profile(
        self,
        access_token: str,
        updates: dict[str, Any],
    ) -> AuthUser:
        response = await self._send(
            "PUT",
            f"{self.base_url}/auth/v1/user",
            json={"data": updates},
            headers=self._bearer(access_token),
        )
        if response.status_code >= 400:
            raise self._translate_error(response, "Profile update")

        user = _parse_user(response.json())
        await self._mirror(
            f"profile update of {user.id}",
            lambda directory: directory.update_profile(user.id, updates),
        )
        self._notify(AuthEvent.USER_UPDATED, AuthSession(access_token=access_token, user=user))
        return user

    async def change_password(
        self,
        access_token: str,
        current_password: str,
        new_password: str,
    ) -> None:
        user = await self._require_user(access_token)

        # Re-authenticate so a stolen token alone cannot change the password
        check = await self._send(
            "POST",
            f"{self.base_url}/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": user.email, "password": current_password},
        )
        if check.status_code >= 400:
            raise AuthenticationError("Current password is incorrect")

        response = await self._send(
            "PUT",
            f"{self.base_url}/auth/v1/user",
            json={"password": new_password},
            headers=self._bearer(access_token),
        )
        if response.status_code >= 400:
            raise self._translate_error(response, "Password change")
        logger.info(f"Password changed for user {user.id}")

    async def delete_account(self, access_token: str) -> None:
        user = await self._require_user(access_token)

        response = await self._send(
            "POST",
            f"{self.base_url}/rest/v1/rpc/delete_user_account",
            json={},
            headers=self._bearer(access_token),
        )
        if response.status_code >= 400:
            raise self._translate_error(response, "Account deletion")

        await self._mirror(
            f"deletion of {user.id}",
            lambda directory: directory.delete(user.id),
        )
        logger.info(f"Account {user.id} deleted")
        self._notify(AuthEvent.SIGNED_OUT, None)
