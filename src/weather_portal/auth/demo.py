"""In-memory demo auth backend.

Used when the identity provider is not configured, or after a live
registration fails with an unprocessable-entity error. State lives in the
backend instance and is lost on restart.

## Demo credentials

- Sign in: `demo@example.com` / `demo123`
- `test@demo.com` is reserved and always reported as already registered
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any

from weather_portal.auth.base import AuthBackend, AuthEvent, AuthSession, AuthUser
from weather_portal.auth.session import create_session_token, verify_session_token
from weather_portal.errors import AuthenticationError, ConflictError

logger = logging.getLogger(__name__)

DEMO_EMAIL = "demo@example.com"
DEMO_PASSWORD = "demo123"
DEMO_USER_ID = "demo-user-123"
TAKEN_EMAIL = "test@demo.com"

DEMO_PROFILE = {
    "last_name": "Demo",
    "first_name": "User",
    "phone": "0123456789",
    "locality": "Paris",
}


class DemoBackend(AuthBackend):
    """Auth backend with one seeded account and simulated latency.

    Args:
        secret_key: Key used to sign demo session tokens
        latency: Seconds to sleep in each call, mimicking a network hop
    """

    name = "demo"

    def __init__(self, secret_key: str, latency: float = 1.0):
        super().__init__()
        self.secret_key = secret_key
        self.latency = latency
        self.password = DEMO_PASSWORD
        self.user: AuthUser | None = None
        self._token: str | None = None

    async def _delay(self, factor: float = 1.0) -> None:
        if self.latency:
            await asyncio.sleep(self.latency * factor)

    def _seeded_user(self) -> AuthUser:
        return AuthUser(
            id=DEMO_USER_ID,
            email=DEMO_EMAIL,
            metadata=dict(DEMO_PROFILE),
            created_at=datetime.now(timezone.utc),
        )

    async def register(
        self,
        email: str,
        password: str,
        profile: dict[str, Any],
    ) -> AuthUser:
        await self._delay()

        if email.lower() == TAKEN_EMAIL:
            raise ConflictError("This email is already registered (demo)")

        user = AuthUser(
            id=f"demo-user-{int(time.time() * 1000)}",
            email=email,
            metadata={key: profile.get(key) for key in DEMO_PROFILE},
            created_at=datetime.now(timezone.utc),
        )
        logger.info(f"Demo registration for {email}")
        return user

    async def login(self, email: str, password: str) -> AuthSession:
        await self._delay()

        if email.lower() != DEMO_EMAIL or password != self.password:
            raise AuthenticationError("Invalid email or password (demo)")

        if self.user is None:
            self.user = self._seeded_user()
        token, expires_at = create_session_token(self.user.id, secret_key=self.secret_key)
        self._token = token

        session = AuthSession(access_token=token, user=self.user, expires_at=expires_at)
        self._notify(AuthEvent.SIGNED_IN, session)
        return session

    async def logout(self, access_token: str) -> None:
        await self._delay(0.5)
        self.user = None
        self._token = None
        self._notify(AuthEvent.SIGNED_OUT, None)

    async def get_session(self, access_token: str) -> AuthSession | None:
        if self.user is None or access_token != self._token:
            return None

        data = verify_session_token(access_token, secret_key=self.secret_key)
        if data is None or data.user_id != self.user.id:
            return None

        return AuthSession(
            access_token=access_token,
            user=self.user,
            expires_at=data.expires_at,
        )

    async def _require_session(self, access_token: str) -> AuthSession:
        session = await self.get_session(access_token)
        if session is None:
            raise AuthenticationError("User not signed in")
        return session

    async def update_profile(
        self,
        access_token: str,
        updates: dict[str, Any],
    ) -> AuthUser:
        await self._delay()
        session = await self._require_session(access_token)

        session.user.metadata.update(
            {key: value for key, value in updates.items() if value is not None}
        )
        self._notify(AuthEvent.USER_UPDATED, session)
        return session.user

    async def change_password(
        self,
        access_token: str,
        current_password: str,
        new_password: str,
    ) -> None:
        await self._delay()
        await self._require_session(access_token)

        if current_password != self.password:
            raise AuthenticationError("Current password is incorrect")
        self.password = new_password

    async def delete_account(self, access_token: str) -> None:
        await self._delay()
        await self._require_session(access_token)

        self.user = None
        self._token = None
        self._notify(AuthEvent.SIGNED_OUT, None)
