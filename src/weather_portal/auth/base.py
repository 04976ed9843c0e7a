"""Auth backend abstraction.

Every backend exposes the same capability set:

| Operation            | Live backend                  | Demo backend             |
|----------------------|-------------------------------|--------------------------|
| register             | provider signup + directory   | in-memory, not persisted |
| login                | provider password grant       | seeded credentials only  |
| logout               | provider logout               | clears in-memory user    |
| get_session          | provider user lookup          | signed JWT check         |
| on_session_change    | local listeners               | local listeners          |
| update_profile       | provider metadata + directory | in-memory metadata       |
| change_password      | provider user update          | in-memory password       |
| delete_account       | provider RPC + directory      | clears in-memory user    |
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable

logger = logging.getLogger(__name__)


class AuthEvent(str, Enum):
    """Session change notifications."""

    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    USER_UPDATED = "USER_UPDATED"


@dataclass
class AuthUser:
    """A user as the identity backend sees it."""

    id: str
    email: str
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "user_metadata": dict(self.metadata),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass
class AuthSession:
    """An authenticated session."""

    access_token: str
    user: AuthUser
    expires_at: datetime | None = None
    refresh_token: str | None = None
    token_type: str = "bearer"

    def to_dict(self) -> dict[str, Any]:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "token_type": self.token_type,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "user": self.user.to_dict(),
        }


SessionListener = Callable[[AuthEvent, "AuthSession | None"], None]


class Subscription:
    """Handle returned by `on_session_change`."""

    def __init__(self, listeners: list[SessionListener], callback: SessionListener):
        self._listeners = listeners
        self._callback = callback

    def unsubscribe(self) -> None:
        """Stop receiving notifications. Safe to call twice."""
        if self._callback in self._listeners:
            self._listeners.remove(self._callback)


class AuthBackend(ABC):
    """Abstract base class for identity backends.

    Attributes:
        name: Backend identifier ("live" or "demo")
    """

    name: str

    def __init__(self) -> None:
        self._listeners: list[SessionListener] = []

    def on_session_change(self, callback: SessionListener) -> Subscription:
        """Register a listener called with (event, session) on changes."""
        self._listeners.append(callback)
        return Subscription(self._listeners, callback)

    def _notify(self, event: AuthEvent, session: AuthSession | None) -> None:
        for callback in list(self._listeners):
            try:
                callback(event, session)
            except Exception:
                logger.exception(f"Session listener failed on {event.value}")

    @abstractmethod
    async def register(
        self,
        email: str,
        password: str,
        profile: dict[str, Any],
    ) -> AuthUser:
        """Create an account.

        Raises:
            ConflictError: If the email is already registered
            UpstreamError: If the provider rejects the request
        """

    @abstractmethod
    async def login(self, email: str, password: str) -> AuthSession:
        """Sign in with email and password.

        Raises:
            AuthenticationError: On wrong credentials
        """

    @abstractmethod
    async def logout(self, access_token: str) -> None:
        """End a session."""

    @abstractmethod
    async def get_session(self, access_token: str) -> AuthSession | None:
        """Resolve a token to its session, or None if invalid."""

    @abstractmethod
    async def update_profile(
        self,
        access_token: str,
        updates: dict[str, Any],
    ) -> AuthUser:
        """Merge profile fields into the user's metadata.

        Raises:
            AuthenticationError: If the token is not a valid session
        """

    @abstractmethod
    async def change_password(
        self,
        access_token: str,
        current_password: str,
        new_password: str,
    ) -> None:
        """Change the password of the signed-in user.

        Raises:
            AuthenticationError: If the token or current password is wrong
        """

    @abstractmethod
    async def delete_account(self, access_token: str) -> None:
        """Delete the signed-in user's account."""

    async def aclose(self) -> None:
        """Release network resources, if any."""
