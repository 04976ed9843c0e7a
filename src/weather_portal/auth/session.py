"""Session tokens for the demo auth backend.

The live identity provider issues its own access tokens. In demo mode the
service signs JWT session tokens itself. The tokens contain:
- User ID
- Session creation time
- Expiration time

## Token Structure

```json
{
  "sub": "demo-user-123",
  "iat": 1234567890,
  "exp": 1235172690,
  "type": "session"
}
```
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from weather_portal.config import get_settings

logger = logging.getLogger(__name__)

# JWT configuration
ALGORITHM = "HS256"
TOKEN_TYPE = "session"


@dataclass
class SessionData:
    """Data stored in the session token."""

    user_id: str
    created_at: datetime
    expires_at: datetime

    @property
    def is_expired(self) -> bool:
        """Check if the session has expired."""
        return datetime.now(timezone.utc) > self.expires_at


def create_session_token(
    user_id: str,
    expires_delta: timedelta | None = None,
    secret_key: str | None = None,
) -> tuple[str, datetime]:
    """Create a signed session token for a user.

    Args:
        user_id: The user's id
        expires_delta: Custom expiration time (or use default from settings)
        secret_key: Signing key (or use the application secret)

    Returns:
        Signed JWT token string and its expiry time
    """
    if expires_delta is None:
        expires_delta = timedelta(seconds=get_settings().session_max_age_seconds)
    if secret_key is None:
        secret_key = get_settings().secret_key

    now = datetime.now(timezone.utc)
    expires_at = now + expires_delta

    payload = {
        "sub": user_id,
        "iat": int(now.timestamp()),
        "exp": int(expires_at.timestamp()),
        "type": TOKEN_TYPE,
    }

    token = jwt.encode(payload, secret_key, algorithm=ALGORITHM)
    return token, expires_at


def verify_session_token(token: str, secret_key: str | None = None) -> SessionData | None:
    """Verify and decode a session token.

    Args:
        token: The JWT token string
        secret_key: Signing key (or use the application secret)

    Returns:
        SessionData if valid, None if invalid or expired
    """
    if secret_key is None:
        secret_key = get_settings().secret_key

    try:
        payload = jwt.decode(token, secret_key, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.debug(f"Session token verification failed: {e}")
        return None

    if payload.get("type") != TOKEN_TYPE:
        logger.debug("Invalid token type")
        return None

    try:
        session = SessionData(
            user_id=str(payload["sub"]),
            created_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
    except (KeyError, ValueError) as e:
        logger.debug(f"Invalid token payload: {e}")
        return None

    if session.is_expired:
        logger.debug("Session token expired")
        return None

    return session
