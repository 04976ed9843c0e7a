"""Authentication for the weather portal.

Two interchangeable backends sit behind one facade:

- `LiveBackend`: the Supabase identity provider, reached over its REST API
- `DemoBackend`: an in-memory stand-in with one seeded account

## Mode selection

The live backend is used when `SUPABASE_URL` and `SUPABASE_ANON_KEY` are
set to real values. Otherwise, or after the provider rejects a sign-up as
unprocessable, the demo backend serves every call.
"""

from weather_portal.auth.base import (
    AuthBackend,
    AuthEvent,
    AuthSession,
    AuthUser,
    Subscription,
)
from weather_portal.auth.demo import DemoBackend
from weather_portal.auth.live import LiveBackend
from weather_portal.auth.facade import AuthFacade, build_auth_facade
from weather_portal.auth.session import (
    create_session_token,
    verify_session_token,
    SessionData,
)
from weather_portal.auth.dependencies import (
    get_access_token,
    get_auth_facade,
    get_current_session,
    get_current_session_optional,
)

__all__ = [
    "AuthBackend",
    "AuthEvent",
    "AuthSession",
    "AuthUser",
    "Subscription",
    "DemoBackend",
    "LiveBackend",
    "AuthFacade",
    "build_auth_facade",
    "create_session_token",
    "verify_session_token",
    "SessionData",
    "get_access_token",
    "get_auth_facade",
    "get_current_session",
    "get_current_session_optional",
]
