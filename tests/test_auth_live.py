"""Tests for the live identity provider backend."""

import json
from contextlib import asynccontextmanager

import httpx
import pytest

from weather_portal.auth.base import AuthEvent
from weather_portal.auth.live import LiveBackend
from weather_portal.database.connection import get_db
from weather_portal.directory import UserDirectory
from weather_portal.errors import AuthenticationError, ConflictError, UpstreamError
from weather_portal.providers.base import ProviderError

BASE_URL = "https://project.supabase.co"

PROVIDER_USER = {
    "id": "8d0fd2b3-9ca7-4d9e-a95f-9e13cded3a3e",
    "email": "ada@example.com",
    "user_metadata": {"first_name": "Ada", "locality": "Paris"},
    "created_at": "2025-03-10T12:00:00Z",
}

PROFILE = {"first_name": "Ada", "last_name": "Lovelace", "phone": "0123456789", "locality": "Paris"}


def make_backend(handler, session_factory=get_db) -> LiveBackend:
    return LiveBackend(
        BASE_URL,
        "anon-key",
        session_factory=session_factory,
        transport=httpx.MockTransport(handler),
    )


@asynccontextmanager
async def broken_session_factory():
    raise RuntimeError("database unavailable")
    yield


class TestRegister:
    """Tests for live registration."""

    async def test_register_mirrors_into_directory(self, db_session):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json=PROVIDER_USER)

        backend = make_backend(handler)
        user = await backend.register("ada@example.com", "secret1", PROFILE)

        assert user.id == PROVIDER_USER["id"]
        assert requests[0].url.path == "/auth/v1/signup"
        assert requests[0].headers["apikey"] == "anon-key"
        assert json.loads(requests[0].content)["data"] == PROFILE

        row = await UserDirectory(db_session).get(PROVIDER_USER["id"])
        assert row.email == "ada@example.com"
        assert row.last_name == "Lovelace"

    async def test_autoconfirmed_signup_notifies(self, engine):
        body = {
            "access_token": "jwt",
            "refresh_token": "refresh",
            "expires_in": 3600,
            "user": PROVIDER_USER,
        }
        backend = make_backend(lambda request: httpx.Response(200, json=body))
        events = []
        backend.on_session_change(lambda event, session: events.append(event))

        user = await backend.register("ada@example.com", "secret1", PROFILE)

        assert user.email == "ada@example.com"
        assert events == [AuthEvent.SIGNED_IN]

    async def test_failed_mirror_keeps_registration(self, engine, caplog):
        backend = make_backend(
            lambda request: httpx.Response(200, json=PROVIDER_USER),
            session_factory=broken_session_factory,
        )

        user = await backend.register("ada@example.com", "secret1", PROFILE)

        assert user.id == PROVIDER_USER["id"]
        assert "Data consistency" in caplog.text

    async def test_already_registered(self, engine):
        backend = make_backend(
            lambda request: httpx.Response(422, json={"msg": "User already registered"})
        )
        with pytest.raises(ConflictError):
            await backend.register("ada@example.com", "secret1", PROFILE)

    async def test_signup_disabled(self, engine):
        backend = make_backend(
            lambda request: httpx.Response(422, json={"msg": "Signup is disabled"})
        )
        with pytest.raises(UpstreamError) as exc_info:
            await backend.register("ada@example.com", "secret1", PROFILE)
        assert exc_info.value.status_code == 403

    async def test_rate_limited(self, engine):
        backend = make_backend(
            lambda request: httpx.Response(429, json={"msg": "Email rate limit exceeded"})
        )
        with pytest.raises(UpstreamError) as exc_info:
            await backend.register("ada@example.com", "secret1", PROFILE)
        assert exc_info.value.status_code == 429

    async def test_unprocessable_keeps_provider_status(self, engine):
        backend = make_backend(
            lambda request: httpx.Response(422, json={"error_description": "Unable to validate"})
        )
        with pytest.raises(ProviderError) as exc_info:
            await backend.register("ada@example.com", "secret1", PROFILE)

        assert exc_info.value.provider_status == 422
        assert exc_info.value.status_code == 502

    async def test_network_failure(self, engine):
        def handler(request):
            raise httpx.ConnectError("connection refused")

        backend = make_backend(handler)
        with pytest.raises(ProviderError) as exc_info:
            await backend.register("ada@example.com", "secret1", PROFILE)

        assert exc_info.value.status_code == 503
        assert exc_info.value.provider_status is None


class TestLogin:
    """Tests for live sign-in and sessions."""

    async def test_login(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["grant_type"] == "password"
            return httpx.Response(
                200,
                json={
                    "access_token": "jwt",
                    "refresh_token": "refresh",
                    "expires_at": 1741611600,
                    "user": PROVIDER_USER,
                },
            )

        backend = make_backend(handler)
        session = await backend.login("ada@example.com", "secret1")

        assert session.access_token == "jwt"
        assert session.expires_at is not None
        assert session.user.metadata["locality"] == "Paris"

    async def test_invalid_credentials(self):
        backend = make_backend(
            lambda request: httpx.Response(
                400, json={"error": "invalid_grant", "error_description": "Invalid login credentials"}
            )
        )
        with pytest.raises(AuthenticationError):
            await backend.login("ada@example.com", "wrong")

    async def test_get_session(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["Authorization"] == "Bearer jwt"
            return httpx.Response(200, json=PROVIDER_USER)

        session = await make_backend(handler).get_session("jwt")
        assert session.user.id == PROVIDER_USER["id"]

    async def test_get_session_invalid_token(self):
        backend = make_backend(lambda request: httpx.Response(401, json={"msg": "invalid JWT"}))
        assert await backend.get_session("expired") is None

    async def test_logout_with_dead_token(self):
        backend = make_backend(lambda request: httpx.Response(401, json={}))
        events = []
        backend.on_session_change(lambda event, session: events.append(event))

        await backend.logout("expired")
        assert events == [AuthEvent.SIGNED_OUT]


class TestAccount:
    """Tests for profile, password and deletion."""

    async def test_update_profile_mirrors(self, db_session, user):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "PUT"
            updated = dict(PROVIDER_USER, id="u1", user_metadata={"locality": "Lyon"})
            return httpx.Response(200, json=updated)

        updated = await make_backend(handler).update_profile("jwt", {"locality": "Lyon"})

        assert updated.metadata == {"locality": "Lyon"}
        row = await UserDirectory(db_session).get("u1")
        await db_session.refresh(row)
        assert row.locality == "Lyon"

    async def test_change_password_checks_current(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/auth/v1/user":
                return httpx.Response(200, json=PROVIDER_USER)
            return httpx.Response(400, json={"error_description": "Invalid login credentials"})

        with pytest.raises(AuthenticationError):
            await make_backend(handler).change_password("jwt", "wrong", "newpass")

    async def test_change_password(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append((request.method, request.url.path))
            if request.url.path == "/auth/v1/token":
                return httpx.Response(200, json={"access_token": "other", "user": PROVIDER_USER})
            return httpx.Response(200, json=PROVIDER_USER)

        await make_backend(handler).change_password("jwt", "secret1", "newpass")

        assert calls == [
            ("GET", "/auth/v1/user"),
            ("POST", "/auth/v1/token"),
            ("PUT", "/auth/v1/user"),
        ]

    async def test_delete_account(self, db_session, user):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/auth/v1/user":
                return httpx.Response(200, json=dict(PROVIDER_USER, id="u1"))
            assert request.url.path == "/rest/v1/rpc/delete_user_account"
            return httpx.Response(204)

        await make_backend(handler).delete_account("jwt")

        db_session.expunge_all()
        assert await UserDirectory(db_session).find("u1") is None
