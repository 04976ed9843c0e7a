"""Tests for the in-memory demo auth backend."""

import pytest

from weather_portal.auth.base import AuthEvent
from weather_portal.auth.demo import DEMO_EMAIL, DEMO_PASSWORD, DEMO_USER_ID, DemoBackend
from weather_portal.auth.session import verify_session_token
from weather_portal.errors import AuthenticationError, ConflictError


@pytest.fixture
def demo(settings) -> DemoBackend:
    return DemoBackend(settings.secret_key, latency=0)


@pytest.fixture
def events(demo) -> list:
    received = []
    demo.on_session_change(lambda event, session: received.append((event, session)))
    return received


class TestLogin:
    """Tests for demo sign-in."""

    async def test_seeded_credentials(self, demo, events, settings):
        session = await demo.login(DEMO_EMAIL, DEMO_PASSWORD)

        assert session.user.id == DEMO_USER_ID
        assert session.user.metadata["locality"] == "Paris"
        assert verify_session_token(session.access_token, secret_key=settings.secret_key).user_id == DEMO_USER_ID
        assert events == [(AuthEvent.SIGNED_IN, session)]

    async def test_email_is_case_insensitive(self, demo):
        session = await demo.login("Demo@Example.com", DEMO_PASSWORD)
        assert session.user.email == DEMO_EMAIL

    @pytest.mark.parametrize(
        "email, password",
        [(DEMO_EMAIL, "wrong"), ("someone@example.com", DEMO_PASSWORD)],
    )
    async def test_wrong_credentials(self, demo, events, email, password):
        with pytest.raises(AuthenticationError):
            await demo.login(email, password)
        assert events == []


class TestSession:
    """Tests for session lookup and logout."""

    async def test_get_session(self, demo):
        session = await demo.login(DEMO_EMAIL, DEMO_PASSWORD)

        current = await demo.get_session(session.access_token)
        assert current is not None
        assert current.user.id == DEMO_USER_ID

    async def test_unknown_token(self, demo):
        await demo.login(DEMO_EMAIL, DEMO_PASSWORD)
        assert await demo.get_session("not-a-token") is None

    async def test_logout(self, demo, events):
        session = await demo.login(DEMO_EMAIL, DEMO_PASSWORD)
        await demo.logout(session.access_token)

        assert await demo.get_session(session.access_token) is None
        assert events[-1] == (AuthEvent.SIGNED_OUT, None)

    async def test_unsubscribe(self, demo):
        received = []
        subscription = demo.on_session_change(lambda e, s: received.append(e))
        subscription.unsubscribe()
        subscription.unsubscribe()

        await demo.login(DEMO_EMAIL, DEMO_PASSWORD)
        assert received == []

    async def test_failing_listener_does_not_break_login(self, demo):
        def broken(event, session):
            raise RuntimeError("listener bug")

        demo.on_session_change(broken)
        session = await demo.login(DEMO_EMAIL, DEMO_PASSWORD)
        assert session.user.id == DEMO_USER_ID


class TestRegister:
    """Tests for demo registration."""

    async def test_register(self, demo):
        user = await demo.register(
            "new@example.com",
            "secret1",
            {"first_name": "New", "last_name": "User", "phone": "0600000000", "locality": "Lyon"},
        )

        assert user.id.startswith("demo-user-")
        assert user.email == "new@example.com"
        assert user.metadata["locality"] == "Lyon"

    async def test_register_does_not_sign_in(self, demo, events):
        await demo.register("new@example.com", "secret1", {})
        assert events == []

    async def test_reserved_email(self, demo):
        with pytest.raises(ConflictError):
            await demo.register("test@demo.com", "secret1", {})


class TestAccount:
    """Tests for profile, password and deletion."""

    async def test_update_profile(self, demo, events):
        session = await demo.login(DEMO_EMAIL, DEMO_PASSWORD)

        user = await demo.update_profile(session.access_token, {"locality": "Nice", "phone": None})

        assert user.metadata["locality"] == "Nice"
        assert user.metadata["phone"] == "0123456789"
        assert events[-1][0] == AuthEvent.USER_UPDATED

    async def test_update_profile_requires_session(self, demo):
        with pytest.raises(AuthenticationError):
            await demo.update_profile("nope", {"locality": "Nice"})

    async def test_change_password(self, demo):
        session = await demo.login(DEMO_EMAIL, DEMO_PASSWORD)
        await demo.change_password(session.access_token, DEMO_PASSWORD, "newpass")

        await demo.logout(session.access_token)
        with pytest.raises(AuthenticationError):
            await demo.login(DEMO_EMAIL, DEMO_PASSWORD)
        assert (await demo.login(DEMO_EMAIL, "newpass")).user.id == DEMO_USER_ID

    async def test_change_password_wrong_current(self, demo):
        session = await demo.login(DEMO_EMAIL, DEMO_PASSWORD)
        with pytest.raises(AuthenticationError):
            await demo.change_password(session.access_token, "wrong", "newpass")

    async def test_delete_account(self, demo, events):
        session = await demo.login(DEMO_EMAIL, DEMO_PASSWORD)
        await demo.delete_account(session.access_token)

        assert await demo.get_session(session.access_token) is None
        assert events[-1] == (AuthEvent.SIGNED_OUT, None)
