"""Tests for auth backend selection and the demo fallback."""

import httpx
import pytest

from weather_portal.auth.base import AuthEvent
from weather_portal.auth.demo import DEMO_EMAIL, DEMO_PASSWORD, TAKEN_EMAIL, DemoBackend
from weather_portal.auth.facade import AuthFacade, build_auth_facade
from weather_portal.auth.live import LiveBackend
from weather_portal.errors import ConflictError, UpstreamError

PROFILE = {"first_name": "Ada", "last_name": "Lovelace", "phone": "0123456789", "locality": "Paris"}


def live_backend(status: int, body: dict) -> LiveBackend:
    return LiveBackend(
        "https://project.supabase.co",
        "anon-key",
        transport=httpx.MockTransport(lambda request: httpx.Response(status, json=body)),
    )


@pytest.fixture
def demo(settings) -> DemoBackend:
    return DemoBackend(settings.secret_key, latency=0)


class TestModeSelection:
    """Tests for choosing the backend from configuration."""

    def test_demo_when_unconfigured(self, settings):
        facade = build_auth_facade(settings)
        assert facade.mode == "demo"
        assert facade.live is None

    @pytest.mark.parametrize(
        "url, key",
        [
            ("https://demo.supabase.co", "real-key"),
            ("https://project.supabase.co", "demo-key"),
            ("", ""),
        ],
    )
    def test_placeholders_mean_demo(self, settings, url, key):
        configured = settings.model_copy(update={"supabase_url": url, "supabase_anon_key": key})
        assert build_auth_facade(configured).mode == "demo"

    def test_live_when_configured(self, settings):
        configured = settings.model_copy(
            update={"supabase_url": "https://project.supabase.co", "supabase_anon_key": "anon-key"}
        )
        facade = build_auth_facade(configured)

        assert facade.mode == "live"
        assert facade.live.base_url == "https://project.supabase.co"


class TestFallback:
    """Tests for the registration fallback to demo mode."""

    async def test_unprocessable_switches_to_demo(self, demo):
        facade = AuthFacade(live_backend(422, {"msg": "Unable to validate email address"}), demo)

        user = await facade.register("new@example.com", "secret1", PROFILE)

        assert user.id.startswith("demo-user-")
        assert facade.mode == "demo"

    async def test_switch_is_one_way(self, demo):
        facade = AuthFacade(live_backend(422, {"msg": "Unable to validate email address"}), demo)
        await facade.register("new@example.com", "secret1", PROFILE)

        session = await facade.login(DEMO_EMAIL, DEMO_PASSWORD)
        assert session.user.email == DEMO_EMAIL
        assert facade.mode == "demo"

    async def test_conflict_does_not_switch(self, demo):
        facade = AuthFacade(live_backend(422, {"msg": "User already registered"}), demo)

        with pytest.raises(ConflictError):
            await facade.register("ada@example.com", "secret1", PROFILE)
        assert facade.mode == "live"

    async def test_other_provider_errors_propagate(self, demo):
        facade = AuthFacade(live_backend(500, {"msg": "Database error saving new user"}), demo)

        with pytest.raises(UpstreamError) as exc_info:
            await facade.register("ada@example.com", "secret1", PROFILE)
        assert exc_info.value.provider_status == 500
        assert facade.mode == "live"

    async def test_demo_errors_propagate(self, demo):
        facade = AuthFacade(None, demo)
        with pytest.raises(ConflictError):
            await facade.register(TAKEN_EMAIL, "secret1", PROFILE)

    async def test_listener_survives_switch(self, demo):
        facade = AuthFacade(live_backend(422, {"msg": "Unable to validate email address"}), demo)
        events = []
        facade.on_session_change(lambda event, session: events.append(event))

        await facade.register("new@example.com", "secret1", PROFILE)
        await facade.login(DEMO_EMAIL, DEMO_PASSWORD)

        assert events == [AuthEvent.SIGNED_IN]

    async def test_unsubscribe_covers_both_backends(self, demo):
        facade = AuthFacade(live_backend(422, {"msg": "Unable to validate email address"}), demo)
        events = []
        subscription = facade.on_session_change(lambda event, session: events.append(event))
        subscription.unsubscribe()

        await facade.register("new@example.com", "secret1", PROFILE)
        await facade.login(DEMO_EMAIL, DEMO_PASSWORD)

        assert events == []
