"""Auth facade bound to exactly one backend at a time.

The facade is chosen once at startup (`build_auth_facade`). In live mode a
registration that the identity provider rejects as unprocessable (HTTP 422)
is retried against the demo backend, and the facade stays in demo mode for
the rest of the process.
"""

from __future__ import annotations

import logging
from typing import Any

from weather_portal.auth.base import (
    AuthBackend,
    AuthSession,
    AuthUser,
    SessionListener,
    Subscription,
)
from weather_portal.auth.demo import DemoBackend
from weather_portal.auth.live import LiveBackend
from weather_portal.config import Settings
from weather_portal.errors import UpstreamError

logger = logging.getLogger(__name__)

FALLBACK_STATUS = 422


class AuthFacade:
    """Single auth interface delegating to the active backend.

    Args:
        live: Live backend, or None when the provider is not configured
        demo: Demo backend, always available as the fallback
    """

    def __init__(self, live: LiveBackend | None, demo: DemoBackend):
        self.live = live
        self.demo = demo
        self.backend: AuthBackend = live if live is not None else demo
        self._subscriptions: list[tuple[SessionListener, list[Subscription]]] = []

    @property
    def mode(self) -> str:
        return "live" if self.backend is self.live else "demo"

    def _switch_to_demo(self) -> None:
        if self.backend is self.demo:
            return
        logger.warning("Identity provider rejected registration, switching to demo mode")
        self.backend = self.demo

    def on_session_change(self, callback: SessionListener) -> Subscription:
        """Register a listener on both backends so a mode switch keeps it."""
        backends = [self.demo] if self.live is None else [self.live, self.demo]
        inner = [backend.on_session_change(callback) for backend in backends]
        return _CompositeSubscription(inner)

    async def register(
        self,
        email: str,
        password: str,
        profile: dict[str, Any],
    ) -> AuthUser:
        try:
            return await self.backend.register(email, password, profile)
        except UpstreamError as e:
            if self.backend is self.demo or e.provider_status != FALLBACK_STATUS:
                raise
            logger.warning(f"Live registration failed with {e.provider_status}: {e.message}")

        self._switch_to_demo()
        return await self.demo.register(email, password, profile)

    async def login(self, email: str, password: str) -> AuthSession:
        return await self.backend.login(email, password)

    async def logout(self, access_token: str) -> None:
        await self.backend.logout(access_token)

    async def get_session(self, access_token: str) -> AuthSession | None:
        return await self.backend.get_session(access_token)

    async def update_profile(self, access_token: str, updates: dict[str, Any]) -> AuthUser:
        return await self.backend.update_profile(access_token, updates)

    async def change_password(
        self,
        access_token: str,
        current_password: str,
        new_password: str,
    ) -> None:
        await self.backend.change_password(access_token, current_password, new_password)

    async def delete_account(self, access_token: str) -> None:
        await self.backend.delete_account(access_token)

    async def aclose(self) -> None:
        if self.live is not None:
            await self.live.aclose()
        await self.demo.aclose()


class _CompositeSubscription(Subscription):
    def __init__(self, inner: list[Subscription]):
        self._inner = inner

    def unsubscribe(self) -> None:
        for subscription in self._inner:
            subscription.unsubscribe()


def build_auth_facade(settings: Settings) -> AuthFacade:
    """Select the auth backend from configuration."""
    demo = DemoBackend(settings.secret_key, latency=settings.demo_latency_seconds)

    live = None
    if settings.identity_provider_configured:
        live = LiveBackend(
            settings.supabase_url,
            settings.supabase_anon_key,
            timeout=settings.http_timeout_seconds,
        )

    facade = AuthFacade(live, demo)
    if facade.mode == "live":
        logger.info(f"Auth running against identity provider at {settings.supabase_url}")
    else:
        logger.info("Identity provider not configured, auth running in demo mode")
    return facade
