"""Stripe Checkout client.

The Stripe SDK is synchronous, so every call runs in a worker thread.
Stripe errors are translated into `UpstreamError` with the status this
service answers with:

| Stripe error          | Status |
|-----------------------|--------|
| CardError             | 400    |
| InvalidRequestError   | 400    |
| RateLimitError        | 429    |
| AuthenticationError   | 500    |
| APIError              | 502    |
| APIConnectionError    | 503    |
| creation timeout      | 504    |
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import stripe

from weather_portal.config import Settings
from weather_portal.errors import UpstreamError

logger = logging.getLogger(__name__)

PROVIDER = "stripe"
PURCHASE_TYPE = "premium_monthly"


@dataclass
class CheckoutSession:
    """The parts of a Stripe Checkout session this service reads."""

    id: str
    url: str | None = None
    payment_status: str | None = None
    customer_email: str | None = None
    customer_id: str | None = None
    amount_total: int | None = None
    currency: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)

    @property
    def is_paid(self) -> bool:
        return self.payment_status == "paid"

    def summary(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "payment_status": self.payment_status,
            "customer_email": self.customer_email,
            "amount_total": self.amount_total,
            "currency": self.currency,
        }


def _as_dict(value: Any) -> dict[str, Any]:
    if value is None:
        return {}
    if hasattr(value, "to_dict"):
        return value.to_dict()
    return dict(value)


def _from_stripe(session: Any) -> CheckoutSession:
    customer_email = getattr(session, "customer_email", None)
    if not customer_email:
        details = getattr(session, "customer_details", None)
        customer_email = getattr(details, "email", None) if details else None

    customer = getattr(session, "customer", None)
    if customer is not None and not isinstance(customer, str):
        customer = getattr(customer, "id", None)

    return CheckoutSession(
        id=session.id,
        url=getattr(session, "url", None),
        payment_status=getattr(session, "payment_status", None),
        customer_email=customer_email,
        customer_id=customer,
        amount_total=getattr(session, "amount_total", None),
        currency=getattr(session, "currency", None),
        metadata=_as_dict(getattr(session, "metadata", None)),
    )


def translate_stripe_error(error: stripe.StripeError) -> UpstreamError:
    """Map a Stripe SDK error to the service's error taxonomy."""
    message = getattr(error, "user_message", None) or str(error)

    if isinstance(error, stripe.CardError):
        return UpstreamError("Card error", provider=PROVIDER, status_code=400, details=message)
    if isinstance(error, stripe.RateLimitError):
        return UpstreamError(
            "Too many requests",
            provider=PROVIDER,
            status_code=429,
            details="Please wait before trying again",
        )
    if isinstance(error, stripe.InvalidRequestError):
        return UpstreamError("Invalid request", provider=PROVIDER, status_code=400, details=message)
    if isinstance(error, stripe.AuthenticationError):
        logger.error("Stripe authentication failed, check the API keys")
        return UpstreamError(
            "Configuration error",
            provider=PROVIDER,
            status_code=500,
            details="The payment service is misconfigured",
        )
    if isinstance(error, stripe.APIConnectionError):
        return UpstreamError(
            "Connection error",
            provider=PROVIDER,
            status_code=503,
            details="Unable to reach the payment service",
        )
    if isinstance(error, stripe.APIError):
        return UpstreamError(
            "Payment service error",
            provider=PROVIDER,
            status_code=502,
            details="Temporary problem with the payment service",
        )
    return UpstreamError(
        "Payment service error",
        provider=PROVIDER,
        status_code=500,
        details="An unexpected error occurred",
    )


class StripeProcessor:
    """Creates and reads Stripe Checkout sessions.

    Args:
        settings: Application settings (key, price, URLs, timeouts)
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def _require_key(self) -> str:
        if not self.settings.stripe_secret_key:
            raise UpstreamError(
                "Configuration error",
                provider=PROVIDER,
                status_code=500,
                details="The payment service is not configured",
            )
        return self.settings.stripe_secret_key

    def _checkout_params(self, user_id: str, email: str) -> dict[str, Any]:
        base_url = self.settings.public_base_url.rstrip("/")
        expires_at = int(time.time()) + self.settings.checkout_expiry_minutes * 60

        return {
            "mode": "payment",
            "line_items": [
                {
                    "price_data": {
                        "currency": self.settings.premium_currency,
                        "product_data": {
                            "name": self.settings.premium_product_name,
                            "description": self.settings.premium_product_description,
                        },
                        "unit_amount": self.settings.premium_price_cents,
                    },
                    "quantity": 1,
                }
            ],
            "metadata": {
                "user_id": user_id,
                "user_email": email,
                "purchase_type": PURCHASE_TYPE,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
            "customer_email": email,
            "success_url": f"{base_url}/success?session_id={{CHECKOUT_SESSION_ID}}",
            "cancel_url": f"{base_url}/?cancelled=true",
            "payment_method_types": ["card"],
            "expires_at": expires_at,
        }

    async def create_checkout_session(self, user_id: str, email: str) -> CheckoutSession:
        """Create a hosted checkout page for the premium purchase.

        Raises:
            UpstreamError: On Stripe errors, or 504 after the creation timeout
        """
        api_key = self._require_key()
        params = self._checkout_params(user_id, email)

        try:
            session = await asyncio.wait_for(
                asyncio.to_thread(stripe.checkout.Session.create, api_key=api_key, **params),
                timeout=self.settings.checkout_timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            logger.error(f"Stripe checkout creation timed out for user {user_id}")
            raise UpstreamError(
                "Payment service timeout",
                provider=PROVIDER,
                status_code=504,
                details="The payment service did not answer in time",
            ) from e
        except stripe.StripeError as e:
            logger.error(f"Stripe checkout creation failed for user {user_id}: {e}")
            raise translate_stripe_error(e) from e

        checkout = _from_stripe(session)
        logger.info(f"Created checkout session {checkout.id} for user {user_id}")
        return checkout

    async def retrieve_checkout_session(self, session_id: str) -> CheckoutSession:
        """Fetch a checkout session by id.

        Raises:
            UpstreamError: On Stripe errors
        """
        api_key = self._require_key()
        try:
            session = await asyncio.to_thread(
                stripe.checkout.Session.retrieve, session_id, api_key=api_key
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe session lookup failed for {session_id}: {e}")
            raise translate_stripe_error(e) from e
        return _from_stripe(session)
