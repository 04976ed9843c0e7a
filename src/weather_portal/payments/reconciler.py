"""Payment confirmation.

After the hosted checkout redirects back, the front end asks for the
session to be confirmed. The processor is the source of truth: premium is
granted only when it reports the session as paid.

```
retrieve session --> not paid -------------------------> PENDING
                 +-> paid --> resolve user --> none ----> COMPLETE (user_updated=false)
                                           +-> activate -> COMPLETE (user_updated=true)
processor failure --------------------------------------> ERROR
```
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from weather_portal.directory import UserDirectory
from weather_portal.entitlements import EntitlementResolver
from weather_portal.errors import NotFoundError, UpstreamError
from weather_portal.payments.processor import CheckoutSession, StripeProcessor

logger = logging.getLogger(__name__)

# Checked in order; "userId" is written by older checkout pages
USER_ID_METADATA_KEYS = ("user_id", "userId")


class ConfirmationStatus(str, Enum):
    PENDING = "pending"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass
class ConfirmationResult:
    """Outcome of a payment confirmation."""

    status: ConfirmationStatus
    session_id: str
    user_updated: bool = False
    message: str = ""
    user_id: str | None = None
    premium_expires_at: datetime | None = None
    session: CheckoutSession | None = None
    error: str | None = None
    details: Any = None

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "status": self.status.value,
            "user_updated": self.user_updated,
            "message": self.message,
        }
        if self.session is not None:
            body["session"] = self.session.summary()
        else:
            body["session_id"] = self.session_id
        if self.user_id is not None:
            body["user_id"] = self.user_id
        if self.premium_expires_at is not None:
            body["premium_expires_at"] = self.premium_expires_at.isoformat()
        if self.session is not None and self.session.customer_id and self.user_updated:
            body["stripe_customer_id"] = self.session.customer_id
        if self.error is not None:
            body["error"] = self.error
        if self.details is not None:
            body["details"] = self.details
        return body


class PaymentReconciler:
    """Maps a checkout session to an entitlement activation.

    Args:
        processor: Payment processor client
        directory: User directory bound to the request's session
        resolver: Entitlement resolver over the same directory
    """

    def __init__(
        self,
        processor: StripeProcessor,
        directory: UserDirectory,
        resolver: EntitlementResolver,
    ):
        self.processor = processor
        self.directory = directory
        self.resolver = resolver

    async def _resolve_user_id(self, checkout: CheckoutSession) -> str | None:
        for key in USER_ID_METADATA_KEYS:
            if checkout.metadata.get(key):
                return str(checkout.metadata[key])

        if checkout.customer_email:
            logger.info(f"No user id in session {checkout.id}, looking up by email")
            user = await self.directory.find_by_email(checkout.customer_email)
            if user is not None:
                return user.id
        return None

    async def confirm(self, session_id: str) -> ConfirmationResult:
        """Confirm a checkout session and activate premium when paid.

        Processor failures are reported as an ERROR result rather than
        raised.
        """
        try:
            checkout = await self.processor.retrieve_checkout_session(session_id)
        except UpstreamError as e:
            return ConfirmationResult(
                status=ConfirmationStatus.ERROR,
                session_id=session_id,
                message="Server error while verifying the payment",
                error=e.message,
                details=e.details,
            )

        if not checkout.is_paid:
            logger.info(f"Session {session_id} not paid yet: {checkout.payment_status}")
            return ConfirmationResult(
                status=ConfirmationStatus.PENDING,
                session_id=session_id,
                session=checkout,
                message=f"Payment in progress: {checkout.payment_status}",
            )

        user_id = await self._resolve_user_id(checkout)
        if user_id is None:
            logger.warning(f"Paid session {session_id} could not be matched to a user")
            return self._unidentified(checkout)

        try:
            status = await self.resolver.activate(user_id, checkout.customer_id)
        except NotFoundError:
            logger.warning(f"Paid session {session_id} names unknown user {user_id}")
            return self._unidentified(checkout)
        except SQLAlchemyError as e:
            logger.exception(f"Failed to activate premium for user {user_id}")
            await self.directory.session.rollback()
            return ConfirmationResult(
                status=ConfirmationStatus.COMPLETE,
                session_id=session_id,
                session=checkout,
                user_id=user_id,
                message="Payment confirmed but the user profile could not be updated",
                error="Failed to update user profile",
                details=str(e),
            )

        return ConfirmationResult(
            status=ConfirmationStatus.COMPLETE,
            session_id=session_id,
            session=checkout,
            user_updated=True,
            user_id=user_id,
            premium_expires_at=status.premium_expires_at,
            message="Premium activated",
        )

    def _unidentified(self, checkout: CheckoutSession) -> ConfirmationResult:
        return ConfirmationResult(
            status=ConfirmationStatus.COMPLETE,
            session_id=checkout.id,
            session=checkout,
            message="Payment confirmed but user unidentified",
            error="User not found",
        )
