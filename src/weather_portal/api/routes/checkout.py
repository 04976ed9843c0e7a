"""Premium checkout routes.

- POST /checkout-sessions - Create a hosted checkout page
- GET /checkout-sessions/{session_id} - Confirm a payment after redirect
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from weather_portal.api.dependencies import get_payment_processor, get_reconciler
from weather_portal.errors import MethodNotAllowedError, ValidationError
from weather_portal.models.account import CheckoutRequest, is_valid_email
from weather_portal.payments import ConfirmationStatus, PaymentReconciler, StripeProcessor

logger = logging.getLogger(__name__)

router = APIRouter()


class CheckoutCreatedResponse(BaseModel):
    url: str | None
    sessionId: str
    message: str


@router.post("", response_model=CheckoutCreatedResponse)
async def create_checkout_session(
    payload: CheckoutRequest,
    processor: StripeProcessor = Depends(get_payment_processor),
) -> CheckoutCreatedResponse:
    """Create a checkout session for the premium purchase."""
    if not payload.user_id or not payload.user_email:
        raise ValidationError(
            "User id and email are required",
            details="userId and userEmail are mandatory",
        )
    if not is_valid_email(payload.user_email):
        raise ValidationError("Invalid email format", details="Please provide a valid email")

    checkout = await processor.create_checkout_session(payload.user_id, payload.user_email)
    return CheckoutCreatedResponse(
        url=checkout.url,
        sessionId=checkout.id,
        message="Checkout session created",
    )


@router.api_route("", methods=["GET", "PUT", "PATCH", "DELETE"], include_in_schema=False)
async def unsupported_method(request: Request) -> None:
    raise MethodNotAllowedError(request.method, ["POST"])


@router.get("/{session_id}")
async def confirm_checkout_session(
    session_id: str,
    reconciler: PaymentReconciler = Depends(get_reconciler),
) -> JSONResponse:
    """Confirm a checkout session and activate premium when it is paid.

    Soft failures (unidentified payer, failed profile update) still answer
    200 with `user_updated: false`; processor failures answer 500.
    """
    result = await reconciler.confirm(session_id)
    status_code = 500 if result.status is ConfirmationStatus.ERROR else 200
    return JSONResponse(status_code=status_code, content=result.to_dict())
