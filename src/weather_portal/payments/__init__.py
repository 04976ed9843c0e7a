"""Premium purchase through Stripe Checkout."""

from weather_portal.payments.processor import (
    CheckoutSession,
    StripeProcessor,
    translate_stripe_error,
)
from weather_portal.payments.reconciler import (
    ConfirmationResult,
    ConfirmationStatus,
    PaymentReconciler,
)

__all__ = [
    "CheckoutSession",
    "StripeProcessor",
    "translate_stripe_error",
    "ConfirmationResult",
    "ConfirmationStatus",
    "PaymentReconciler",
]
