"""Stripe PaymentIntents."""

import logging
from decimal import Decimal
import stripe

from salonbook.core.config import settings
from salonbook.core.errors import ProviderError
from salonbook.services.payments.base import (
    PAID,
    PENDING,
    PaymentIntent,
    Verification,
    from_minor_units,
    to_minor_units,
)

logger = logging.getLogger(__name__)


class StripeGateway:
    name = "stripe"

    def __init__(self, api_key: str | None = None):
        self.api_key = api_key if api_key is not None else settings.STRIPE_API_KEY

    def _ensure_configured(self) -> None:
        if not self.api_key:
            raise ProviderError(self.name, "Stripe is not configured. Set STRIPE_API_KEY.")

    async def create_intent(self, amount: Decimal, currency: str, metadata: dict) -> PaymentIntent:
        self._ensure_configured()
        try:
            intent = stripe.PaymentIntent.create(
                amount=to_minor_units(amount),
                currency=currency.lower(),
                metadata=metadata,
                automatic_payment_methods={"enabled": True},
                api_key=self.api_key,
            )
        except stripe.StripeError as e:
            logger.error("Stripe error creating payment intent: %s", e)
            raise ProviderError(self.name, str(e))

        logger.info("Created Stripe payment intent %s", intent.id)
        return PaymentIntent(
            session_ref=intent.id,
            client_data={"clientSecret": intent.client_secret, "paymentIntentId": intent.id},
        )

    async def verify(self, session_ref: str) -> Verification:
        self._ensure_configured()
        try:
            intent = stripe.PaymentIntent.retrieve(session_ref, api_key=self.api_key)
        except stripe.StripeError as e:
            logger.error("Stripe error retrieving payment intent %s: %s", session_ref, e)
            raise ProviderError(self.name, str(e))
        status = PAID if intent.status == "succeeded" else PENDING
        return Verification(status=status, provider_payment_id=intent.id, amount=from_minor_units(intent.amount))

    def construct_event(self, payload: bytes, signature: str | None):
        """Parse a webhook body, checking its signature when a secret is set."""
        if not settings.STRIPE_WEBHOOK_SECRET:
            raise ProviderError(self.name, "Stripe webhook secret not configured")
        return stripe.Webhook.construct_event(payload, signature, settings.STRIPE_WEBHOOK_SECRET)
