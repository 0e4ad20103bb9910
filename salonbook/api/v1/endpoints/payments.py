"""Payment intents, client-side verification and gateway webhooks."""

import json
import logging
from decimal import Decimal
import stripe
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from salonbook.core.database import get_db
from salonbook.core.deps import get_current_user
from salonbook.core.errors import ValidationError
from salonbook.models.payment import PaymentProvider
from salonbook.models.user import User
from salonbook.schemas.payment import (
    PaymentIntentIn,
    PaymentIntentOut,
    PaymentOut,
    PaymentVerifyIn,
    PaymentVerifyOut,
)
from salonbook.services.payments import get_gateway, get_gateways
from salonbook.services.payments import service as payments

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/create-intent", response_model=PaymentIntentOut)
async def create_intent(
    body: PaymentIntentIn,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    gateways: dict = Depends(get_gateways),
):
    """Open a checkout session with the chosen provider for the appointment total."""
    result = await payments.create_payment_intent(db, body.appointment_id, body.provider, current_user, gateways)
    payment = result.payment
    return PaymentIntentOut(
        payment_id=payment.id,
        provider=payment.provider,
        amount=Decimal(payment.amount),
        currency=payment.currency,
        message="Payment already completed" if result.already_paid else None,
        client_data=result.client_data,
    )


@router.post("/verify", response_model=PaymentVerifyOut)
async def verify(
    body: PaymentVerifyIn,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    gateways: dict = Depends(get_gateways),
):
    payment, already_paid = await payments.verify_payment(
        db,
        body.payment_id,
        current_user,
        gateways,
        provider=body.provider,
        payment_intent_id=body.payment_intent_id,
        razorpay_order_id=body.razorpay_order_id,
        razorpay_payment_id=body.razorpay_payment_id,
        razorpay_signature=body.razorpay_signature,
        cashfree_order_id=body.cashfree_order_id,
    )
    message = "Payment already verified" if already_paid else "Payment verified successfully"
    return PaymentVerifyOut(message=message, payment=PaymentOut.model_validate(payment))


def _json_body(payload: bytes) -> dict:
    try:
        return json.loads(payload)
    except ValueError:
        raise ValidationError("Invalid payload")


@router.post("/webhook/stripe")
async def stripe_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
    gateways: dict = Depends(get_gateways),
):
    payload = await request.body()
    gateway = get_gateway(PaymentProvider.STRIPE, gateways)
    try:
        event = gateway.construct_event(payload, request.headers.get("stripe-signature"))
    except ValueError:
        logger.error("Invalid Stripe webhook payload")
        raise ValidationError("Invalid payload")
    except stripe.SignatureVerificationError as e:
        logger.error("Stripe webhook signature verification failed: %s", e)
        raise ValidationError(f"Webhook Error: {e}")

    await payments.handle_stripe_event(db, event)
    return {"received": True}


@router.post("/webhook/razorpay")
async def razorpay_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
    gateways: dict = Depends(get_gateways),
):
    payload = await request.body()
    gateway = get_gateway(PaymentProvider.RAZORPAY, gateways)
    if not gateway.verify_webhook_signature(payload, request.headers.get("x-razorpay-signature")):
        logger.error("Invalid Razorpay webhook signature")
        raise ValidationError("Invalid webhook signature")

    await payments.handle_razorpay_event(db, _json_body(payload))
    return {"received": True}


@router.post("/webhook/cashfree")
async def cashfree_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
    gateways: dict = Depends(get_gateways),
):
    payload = await request.body()
    gateway = get_gateway(PaymentProvider.CASHFREE, gateways)
    if not gateway.verify_webhook_signature(
        payload, request.headers.get("x-cf-timestamp"), request.headers.get("x-cf-signature")
    ):
        logger.error("Invalid Cashfree webhook signature")
        raise ValidationError("Invalid webhook signature")

    await payments.handle_cashfree_event(db, _json_body(payload))
    return {"received": True}
