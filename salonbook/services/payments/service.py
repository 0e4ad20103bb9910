"""Payment lifecycle: create a provider session, then mark it paid.

A payment only ever becomes ``paid`` after the provider has confirmed it,
either through an explicit verification call or a signed webhook.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from salonbook.core.config import settings
from salonbook.core.errors import Forbidden, NotFound, PolicyViolation, ValidationError
from salonbook.models.appointment import Appointment, AppointmentStatus
from salonbook.models.payment import Payment, PaymentProvider, PaymentStatus
from salonbook.models.user import User
from salonbook.services.booking import load_appointment
from salonbook.services.lines import appointment_items
from salonbook.services.payments.base import Verification
from salonbook.services.payments.registry import get_gateway

logger = logging.getLogger(__name__)


@dataclass
class IntentResult:
    payment: Payment
    client_data: dict = field(default_factory=dict)
    already_paid: bool = False


def appointment_amount(appointment: Appointment) -> Decimal:
    """Sum of the service prices across every line of the appointment."""
    items = appointment_items(appointment)
    if not items:
        raise ValidationError("No services found for this appointment")
    return sum((Decimal(item.service.price or 0) for item in items), Decimal("0"))


def _ensure_can_pay(appointment: Appointment, actor: User) -> None:
    if not actor.is_admin and appointment.customer_id != actor.id:
        raise Forbidden("You are not allowed to pay for this appointment")


async def create_payment_intent(
    db: AsyncSession,
    appointment_id: UUID,
    provider: PaymentProvider,
    actor: User,
    gateways: dict,
) -> IntentResult:
    appointment = await load_appointment(db, appointment_id)
    _ensure_can_pay(appointment, actor)

    if appointment.status == AppointmentStatus.CANCELLED:
        raise PolicyViolation("Cannot pay for a cancelled appointment")

    payment = appointment.payment
    if payment is not None and payment.is_paid:
        return IntentResult(payment=payment, already_paid=True)

    amount = appointment_amount(appointment)
    currency = settings.PAYMENT_CURRENCY
    customer = appointment.customer
    metadata = {
        "appointmentId": str(appointment.id),
        "userId": str(customer.id),
        "customerEmail": customer.email,
        "customerName": customer.full_name or "",
        "customerPhone": customer.phone or "",
    }
    if provider == PaymentProvider.STRIPE:
        # Stripe metadata is visible on the dashboard; keep it to identifiers
        metadata = {"appointmentId": metadata["appointmentId"], "userId": metadata["userId"]}

    gateway = get_gateway(provider, gateways)
    intent = await gateway.create_intent(amount, currency, metadata)

    if payment is None:
        payment = Payment(appointment_id=appointment.id)
        db.add(payment)
    payment.amount = amount
    payment.currency = currency
    payment.provider = provider
    payment.provider_payment_id = intent.session_ref
    payment.status = PaymentStatus.PENDING
    await db.commit()

    logger.info(
        "Created %s payment session %s for appointment %s (%s %s)",
        provider.value, intent.session_ref, appointment.id, amount, currency,
    )
    return IntentResult(payment=payment, client_data=intent.client_data)


async def get_payment(db: AsyncSession, payment_id: UUID) -> Payment:
    result = await db.execute(select(Payment).where(Payment.id == payment_id))
    payment = result.scalar_one_or_none()
    if not payment:
        raise NotFound("Payment not found")
    return payment


async def _apply_verification(db: AsyncSession, payment: Payment, verification: Verification) -> bool:
    if not verification.is_paid:
        return False
    if verification.amount is not None and Decimal(verification.amount) != Decimal(payment.amount):
        logger.warning(
            "Payment %s: provider reports %s, expected %s", payment.id, verification.amount, payment.amount
        )
        raise ValidationError("Payment amount does not match")
    payment.status = PaymentStatus.PAID
    if verification.provider_payment_id:
        payment.provider_payment_id = verification.provider_payment_id
    await db.commit()
    logger.info("Payment %s verified as paid (%s)", payment.id, payment.provider.value)
    return True


async def verify_with_gateway(db: AsyncSession, payment: Payment, gateways: dict) -> Verification:
    """Ask the provider about a stored payment session and record a paid result."""
    if payment.is_paid:
        return Verification(status=PaymentStatus.PAID.value, provider_payment_id=payment.provider_payment_id)
    if not payment.provider or not payment.provider_payment_id:
        raise ValidationError("Cannot verify payment. Payment provider or ID missing.")
    gateway = get_gateway(payment.provider, gateways)
    verification = await gateway.verify(payment.provider_payment_id)
    await _apply_verification(db, payment, verification)
    return verification


async def verify_payment(
    db: AsyncSession,
    payment_id: UUID,
    actor: User,
    gateways: dict,
    provider: PaymentProvider | None = None,
    payment_intent_id: str | None = None,
    razorpay_order_id: str | None = None,
    razorpay_payment_id: str | None = None,
    razorpay_signature: str | None = None,
    cashfree_order_id: str | None = None,
) -> tuple[Payment, bool]:
    """Verify a payment after checkout. Returns the payment and whether it was already paid."""
    payment = await get_payment(db, payment_id)
    appointment = await load_appointment(db, payment.appointment_id)
    _ensure_can_pay(appointment, actor)

    if payment.is_paid:
        return payment, True

    provider = PaymentProvider(provider) if provider else payment.provider
    if provider != payment.provider:
        raise ValidationError("Invalid verification parameters")
    gateway = get_gateway(provider, gateways)

    # The submitted session must be the one opened for this payment
    session_ref = payment.provider_payment_id
    if not session_ref:
        raise ValidationError("Invalid verification parameters")
    if provider == PaymentProvider.STRIPE and payment_intent_id == session_ref:
        verification = await gateway.verify(payment_intent_id)
    elif (
        provider == PaymentProvider.RAZORPAY
        and razorpay_order_id == session_ref
        and razorpay_payment_id
        and razorpay_signature
    ):
        if not gateway.verify_signature(razorpay_order_id, razorpay_payment_id, razorpay_signature):
            raise ValidationError("Invalid payment signature")
        verification = await gateway.verify(razorpay_payment_id)
    elif provider == PaymentProvider.CASHFREE and cashfree_order_id == session_ref:
        verification = await gateway.verify(cashfree_order_id)
    else:
        raise ValidationError("Invalid verification parameters")

    if not await _apply_verification(db, payment, verification):
        raise PolicyViolation("Payment not completed yet")
    return payment, False


async def _payment_by_reference(db: AsyncSession, reference: str) -> Payment | None:
    result = await db.execute(select(Payment).where(Payment.provider_payment_id == reference))
    return result.scalars().first()


async def mark_paid_by_reference(
    db: AsyncSession, reference: str, provider_payment_id: str | None = None
) -> Payment | None:
    """Webhook path: mark the payment holding ``reference`` as paid."""
    payment = await _payment_by_reference(db, reference)
    if payment is None:
        logger.warning("Webhook for unknown payment reference %s", reference)
        return None
    if payment.is_paid:
        return payment
    payment.status = PaymentStatus.PAID
    if provider_payment_id:
        payment.provider_payment_id = provider_payment_id
    await db.commit()
    logger.info("Payment %s marked as paid via %s webhook", payment.id, payment.provider.value)
    return payment


async def mark_failed_by_reference(db: AsyncSession, reference: str) -> Payment | None:
    payment = await _payment_by_reference(db, reference)
    if payment is None or payment.is_paid:
        return payment
    payment.status = PaymentStatus.FAILED
    await db.commit()
    logger.info("Payment %s marked as failed via webhook", payment.id)
    return payment


async def handle_stripe_event(db: AsyncSession, event) -> None:
    event_type = event["type"]
    data = event["data"]["object"]
    logger.info("Stripe webhook received: %s", event_type)

    if event_type == "payment_intent.succeeded":
        await mark_paid_by_reference(db, data["id"])
    elif event_type == "payment_intent.payment_failed":
        await mark_failed_by_reference(db, data["id"])
    else:
        logger.info("Unhandled Stripe event type: %s", event_type)


async def handle_razorpay_event(db: AsyncSession, payload: dict) -> None:
    event_type = payload.get("event")
    entity = (payload.get("payload") or {}).get("payment", {}).get("entity")
    logger.info("Razorpay webhook received: %s", event_type)

    if event_type == "payment.captured" and entity:
        await mark_paid_by_reference(db, entity["order_id"], provider_payment_id=entity["id"])
    elif event_type == "payment.failed" and entity:
        await mark_failed_by_reference(db, entity["order_id"])
    else:
        logger.info("Unhandled Razorpay event type: %s", event_type)


async def handle_cashfree_event(db: AsyncSession, payload: dict) -> None:
    data = payload.get("data") or {}
    order = data.get("order") or {}
    order_id = order.get("order_id")
    order_status = order.get("order_status")
    logger.info("Cashfree webhook received for order %s: %s", order_id, order_status)

    payment = data.get("payment") or {}
    if order_id and (order_status == "PAID" or payment.get("payment_status") == "SUCCESS"):
        cf_payment_id = payment.get("cf_payment_id")
        await mark_paid_by_reference(db, order_id, provider_payment_id=str(cf_payment_id) if cf_payment_id else None)
