"""Pydantic schemas for payments."""

from decimal import Decimal
from uuid import UUID
from typing import Any, Optional

from salonbook.models.payment import PaymentProvider, PaymentStatus
from salonbook.schemas.common import CamelModel


class PaymentIntentIn(CamelModel):
    appointment_id: UUID
    provider: PaymentProvider = PaymentProvider.STRIPE


class PaymentOut(CamelModel):
    id: UUID
    appointment_id: UUID
    amount: Decimal
    currency: str
    provider: PaymentProvider
    provider_payment_id: Optional[str] = None
    status: PaymentStatus


class PaymentIntentOut(CamelModel):
    payment_id: UUID
    provider: PaymentProvider
    amount: Decimal
    currency: str
    message: Optional[str] = None
    client_data: dict[str, Any] = {}


class PaymentVerifyIn(CamelModel):
    payment_id: UUID
    provider: Optional[PaymentProvider] = None
    payment_intent_id: Optional[str] = None
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None
    cashfree_order_id: Optional[str] = None


class PaymentVerifyOut(CamelModel):
    message: str
    payment: PaymentOut
