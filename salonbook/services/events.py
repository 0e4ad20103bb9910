"""Post-commit booking events.

Services return these alongside their result; callers hand them to
``salonbook.services.notifier.dispatch_events`` only after the transaction
has committed, so a failed notification can never undo a state change.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from salonbook.models.appointment import Appointment
from salonbook.models.payment import Payment
from salonbook.services.lines import appointment_items


@dataclass(frozen=True)
class Recipient:
    email: str | None
    name: str
    phone: str | None


@dataclass(frozen=True)
class ServiceLine:
    service_name: str
    staff_name: str
    start_time: datetime
    price: Decimal


@dataclass(frozen=True)
class BookingConfirmed:
    appointment_id: UUID
    recipient: Recipient
    start_time: datetime
    lines: tuple[ServiceLine, ...]


@dataclass(frozen=True)
class AppointmentRescheduled:
    appointment_id: UUID
    recipient: Recipient
    start_time: datetime
    lines: tuple[ServiceLine, ...]


@dataclass(frozen=True)
class AppointmentCancelled:
    appointment_id: UUID
    recipient: Recipient
    start_time: datetime


@dataclass(frozen=True)
class PaymentInvoiceReady:
    appointment_id: UUID
    recipient: Recipient
    amount: Decimal
    currency: str
    provider: str
    provider_payment_id: str | None
    lines: tuple[ServiceLine, ...] = field(default_factory=tuple)


DAY_BEFORE = "day_before"
SOON = "soon"


@dataclass(frozen=True)
class AppointmentReminderDue:
    appointment_id: UUID
    kind: str
    recipient: Recipient
    start_time: datetime
    lines: tuple[ServiceLine, ...]


def recipient_for(appointment: Appointment) -> Recipient:
    customer = appointment.customer
    return Recipient(email=customer.email, name=customer.full_name or customer.email, phone=customer.phone)


def service_lines(appointment: Appointment) -> tuple[ServiceLine, ...]:
    return tuple(
        ServiceLine(
            service_name=item.service.name,
            staff_name=item.staff.name if item.staff else "our team",
            start_time=item.start_time,
            price=Decimal(item.service.price or 0),
        )
        for item in appointment_items(appointment)
    )


def booking_confirmed(appointment: Appointment) -> BookingConfirmed:
    return BookingConfirmed(
        appointment_id=appointment.id,
        recipient=recipient_for(appointment),
        start_time=appointment.start_time,
        lines=service_lines(appointment),
    )


def appointment_rescheduled(appointment: Appointment) -> AppointmentRescheduled:
    return AppointmentRescheduled(
        appointment_id=appointment.id,
        recipient=recipient_for(appointment),
        start_time=appointment.start_time,
        lines=service_lines(appointment),
    )


def appointment_cancelled(appointment: Appointment) -> AppointmentCancelled:
    return AppointmentCancelled(
        appointment_id=appointment.id,
        recipient=recipient_for(appointment),
        start_time=appointment.start_time,
    )


def invoice_ready(appointment: Appointment, payment: Payment) -> PaymentInvoiceReady:
    return PaymentInvoiceReady(
        appointment_id=appointment.id,
        recipient=recipient_for(appointment),
        amount=Decimal(payment.amount),
        currency=payment.currency,
        provider=payment.provider.value,
        provider_payment_id=payment.provider_payment_id,
        lines=service_lines(appointment),
    )


def reminder_due(appointment: Appointment, kind: str) -> AppointmentReminderDue:
    return AppointmentReminderDue(
        appointment_id=appointment.id,
        kind=kind,
        recipient=recipient_for(appointment),
        start_time=appointment.start_time,
        lines=service_lines(appointment),
    )
