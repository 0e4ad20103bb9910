"""Customer notifications over email and SMS.

Every send is fire-and-forget: failures are logged and swallowed, and each
notification type is isolated from the others so a failed SMS never affects
an email that already went out.
"""

import logging
from typing import Iterable

from salonbook.services import sms
from salonbook.services.email_service import EmailService
from salonbook.services.events import (
    AppointmentCancelled,
    AppointmentReminderDue,
    AppointmentRescheduled,
    BookingConfirmed,
    PaymentInvoiceReady,
    DAY_BEFORE,
)

logger = logging.getLogger(__name__)


class Notifier:
    def __init__(self, email: EmailService | None = None):
        self.email = email or EmailService()

    async def send_booking_confirmation(self, event: BookingConfirmed) -> bool:
        if not event.recipient.email:
            return False
        return await self.email.send_booking_confirmation(
            event.recipient.email, event.recipient.name, event.start_time, event.lines
        )

    async def send_reschedule_notice(self, event: AppointmentRescheduled) -> bool:
        if not event.recipient.email:
            return False
        return await self.email.send_reschedule_notice(
            event.recipient.email, event.recipient.name, event.start_time, event.lines
        )

    async def send_cancellation_notice(self, event: AppointmentCancelled) -> bool:
        if not event.recipient.email:
            return False
        return await self.email.send_cancellation_notice(event.recipient.email, event.recipient.name, event.start_time)

    async def send_reminder(self, event: AppointmentReminderDue) -> bool:
        if not event.recipient.email:
            return False
        lead = "tomorrow" if event.kind == DAY_BEFORE else "in 15 minutes"
        return await self.email.send_reminder(
            event.recipient.email, event.recipient.name, event.start_time, event.lines, lead
        )

    async def send_invoice(self, event: PaymentInvoiceReady) -> bool:
        if not event.recipient.email:
            return False
        return await self.email.send_invoice(event.recipient.email, event.recipient.name, event)

    async def send_sms(self, to: str | None, body: str) -> bool:
        if not to:
            return False
        return await sms.send_sms(to, body)


def _first_line(event) -> str:
    if not event.lines:
        return "your appointment"
    line = event.lines[0]
    return f"{line.service_name} with {line.staff_name}"


def _sends_for(event, notifier: Notifier) -> list[tuple[str, object]]:
    """(label, awaitable-factory) pairs for one event."""
    if isinstance(event, BookingConfirmed):
        when = event.start_time.strftime("%d %b %Y %I:%M %p")
        return [
            ("confirmation email", lambda: notifier.send_booking_confirmation(event)),
            ("confirmation sms", lambda: notifier.send_sms(
                event.recipient.phone, f"Your appointment for {_first_line(event)} is confirmed for {when}."
            )),
        ]
    if isinstance(event, PaymentInvoiceReady):
        return [("invoice email", lambda: notifier.send_invoice(event))]
    if isinstance(event, AppointmentRescheduled):
        return [("reschedule email", lambda: notifier.send_reschedule_notice(event))]
    if isinstance(event, AppointmentCancelled):
        return [("cancellation email", lambda: notifier.send_cancellation_notice(event))]
    if isinstance(event, AppointmentReminderDue):
        at = event.start_time.strftime("%I:%M %p")
        if event.kind == DAY_BEFORE:
            text = f"Reminder: Your appointment for {_first_line(event)} is tomorrow at {at}."
        else:
            text = f"URGENT: Your appointment for {_first_line(event)} is in 15 minutes at {at}."
        return [
            ("reminder email", lambda: notifier.send_reminder(event)),
            ("reminder sms", lambda: notifier.send_sms(event.recipient.phone, text)),
        ]
    logger.warning("No notification wired for event %s", type(event).__name__)
    return []


async def dispatch_events(events: Iterable, notifier: Notifier) -> int:
    """Deliver notifications for committed events; never raises.

    Returns how many individual notifications went out.
    """
    delivered = 0
    for event in events:
        for label, send in _sends_for(event, notifier):
            try:
                if await send():
                    delivered += 1
            except Exception as e:
                logger.error(
                    "Failed to send %s for appointment %s: %s", label, event.appointment_id, e
                )
    return delivered


_notifier: Notifier | None = None


def get_notifier() -> Notifier:
    """FastAPI dependency; one notifier per process."""
    global _notifier
    if _notifier is None:
        _notifier = Notifier()
    return _notifier
