"""Appointment lifecycle transitions.

    pending   -> confirmed | completed | cancelled
    confirmed -> completed | cancelled
    completed, cancelled: terminal

Confirmation and completion are both gated on a verified payment.
Cancellation lives in the booking allocator because it also enforces the
notice policy.
"""

import logging
from datetime import datetime
from typing import Callable
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from salonbook.core.errors import Forbidden, NotFound, PolicyViolation
from salonbook.models.appointment import Appointment, AppointmentStatus, AssignmentStatus
from salonbook.models.user import User, UserRole
from salonbook.services import events
from salonbook.services.booking import load_appointment
from salonbook.services.payments.service import verify_with_gateway
from salonbook.services.staff_profiles import get_staff_profile

logger = logging.getLogger(__name__)

TRANSITIONS = {
    AppointmentStatus.PENDING: {
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
    },
    AppointmentStatus.CONFIRMED: {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED},
    AppointmentStatus.COMPLETED: set(),
    AppointmentStatus.CANCELLED: set(),
}


def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    return target in TRANSITIONS[current]


def _require_paid(appointment: Appointment, action: str) -> None:
    payment = appointment.payment
    if payment is None or not payment.is_paid:
        status = payment.status.value if payment else "missing"
        raise PolicyViolation(
            f"Cannot {action}. Payment is required and must be completed first. Payment status: {status}"
        )


class AppointmentStateMachine:
    def __init__(self, db: AsyncSession, clock: Callable[[], datetime] = datetime.now):
        self.db = db
        self.clock = clock
        self.events: list = []

    async def confirm(self, appointment_id: UUID, actor: User) -> Appointment:
        """Admin confirmation; only a pending, paid appointment can be confirmed."""
        if not actor.is_admin:
            raise Forbidden("Only admins can confirm appointments")

        appointment = await load_appointment(self.db, appointment_id)
        if appointment.status == AppointmentStatus.CONFIRMED:
            raise PolicyViolation("Appointment is already confirmed")
        if appointment.status != AppointmentStatus.PENDING:
            raise PolicyViolation(f"Cannot confirm a {appointment.status.value} appointment")
        _require_paid(appointment, "confirm appointment")

        appointment.status = AppointmentStatus.CONFIRMED
        await self.db.commit()
        logger.info("Appointment %s confirmed by %s", appointment.id, actor.id)

        appointment = await load_appointment(self.db, appointment.id)
        self.events.append(events.booking_confirmed(appointment))
        self.events.append(events.invoice_ready(appointment, appointment.payment))
        return appointment

    async def verify_payment(self, appointment_id: UUID, actor: User, gateways: dict) -> Appointment:
        """Admin check of the appointment's payment against its gateway."""
        if not actor.is_admin:
            raise Forbidden("Only admins can verify payments")

        appointment = await load_appointment(self.db, appointment_id)
        payment = appointment.payment
        if payment is None:
            raise NotFound("No payment record found for this appointment")
        if payment.is_paid:
            return appointment

        verification = await verify_with_gateway(self.db, payment, gateways)
        if not verification.is_paid:
            raise PolicyViolation(f"Payment verification failed. Payment status: {verification.status}")

        appointment = await load_appointment(self.db, appointment.id)
        self.events.append(events.invoice_ready(appointment, appointment.payment))
        return appointment

    async def verify_and_confirm(self, appointment_id: UUID, actor: User, gateways: dict) -> Appointment:
        if not actor.is_admin:
            raise Forbidden("Only admins can confirm appointments")

        appointment = await load_appointment(self.db, appointment_id)
        if appointment.status == AppointmentStatus.CONFIRMED:
            raise PolicyViolation("Appointment is already confirmed")
        if appointment.status != AppointmentStatus.PENDING:
            raise PolicyViolation(f"Cannot confirm a {appointment.status.value} appointment")
        if appointment.payment is None:
            raise NotFound("No payment record found for this appointment")

        verification = await verify_with_gateway(self.db, appointment.payment, gateways)
        if not verification.is_paid:
            raise PolicyViolation(
                f"Payment verification failed. Payment status: {verification.status}. Cannot confirm appointment."
            )
        return await self.confirm(appointment.id, actor)

    async def _authorize_legacy_completion(self, appointment: Appointment, actor: User, service_id: UUID):
        # Single-service appointment: the appointment itself is the unit of work
        if appointment.service_id != service_id:
            raise NotFound("Service not found in this appointment")
        if actor.role == UserRole.STAFF.value:
            staff = await get_staff_profile(self.db, actor)
            if staff is None or appointment.staff_id != staff.id:
                raise Forbidden("You can only complete services assigned to you")
        elif not actor.is_admin:
            raise Forbidden("Only staff members can complete services")
        if appointment.status == AppointmentStatus.COMPLETED:
            raise PolicyViolation("Service is already completed")
        return None

    async def _authorize_completion(self, appointment: Appointment, actor: User, service_id: UUID):
        """Pick the assignment the actor may complete for ``service_id``."""
        if not appointment.assignments:
            return await self._authorize_legacy_completion(appointment, actor, service_id)

        matching = [a for a in appointment.assignments if a.service_id == service_id]
        if not matching:
            raise NotFound("Service not found in this appointment")

        if actor.role == UserRole.STAFF.value:
            staff = await get_staff_profile(self.db, actor)
            mine = [a for a in matching if staff is not None and a.staff_id == staff.id]
            if not mine:
                raise Forbidden("You can only complete services assigned to you")
            matching = mine
        elif not actor.is_admin:
            raise Forbidden("Only staff members can complete services")

        open_ = [a for a in matching if a.status != AssignmentStatus.COMPLETED]
        if not open_:
            raise PolicyViolation("Service is already completed")
        return open_[0]

    async def complete_service(self, appointment_id: UUID, service_id: UUID, actor: User) -> Appointment:
        """Complete one service; the appointment completes with its last service."""
        appointment = await load_appointment(self.db, appointment_id)
        assignment = await self._authorize_completion(appointment, actor, service_id)

        if appointment.status == AppointmentStatus.CANCELLED:
            raise PolicyViolation("Cannot complete service in a cancelled appointment")
        _require_paid(appointment, "complete service")

        if assignment is not None:
            assignment.status = AssignmentStatus.COMPLETED
        if all(a.status == AssignmentStatus.COMPLETED for a in appointment.assignments):
            appointment.status = AppointmentStatus.COMPLETED
        await self.db.commit()

        logger.info(
            "Service %s of appointment %s completed by %s (appointment now %s)",
            service_id, appointment.id, actor.id, appointment.status.value,
        )
        return await load_appointment(self.db, appointment.id)

    async def complete(self, appointment_id: UUID, actor: User) -> Appointment:
        """Complete every remaining service and the appointment itself."""
        if actor.role not in (UserRole.STAFF.value, UserRole.ADMIN.value):
            raise Forbidden("Only staff members can complete appointments")

        appointment = await load_appointment(self.db, appointment_id)
        if appointment.status == AppointmentStatus.COMPLETED:
            raise PolicyViolation("Appointment is already completed")
        if not can_transition(appointment.status, AppointmentStatus.COMPLETED):
            raise PolicyViolation(f"Cannot complete a {appointment.status.value} appointment")
        _require_paid(appointment, "complete appointment")

        for assignment in appointment.assignments:
            assignment.status = AssignmentStatus.COMPLETED
        appointment.status = AppointmentStatus.COMPLETED
        await self.db.commit()

        logger.info("Appointment %s completed by %s", appointment.id, actor.id)
        return await load_appointment(self.db, appointment.id)
