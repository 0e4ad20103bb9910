"""Booking allocation: lays out multi-service appointments and validates them.

A booking is a sequence of service/staff pairs handled back to back: the
customer moves from one station to the next, so the second service starts
when the first ends even when a different staff member performs it.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from salonbook.core.errors import ConflictError, Forbidden, InvalidAssignment, NotFound, PolicyViolation, ValidationError
from salonbook.core.policy import SchedulingPolicy
from salonbook.models.appointment import (
    Appointment,
    AppointmentServiceAssignment,
    AppointmentStatus,
    AssignmentStatus,
)
from salonbook.models.service import Service
from salonbook.models.staff import Staff, StaffService
from salonbook.models.user import User
from salonbook.services import events
from salonbook.services.availability import get_windows
from salonbook.services.conflicts import find_conflict
from salonbook.services.intervals import day_of_week, fits_window, format_clock, minutes
from salonbook.services.lines import ServiceAssignments, normalize

logger = logging.getLogger(__name__)


@dataclass
class PlannedService:
    service: Service
    staff: Staff
    start_time: datetime
    end_time: datetime


async def load_appointment(db: AsyncSession, appointment_id: UUID) -> Appointment:
    """Fetch an appointment with its services, staff, customer and payment."""
    result = await db.execute(
        select(Appointment)
        .where(Appointment.id == appointment_id)
        .execution_options(populate_existing=True)
    )
    appointment = result.scalar_one_or_none()
    if not appointment:
        raise NotFound("Appointment not found")
    return appointment


def _hours(value: float) -> str:
    return f"{value:g}"


def lock_staff_query(staff_ids):
    """Locks the given staff rows, always in id order."""
    return select(Staff.id).where(Staff.id.in_(staff_ids)).order_by(Staff.id).with_for_update()


class BookingAllocator:
    """Creates, reschedules and cancels appointments.

    Every check runs before the single commit, so a rejected request never
    leaves a partial appointment behind. Events for the notifier collect in
    ``self.events`` and are only meaningful once the call has returned.
    """

    def __init__(
        self,
        db: AsyncSession,
        policy: SchedulingPolicy,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.db = db
        self.policy = policy
        self.clock = clock
        self.events: list = []

    async def _service(self, service_id: UUID) -> Service:
        result = await self.db.execute(
            select(Service).where(Service.id == service_id, Service.is_active.is_(True))
        )
        service = result.scalar_one_or_none()
        if not service:
            raise NotFound(f"Service {service_id} not found")
        return service

    async def _staff(self, staff_id: UUID) -> Staff:
        # Row lock serializes concurrent bookings for the same staff on PostgreSQL
        result = await self.db.execute(
            select(Staff).where(Staff.id == staff_id, Staff.is_active.is_(True)).with_for_update()
        )
        staff = result.scalar_one_or_none()
        if not staff:
            raise NotFound(f"Staff {staff_id} not found")
        return staff

    async def _lock_staff(self, staff_ids) -> None:
        await self.db.execute(lock_staff_query(sorted(set(staff_ids))))

    async def _ensure_permitted(self, staff: Staff, service: Service) -> None:
        result = await self.db.execute(
            select(StaffService.id).where(
                StaffService.staff_id == staff.id, StaffService.service_id == service.id
            )
        )
        if result.first() is None:
            raise InvalidAssignment(f"Staff {staff.name} is not assigned to service {service.name}")

    async def _ensure_within_hours(self, staff: Staff, start: datetime, end: datetime) -> None:
        windows = await get_windows(self.db, staff.id, day_of_week(start.date()))
        if not windows:
            return
        if any(fits_window(start, end, w.start_time, w.end_time) for w in windows):
            return
        hours = ", ".join(f"{format_clock(w.start_time)} to {format_clock(w.end_time)}" for w in windows)
        raise ConflictError(
            f"{staff.name} is only available from {hours} on this day",
            staff_id=staff.id,
            reason="outside-hours",
        )

    async def _ensure_free(
        self, staff: Staff, start: datetime, end: datetime, exclude_appointment_id: UUID | None = None
    ) -> None:
        clash = await find_conflict(self.db, staff.id, start, end, exclude_appointment_id)
        if clash is not None:
            raise ConflictError(
                f"{staff.name} has a conflicting appointment at this time",
                staff_id=staff.id,
                reason="conflicting-appointment",
            )

    async def plan(self, assignments: ServiceAssignments, start_time: datetime) -> list[PlannedService]:
        """Resolve the pairs and lay their sub-intervals out back to back."""
        plan = []
        cursor = start_time
        for line in normalize(assignments):
            service = await self._service(line.service_id)
            staff = await self._staff(line.staff_id)
            await self._ensure_permitted(staff, service)
            end = cursor + minutes(service.duration_minutes)
            plan.append(PlannedService(service=service, staff=staff, start_time=cursor, end_time=end))
            cursor = end
        return plan

    async def create_booking(
        self,
        customer_id: UUID,
        assignments: ServiceAssignments,
        start_time: datetime,
        notes: str | None = None,
    ) -> Appointment:
        if start_time is None:
            raise ValidationError("startTime is required")

        customer = await self.db.get(User, customer_id)
        if not customer:
            raise NotFound("User not found")

        plan = await self.plan(assignments, start_time)
        end_time = plan[-1].end_time

        # Each staff member is checked over the whole appointment span, not just
        # their own sub-interval.
        for item in plan:
            await self._ensure_within_hours(item.staff, item.start_time, item.end_time)
            await self._ensure_free(item.staff, start_time, end_time)

        primary = plan[0]
        appointment = Appointment(
            customer_id=customer_id,
            service_id=primary.service.id,
            staff_id=primary.staff.id,
            start_time=start_time,
            end_time=end_time,
            status=AppointmentStatus.PENDING,
            notes=notes or None,
        )
        appointment.assignments = [
            AppointmentServiceAssignment(
                service_id=item.service.id,
                staff_id=item.staff.id,
                position=position,
                start_time=item.start_time,
                end_time=item.end_time,
                status=AssignmentStatus.PENDING,
            )
            for position, item in enumerate(plan)
        ]
        self.db.add(appointment)
        await self.db.commit()

        logger.info(
            "Booked appointment %s for customer %s: %d service(s) %s-%s",
            appointment.id, customer_id, len(plan), start_time, end_time,
        )
        return await load_appointment(self.db, appointment.id)

    def _ensure_actor_owns(self, appointment: Appointment, actor: User, action: str) -> None:
        if appointment.customer_id != actor.id and not actor.is_admin:
            raise Forbidden(f"You can only {action} your own appointments")

    async def reschedule(self, appointment_id: UUID, new_start: datetime, actor: User) -> Appointment:
        """Move an appointment, shifting every service by the same amount."""
        if new_start is None:
            raise ValidationError("startTime is required")

        appointment = await load_appointment(self.db, appointment_id)
        self._ensure_actor_owns(appointment, actor, "reschedule")

        if appointment.is_terminal:
            raise PolicyViolation(f"Cannot reschedule {appointment.status.value} appointments")

        now = self.clock()
        if appointment.start_time - now < self.policy.reschedule_notice:
            raise PolicyViolation(
                f"Appointments can only be rescheduled at least "
                f"{_hours(self.policy.min_reschedule_hours)} hours in advance"
            )
        if new_start < now:
            raise ValidationError("Cannot reschedule an appointment into the past")

        delta = new_start - appointment.start_time
        if appointment.assignments:
            moves = [
                (assignment, assignment.staff, assignment.start_time + delta, assignment.end_time + delta)
                for assignment in appointment.assignments
            ]
            new_end = appointment.end_time + delta
        else:
            # Single-service appointment booked before assignments existed
            duration = (
                minutes(appointment.primary_service.duration_minutes)
                if appointment.primary_service
                else appointment.end_time - appointment.start_time
            )
            new_end = new_start + duration
            moves = [(None, appointment.primary_staff, new_start, new_end)]

        await self._lock_staff(staff.id for _, staff, _, _ in moves if staff is not None)
        for _, staff, start, end in moves:
            if staff is None:
                continue
            await self._ensure_within_hours(staff, start, end)
            await self._ensure_free(staff, new_start, new_end, exclude_appointment_id=appointment.id)

        for assignment, _, start, end in moves:
            if assignment is not None:
                assignment.start_time = start
                assignment.end_time = end
        appointment.start_time = new_start
        appointment.end_time = new_end
        await self.db.commit()

        logger.info("Rescheduled appointment %s to %s-%s", appointment.id, new_start, new_end)
        appointment = await load_appointment(self.db, appointment.id)
        self.events.append(events.appointment_rescheduled(appointment))
        return appointment

    async def cancel(self, appointment_id: UUID, actor: User) -> Appointment:
        appointment = await load_appointment(self.db, appointment_id)
        self._ensure_actor_owns(appointment, actor, "cancel")

        if appointment.status == AppointmentStatus.CANCELLED:
            raise PolicyViolation("Appointment is already cancelled")
        if appointment.status == AppointmentStatus.COMPLETED:
            raise PolicyViolation("Cannot cancel completed appointments")

        if appointment.start_time - self.clock() < self.policy.cancel_notice:
            raise PolicyViolation(
                f"Appointments can only be cancelled at least {_hours(self.policy.min_cancel_hours)} "
                f"hours in advance. Please contact us for assistance."
            )

        appointment.status = AppointmentStatus.CANCELLED
        await self.db.commit()

        logger.info("Cancelled appointment %s by %s", appointment.id, actor.id)
        appointment = await load_appointment(self.db, appointment.id)
        self.events.append(events.appointment_cancelled(appointment))
        return appointment
