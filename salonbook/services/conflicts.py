"""Detects overlap between a proposed interval and a staff member's bookings.

A staff member is booked by an appointment when they are its primary staff
or are assigned to any of its services. Clashes are measured against the
appointment's full span; cancelled appointments never clash.
"""

from datetime import datetime
from uuid import UUID
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from salonbook.models.appointment import Appointment, AppointmentServiceAssignment, AppointmentStatus


def staff_appointments_query(staff_id: UUID):
    """Non-cancelled appointments that involve ``staff_id``."""
    assigned = select(AppointmentServiceAssignment.appointment_id).where(
        AppointmentServiceAssignment.staff_id == staff_id
    )
    return select(Appointment).where(
        Appointment.status != AppointmentStatus.CANCELLED,
        or_(Appointment.staff_id == staff_id, Appointment.id.in_(assigned)),
    )


async def find_conflict(
    db: AsyncSession,
    staff_id: UUID,
    start: datetime,
    end: datetime,
    exclude_appointment_id: UUID | None = None,
) -> Appointment | None:
    """First appointment of ``staff_id`` overlapping ``[start, end)``, if any."""
    query = staff_appointments_query(staff_id).where(
        Appointment.start_time < end,
        Appointment.end_time > start,
    )
    if exclude_appointment_id is not None:
        query = query.where(Appointment.id != exclude_appointment_id)
    result = await db.execute(query.order_by(Appointment.start_time).limit(1))
    return result.scalars().first()


async def has_conflict(
    db: AsyncSession,
    staff_id: UUID,
    start: datetime,
    end: datetime,
    exclude_appointment_id: UUID | None = None,
) -> bool:
    return await find_conflict(db, staff_id, start, end, exclude_appointment_id) is not None


async def busy_intervals(
    db: AsyncSession, staff_id: UUID, range_start: datetime, range_end: datetime
) -> list[tuple[datetime, datetime]]:
    """Spans of the staff member's appointments touching ``[range_start, range_end)``."""
    query = staff_appointments_query(staff_id).where(
        Appointment.start_time < range_end,
        Appointment.end_time > range_start,
    )
    result = await db.execute(query.order_by(Appointment.start_time))
    return [(a.start_time, a.end_time) for a in result.scalars().all()]
