"""Normalization of the service/staff pairs that make up a booking.

A booking request, or an appointment already stored, carries its services
either as a list of assignments or, for older single-service bookings, as
one primary service/staff pair. Everything downstream works on the uniform
list returned by ``normalize`` / ``appointment_items``.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Union
from uuid import UUID

from salonbook.core.errors import ValidationError
from salonbook.models.appointment import Appointment
from salonbook.models.service import Service
from salonbook.models.staff import Staff


@dataclass(frozen=True)
class BookingLine:
    service_id: UUID
    staff_id: UUID


@dataclass(frozen=True)
class AssignmentList:
    lines: tuple[BookingLine, ...]

    def __post_init__(self):
        if not self.lines:
            raise ValidationError("At least one service is required")


@dataclass(frozen=True)
class LegacySingle:
    line: BookingLine


ServiceAssignments = Union[AssignmentList, LegacySingle]


def normalize(assignments: ServiceAssignments) -> list[BookingLine]:
    if isinstance(assignments, AssignmentList):
        return list(assignments.lines)
    return [assignments.line]


@dataclass
class AppointmentItem:
    """A stored service slot with its loaded service and staff."""
    service: Service
    staff: Staff | None
    start_time: datetime
    end_time: datetime
    status: str | None = None


def appointment_items(appointment: Appointment) -> list[AppointmentItem]:
    """Services of a stored appointment, falling back to the primary pair."""
    if appointment.assignments:
        return [
            AppointmentItem(
                service=a.service,
                staff=a.staff,
                start_time=a.start_time,
                end_time=a.end_time,
                status=a.status.value,
            )
            for a in appointment.assignments
        ]
    if appointment.primary_service is None:
        return []
    return [
        AppointmentItem(
            service=appointment.primary_service,
            staff=appointment.primary_staff,
            start_time=appointment.start_time,
            end_time=appointment.end_time,
        )
    ]
