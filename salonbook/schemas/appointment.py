"""Pydantic schemas for appointments."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID
from typing import Optional
from pydantic import field_validator

from salonbook.core.errors import ValidationError
from salonbook.models.appointment import AppointmentStatus, AssignmentStatus
from salonbook.models.payment import PaymentProvider, PaymentStatus
from salonbook.schemas.common import CamelModel, to_local_naive
from salonbook.services.lines import AssignmentList, BookingLine, LegacySingle, ServiceAssignments


class ServiceAssignmentIn(CamelModel):
    service_id: UUID
    staff_id: UUID


class AppointmentCreate(CamelModel):
    """Booking request: a ``services`` list, or the older single ``serviceId`` + ``staffId``."""
    start_time: datetime
    services: Optional[list[ServiceAssignmentIn]] = None
    service_id: Optional[UUID] = None
    staff_id: Optional[UUID] = None
    notes: Optional[str] = None

    @field_validator("start_time")
    @classmethod
    def normalize_start_time(cls, v: datetime) -> datetime:
        return to_local_naive(v)

    def to_assignments(self) -> ServiceAssignments:
        if self.services is not None:
            return AssignmentList(tuple(BookingLine(s.service_id, s.staff_id) for s in self.services))
        if self.service_id and self.staff_id:
            return LegacySingle(BookingLine(self.service_id, self.staff_id))
        raise ValidationError("Either services array or serviceId and staffId are required")


class AppointmentReschedule(CamelModel):
    start_time: datetime

    @field_validator("start_time")
    @classmethod
    def normalize_start_time(cls, v: datetime) -> datetime:
        return to_local_naive(v)


class NamedRef(CamelModel):
    id: UUID
    name: str


class CustomerRef(CamelModel):
    id: UUID
    full_name: Optional[str] = None
    email: str
    phone: Optional[str] = None


class ServiceRef(CamelModel):
    id: UUID
    name: str
    duration_minutes: int
    price: Decimal


class AssignmentOut(CamelModel):
    id: UUID
    service_id: UUID
    staff_id: UUID
    position: int
    start_time: datetime
    end_time: datetime
    status: AssignmentStatus
    service: Optional[ServiceRef] = None
    staff: Optional[NamedRef] = None


class PaymentSummary(CamelModel):
    id: UUID
    amount: Decimal
    currency: str
    provider: PaymentProvider
    status: PaymentStatus


class AppointmentOut(CamelModel):
    id: UUID
    customer_id: UUID
    service_id: Optional[UUID] = None
    staff_id: Optional[UUID] = None
    start_time: datetime
    end_time: datetime
    status: AppointmentStatus
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    customer: Optional[CustomerRef] = None
    assignments: list[AssignmentOut] = []
    payment: Optional[PaymentSummary] = None


class AppointmentActionOut(CamelModel):
    message: str
    appointment: AppointmentOut


class StaffAppointmentsOut(CamelModel):
    staff: NamedRef
    appointments: list[AppointmentOut]
