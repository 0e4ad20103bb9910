"""ORM models; importing this package registers every table on Base.metadata."""

from salonbook.models.user import User, UserRole
from salonbook.models.service import Service
from salonbook.models.staff import Staff, StaffService, StaffAvailability
from salonbook.models.appointment import (
    Appointment,
    AppointmentServiceAssignment,
    AppointmentStatus,
    AssignmentStatus,
)
from salonbook.models.payment import Payment, PaymentProvider, PaymentStatus
from salonbook.models.review import Review

__all__ = [
    "User",
    "UserRole",
    "Service",
    "Staff",
    "StaffService",
    "StaffAvailability",
    "Appointment",
    "AppointmentServiceAssignment",
    "AppointmentStatus",
    "AssignmentStatus",
    "Payment",
    "PaymentProvider",
    "PaymentStatus",
    "Review",
]
