"""Appointment and per-service assignment models."""

from sqlalchemy import Column, DateTime, Integer, ForeignKey, Enum as SQLEnum, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import uuid
from datetime import datetime
import enum
from salonbook.core.database import Base, enum_values


class AppointmentStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AssignmentStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    customer_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)

    # First service/staff pair, kept for single-service consumers
    service_id = Column(UUID(as_uuid=True), ForeignKey("services.id"), nullable=True)
    staff_id = Column(UUID(as_uuid=True), ForeignKey("staff.id"), nullable=True, index=True)

    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=False)
    status = Column(
        SQLEnum(AppointmentStatus, values_callable=enum_values),
        default=AppointmentStatus.PENDING,
        nullable=False,
        index=True,
    )
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    customer = relationship("User", back_populates="appointments", lazy="selectin")
    primary_service = relationship("Service", lazy="selectin")
    primary_staff = relationship("Staff", lazy="selectin")
    assignments = relationship(
        "AppointmentServiceAssignment",
        back_populates="appointment",
        cascade="all, delete-orphan",
        order_by="AppointmentServiceAssignment.position",
        lazy="selectin",
    )
    payment = relationship("Payment", back_populates="appointment", uselist=False, lazy="selectin")

    @property
    def is_terminal(self) -> bool:
        return self.status in (AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED)


class AppointmentServiceAssignment(Base):
    """One service performed by one staff member inside an appointment."""

    __tablename__ = "appointment_services"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    appointment_id = Column(
        UUID(as_uuid=True), ForeignKey("appointments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    service_id = Column(UUID(as_uuid=True), ForeignKey("services.id"), nullable=False)
    staff_id = Column(UUID(as_uuid=True), ForeignKey("staff.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    status = Column(SQLEnum(AssignmentStatus, values_callable=enum_values), default=AssignmentStatus.PENDING, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    appointment = relationship("Appointment", back_populates="assignments")
    service = relationship("Service", lazy="selectin")
    staff = relationship("Staff", lazy="selectin")
