"""Appointment booking, rescheduling, cancellation and completion."""

import logging
from datetime import datetime
from typing import Callable
from uuid import UUID
from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from salonbook.core.database import get_db
from salonbook.core.deps import get_current_user, require_role, require_staff_or_admin
from salonbook.core.errors import NotFound
from salonbook.core.policy import SchedulingPolicy, get_clock, get_scheduling_policy
from salonbook.models.appointment import Appointment, AppointmentServiceAssignment
from salonbook.models.user import User, UserRole
from salonbook.schemas.appointment import (
    AppointmentActionOut,
    AppointmentCreate,
    AppointmentOut,
    AppointmentReschedule,
    NamedRef,
    StaffAppointmentsOut,
)
from salonbook.services.appointment_state import AppointmentStateMachine
from salonbook.services.booking import BookingAllocator
from salonbook.services.notifier import Notifier, dispatch_events, get_notifier
from salonbook.services.staff_profiles import get_staff_profile

router = APIRouter()
logger = logging.getLogger(__name__)


def get_allocator(
    db: AsyncSession = Depends(get_db),
    policy: SchedulingPolicy = Depends(get_scheduling_policy),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> BookingAllocator:
    return BookingAllocator(db, policy, clock)


def get_state_machine(
    db: AsyncSession = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> AppointmentStateMachine:
    return AppointmentStateMachine(db, clock)


@router.post("", response_model=AppointmentOut, status_code=201)
async def create_appointment(
    body: AppointmentCreate,
    current_user: User = Depends(get_current_user),
    allocator: BookingAllocator = Depends(get_allocator),
):
    """Book one or more services back to back starting at ``startTime``."""
    return await allocator.create_booking(
        customer_id=current_user.id,
        assignments=body.to_assignments(),
        start_time=body.start_time,
        notes=body.notes,
    )


@router.get("/my", response_model=list[AppointmentOut])
async def my_appointments(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Appointment)
        .where(Appointment.customer_id == current_user.id)
        .order_by(Appointment.start_time.desc())
    )
    return result.scalars().all()


@router.get("/staff/my", response_model=StaffAppointmentsOut)
async def staff_appointments(
    current_user: User = Depends(require_role(UserRole.STAFF)),
    db: AsyncSession = Depends(get_db),
):
    """Appointments in which the logged-in staff member performs any service."""
    staff = await get_staff_profile(db, current_user)
    if staff is None:
        raise NotFound("Staff profile not found. Please contact admin to link your account.")

    assigned = select(AppointmentServiceAssignment.appointment_id).where(
        AppointmentServiceAssignment.staff_id == staff.id
    )
    result = await db.execute(
        select(Appointment)
        .where(or_(Appointment.staff_id == staff.id, Appointment.id.in_(assigned)))
        .order_by(Appointment.start_time.asc())
    )
    return StaffAppointmentsOut(
        staff=NamedRef(id=staff.id, name=staff.name),
        appointments=[AppointmentOut.model_validate(a) for a in result.scalars().all()],
    )


@router.put("/{appointment_id}/reschedule", response_model=AppointmentActionOut)
async def reschedule_appointment(
    appointment_id: UUID,
    body: AppointmentReschedule,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    allocator: BookingAllocator = Depends(get_allocator),
    notifier: Notifier = Depends(get_notifier),
):
    appointment = await allocator.reschedule(appointment_id, body.start_time, current_user)
    background_tasks.add_task(dispatch_events, list(allocator.events), notifier)
    return AppointmentActionOut(
        message="Appointment rescheduled successfully",
        appointment=AppointmentOut.model_validate(appointment),
    )


@router.delete("/{appointment_id}", response_model=AppointmentActionOut)
async def cancel_appointment(
    appointment_id: UUID,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    allocator: BookingAllocator = Depends(get_allocator),
    notifier: Notifier = Depends(get_notifier),
):
    appointment = await allocator.cancel(appointment_id, current_user)
    background_tasks.add_task(dispatch_events, list(allocator.events), notifier)
    return AppointmentActionOut(
        message="Appointment cancelled successfully",
        appointment=AppointmentOut.model_validate(appointment),
    )


@router.put("/{appointment_id}/complete-service/{service_id}", response_model=AppointmentActionOut)
async def complete_service(
    appointment_id: UUID,
    service_id: UUID,
    current_user: User = Depends(require_staff_or_admin),
    machine: AppointmentStateMachine = Depends(get_state_machine),
):
    appointment = await machine.complete_service(appointment_id, service_id, current_user)
    return AppointmentActionOut(
        message="Service marked as completed",
        appointment=AppointmentOut.model_validate(appointment),
    )


@router.put("/{appointment_id}/complete", response_model=AppointmentActionOut)
async def complete_appointment(
    appointment_id: UUID,
    current_user: User = Depends(require_staff_or_admin),
    machine: AppointmentStateMachine = Depends(get_state_machine),
):
    appointment = await machine.complete(appointment_id, current_user)
    return AppointmentActionOut(
        message="Appointment marked as completed",
        appointment=AppointmentOut.model_validate(appointment),
    )
