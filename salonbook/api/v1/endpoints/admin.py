"""Admin appointment operations: listing, payment verification, confirmation."""

import logging
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from salonbook.api.v1.endpoints.appointments import get_state_machine
from salonbook.core.database import get_db
from salonbook.core.deps import require_admin
from salonbook.models.appointment import Appointment, AppointmentStatus
from salonbook.models.user import User
from salonbook.schemas.appointment import AppointmentActionOut, AppointmentOut
from salonbook.services.appointment_state import AppointmentStateMachine
from salonbook.services.notifier import Notifier, dispatch_events, get_notifier
from salonbook.services.payments import get_gateways

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/appointments", response_model=list[AppointmentOut])
async def list_appointments(
    status: Optional[AppointmentStatus] = Query(None),
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    query = select(Appointment).order_by(Appointment.start_time.desc())
    if status is not None:
        query = query.where(Appointment.status == status)
    result = await db.execute(query)
    return result.scalars().all()


@router.put("/appointments/{appointment_id}/confirm", response_model=AppointmentActionOut)
async def confirm_appointment(
    appointment_id: UUID,
    background_tasks: BackgroundTasks,
    admin: User = Depends(require_admin),
    machine: AppointmentStateMachine = Depends(get_state_machine),
    notifier: Notifier = Depends(get_notifier),
):
    appointment = await machine.confirm(appointment_id, admin)
    background_tasks.add_task(dispatch_events, list(machine.events), notifier)
    return AppointmentActionOut(
        message="Appointment confirmed successfully",
        appointment=AppointmentOut.model_validate(appointment),
    )


@router.post("/appointments/{appointment_id}/verify-payment", response_model=AppointmentActionOut)
async def verify_payment(
    appointment_id: UUID,
    background_tasks: BackgroundTasks,
    admin: User = Depends(require_admin),
    machine: AppointmentStateMachine = Depends(get_state_machine),
    gateways: dict = Depends(get_gateways),
    notifier: Notifier = Depends(get_notifier),
):
    """Ask the gateway whether the customer's payment went through."""
    appointment = await machine.verify_payment(appointment_id, admin, gateways)
    background_tasks.add_task(dispatch_events, list(machine.events), notifier)
    message = "Payment verified successfully" if machine.events else "Payment is already verified"
    return AppointmentActionOut(message=message, appointment=AppointmentOut.model_validate(appointment))


@router.post("/appointments/{appointment_id}/verify-and-confirm", response_model=AppointmentActionOut)
async def verify_and_confirm(
    appointment_id: UUID,
    background_tasks: BackgroundTasks,
    admin: User = Depends(require_admin),
    machine: AppointmentStateMachine = Depends(get_state_machine),
    gateways: dict = Depends(get_gateways),
    notifier: Notifier = Depends(get_notifier),
):
    appointment = await machine.verify_and_confirm(appointment_id, admin, gateways)
    background_tasks.add_task(dispatch_events, list(machine.events), notifier)
    return AppointmentActionOut(
        message="Payment verified and appointment confirmed successfully",
        appointment=AppointmentOut.model_validate(appointment),
    )
