"""Staff availability windows and bookable slots."""

import logging
from datetime import date, datetime
from typing import Callable, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from salonbook.core.database import get_db
from salonbook.core.deps import require_admin
from salonbook.core.errors import ValidationError
from salonbook.core.policy import SchedulingPolicy, get_clock, get_scheduling_policy
from salonbook.models.user import User
from salonbook.schemas.availability import (
    AvailabilityWindowIn,
    AvailabilityWindowOut,
    AvailabilityWindowUpdate,
    ScheduleBatchIn,
    SlotsOut,
)
from salonbook.schemas.common import MessageOut
from salonbook.services import availability
from salonbook.services.slots import generate_slots

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/available-slots", response_model=SlotsOut)
async def available_slots(
    staff_id: Optional[UUID] = Query(None, alias="staffId"),
    service_id: Optional[UUID] = Query(None, alias="serviceId"),
    day: Optional[date] = Query(None, alias="date"),
    db: AsyncSession = Depends(get_db),
    policy: SchedulingPolicy = Depends(get_scheduling_policy),
    clock: Callable[[], datetime] = Depends(get_clock),
):
    """Start times at which the staff member can take the service on ``date``."""
    if not staff_id or not service_id or not day:
        raise ValidationError("staffId, serviceId, and date are required")
    result = await generate_slots(db, staff_id, service_id, day, clock(), policy)
    return SlotsOut.model_validate(result)


@router.get("/staff/{staff_id}", response_model=list[AvailabilityWindowOut])
async def staff_availability(staff_id: UUID, db: AsyncSession = Depends(get_db)):
    return await availability.list_windows(db, staff_id)


@router.post("/staff/{staff_id}", response_model=list[AvailabilityWindowOut], status_code=201)
async def set_staff_availability(
    staff_id: UUID,
    body: ScheduleBatchIn,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    """Replace the staff member's whole weekly schedule."""
    schedules = [s.model_dump() for s in body.schedules]
    return await availability.set_windows(db, staff_id, schedules)


@router.post("/staff/{staff_id}/schedule", response_model=AvailabilityWindowOut, status_code=201)
async def add_schedule(
    staff_id: UUID,
    body: AvailabilityWindowIn,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    return await availability.add_window(db, staff_id, body.day_of_week, body.start_time, body.end_time)


@router.put("/{window_id}", response_model=AvailabilityWindowOut)
async def update_schedule(
    window_id: UUID,
    body: AvailabilityWindowUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    return await availability.update_window(db, window_id, body.model_dump(exclude_unset=True))


@router.delete("/{window_id}", response_model=MessageOut)
async def delete_schedule(
    window_id: UUID,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
):
    await availability.delete_window(db, window_id)
    return MessageOut(message="Schedule deleted successfully")
