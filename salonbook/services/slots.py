"""Bookable start times for one staff member, service and day.

Slots are recomputed on every call: bookings and hours can change between
two requests, so nothing is cached.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Iterable, Iterator
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from salonbook.core.errors import NotFound
from salonbook.core.policy import SchedulingPolicy
from salonbook.models.service import Service
from salonbook.models.staff import Staff
from salonbook.services.availability import get_windows
from salonbook.services.conflicts import busy_intervals
from salonbook.services.intervals import at, day_of_week, minutes, overlaps

logger = logging.getLogger(__name__)

PAST_DATE_MESSAGE = "Cannot book appointments in the past. Please select today or a future date."
FULLY_BOOKED_MESSAGE = "All available slots for this date are booked. Please select a different date or time."


@dataclass(frozen=True)
class Slot:
    start_time: datetime
    end_time: datetime

    @property
    def display_time(self) -> str:
        return self.start_time.strftime("%I:%M %p")


@dataclass
class SlotResult:
    slots: list[Slot] = field(default_factory=list)
    # Advisory text for the booking UI; empty results explain themselves
    message: str | None = None


def iter_slots(
    day: date,
    open_time: time,
    close_time: time,
    duration: timedelta,
    busy: Iterable[tuple[datetime, datetime]],
    now: datetime,
    step: timedelta,
) -> Iterator[Slot]:
    """Walk one window in ``step`` increments, yielding the free candidates."""
    busy = list(busy)
    current = at(day, open_time)
    close = at(day, close_time)
    while current + duration <= close:
        end = current + duration
        if current >= now and not any(overlaps(current, end, b_start, b_end) for b_start, b_end in busy):
            yield Slot(start_time=current, end_time=end)
        current += step


async def generate_slots(
    db: AsyncSession,
    staff_id: UUID,
    service_id: UUID,
    day: date,
    now: datetime,
    policy: SchedulingPolicy,
) -> SlotResult:
    result = await db.execute(select(Service).where(Service.id == service_id, Service.is_active.is_(True)))
    service = result.scalar_one_or_none()
    if not service:
        raise NotFound("Service not found")

    result = await db.execute(select(Staff).where(Staff.id == staff_id, Staff.is_active.is_(True)))
    if not result.scalar_one_or_none():
        raise NotFound("Staff not found")

    if day < now.date():
        return SlotResult(message=PAST_DATE_MESSAGE)

    windows = await get_windows(db, staff_id, day_of_week(day))
    if not windows:
        return SlotResult()

    busy = await busy_intervals(db, staff_id, at(day, time.min), at(day + timedelta(days=1), time.min))
    duration = minutes(service.duration_minutes)

    slots = [
        slot
        for window in windows
        for slot in iter_slots(day, window.start_time, window.end_time, duration, busy, now, policy.slot_step)
    ]
    logger.debug("Generated %d slot(s) for staff %s on %s", len(slots), staff_id, day)
    return SlotResult(slots=slots, message=None if slots else FULLY_BOOKED_MESSAGE)
