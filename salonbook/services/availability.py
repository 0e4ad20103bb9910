"""Per-staff weekly working windows.

A staff member with no window on a weekday is treated as available all day,
so staff without a configured schedule can still be booked.
"""

import logging
from datetime import time
from uuid import UUID
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from salonbook.core.errors import ConflictError, NotFound, ValidationError
from salonbook.models.staff import Staff, StaffAvailability
from salonbook.services.intervals import WEEKDAY_NAMES, format_clock, overlaps

logger = logging.getLogger(__name__)


def _validate_window(day_of_week: int, start_time: time, end_time: time) -> None:
    if day_of_week is None or not 0 <= day_of_week <= 6:
        raise ValidationError("dayOfWeek must be 0-6 (Sunday-Saturday)")
    if start_time >= end_time:
        raise ValidationError("startTime must be before endTime")


async def _get_staff(db: AsyncSession, staff_id: UUID) -> Staff:
    result = await db.execute(select(Staff).where(Staff.id == staff_id))
    staff = result.scalar_one_or_none()
    if not staff:
        raise NotFound("Staff not found")
    return staff


async def _ensure_no_overlap(
    db: AsyncSession,
    staff_id: UUID,
    day_of_week: int,
    start_time: time,
    end_time: time,
    exclude_id: UUID | None = None,
) -> None:
    query = select(StaffAvailability).where(
        StaffAvailability.staff_id == staff_id,
        StaffAvailability.day_of_week == day_of_week,
    )
    if exclude_id is not None:
        query = query.where(StaffAvailability.id != exclude_id)
    result = await db.execute(query)
    for existing in result.scalars().all():
        if overlaps(start_time, end_time, existing.start_time, existing.end_time):
            raise ConflictError(
                f"Overlapping schedule exists for {WEEKDAY_NAMES[day_of_week]} "
                f"({format_clock(existing.start_time)}-{format_clock(existing.end_time)})",
                staff_id=staff_id,
                reason="overlapping-window",
            )


async def get_window(db: AsyncSession, staff_id: UUID, weekday: int) -> StaffAvailability | None:
    """The staff member's window for ``weekday``, or None when unconstrained."""
    result = await db.execute(
        select(StaffAvailability)
        .where(StaffAvailability.staff_id == staff_id, StaffAvailability.day_of_week == weekday)
        .order_by(StaffAvailability.start_time)
    )
    return result.scalars().first()


async def get_windows(db: AsyncSession, staff_id: UUID, weekday: int) -> list[StaffAvailability]:
    """All windows for ``weekday`` in opening order; a split shift has several."""
    result = await db.execute(
        select(StaffAvailability)
        .where(StaffAvailability.staff_id == staff_id, StaffAvailability.day_of_week == weekday)
        .order_by(StaffAvailability.start_time)
    )
    return list(result.scalars().all())


async def list_windows(db: AsyncSession, staff_id: UUID) -> list[StaffAvailability]:
    await _get_staff(db, staff_id)
    result = await db.execute(
        select(StaffAvailability)
        .where(StaffAvailability.staff_id == staff_id)
        .order_by(StaffAvailability.day_of_week, StaffAvailability.start_time)
    )
    return list(result.scalars().all())


async def set_windows(db: AsyncSession, staff_id: UUID, schedules: list[dict]) -> list[StaffAvailability]:
    """Replace every window of a staff member.

    The batch is rejected as a whole when two of its windows overlap on the
    same weekday.
    """
    await _get_staff(db, staff_id)

    for i, schedule in enumerate(schedules):
        _validate_window(schedule["day_of_week"], schedule["start_time"], schedule["end_time"])
        for other in schedules[i + 1:]:
            if other["day_of_week"] == schedule["day_of_week"] and overlaps(
                schedule["start_time"], schedule["end_time"], other["start_time"], other["end_time"]
            ):
                raise ConflictError(
                    f"Overlapping schedules for {WEEKDAY_NAMES[schedule['day_of_week']]}",
                    staff_id=staff_id,
                    reason="overlapping-window",
                )

    await db.execute(delete(StaffAvailability).where(StaffAvailability.staff_id == staff_id))
    for schedule in schedules:
        db.add(StaffAvailability(staff_id=staff_id, **schedule))
    await db.commit()

    logger.info("Replaced availability for staff %s with %d window(s)", staff_id, len(schedules))
    return await list_windows(db, staff_id)


async def add_window(
    db: AsyncSession, staff_id: UUID, day_of_week: int, start_time: time, end_time: time
) -> StaffAvailability:
    _validate_window(day_of_week, start_time, end_time)
    await _get_staff(db, staff_id)
    await _ensure_no_overlap(db, staff_id, day_of_week, start_time, end_time)

    window = StaffAvailability(
        staff_id=staff_id, day_of_week=day_of_week, start_time=start_time, end_time=end_time
    )
    db.add(window)
    await db.commit()
    await db.refresh(window)
    logger.info("Added %s window %s-%s for staff %s", WEEKDAY_NAMES[day_of_week], start_time, end_time, staff_id)
    return window


async def update_window(db: AsyncSession, window_id: UUID, changes: dict) -> StaffAvailability:
    """Partially update a window; the result must not overlap the staff's other windows."""
    result = await db.execute(select(StaffAvailability).where(StaffAvailability.id == window_id))
    window = result.scalar_one_or_none()
    if not window:
        raise NotFound("Schedule not found")

    day = changes.get("day_of_week", window.day_of_week)
    start = changes.get("start_time") or window.start_time
    end = changes.get("end_time") or window.end_time
    _validate_window(day, start, end)
    await _ensure_no_overlap(db, window.staff_id, day, start, end, exclude_id=window.id)

    window.day_of_week = day
    window.start_time = start
    window.end_time = end
    await db.commit()
    await db.refresh(window)
    return window


async def delete_window(db: AsyncSession, window_id: UUID) -> None:
    result = await db.execute(select(StaffAvailability).where(StaffAvailability.id == window_id))
    window = result.scalar_one_or_none()
    if not window:
        raise NotFound("Schedule not found")
    await db.delete(window)
    await db.commit()
    logger.info("Deleted availability window %s", window_id)
