"""Reminder jobs: a day-before reminder and a 15-minutes-before reminder.

Each run selects confirmed appointments starting inside a narrow window
ahead of now. The windows are wider than the job interval so a late run does
not skip anyone; there is no per-appointment "sent" marker.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from salonbook.core.database import async_session
from salonbook.models.appointment import Appointment, AppointmentStatus
from salonbook.services import events
from salonbook.services.notifier import Notifier, dispatch_events, get_notifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReminderWindow:
    kind: str
    lower: timedelta
    upper: timedelta
    every_minutes: int


DAY_BEFORE_WINDOW = ReminderWindow(events.DAY_BEFORE, timedelta(hours=23), timedelta(hours=25), every_minutes=15)
SOON_WINDOW = ReminderWindow(events.SOON, timedelta(minutes=15), timedelta(minutes=20), every_minutes=5)

scheduler = AsyncIOScheduler()


async def due_appointments(db: AsyncSession, now: datetime, window: ReminderWindow) -> list[Appointment]:
    """Confirmed appointments starting in ``[now + lower, now + upper)``."""
    result = await db.execute(
        select(Appointment)
        .where(
            Appointment.status == AppointmentStatus.CONFIRMED,
            Appointment.start_time >= now + window.lower,
            Appointment.start_time < now + window.upper,
        )
        .order_by(Appointment.start_time)
    )
    return list(result.scalars().all())


async def send_reminders(
    db: AsyncSession, notifier: Notifier, now: datetime, window: ReminderWindow
) -> int:
    """Notify every due appointment; returns how many were reached at least once."""
    appointments = await due_appointments(db, now, window)
    sent = 0
    for appointment in appointments:
        if await dispatch_events([events.reminder_due(appointment, window.kind)], notifier):
            sent += 1
        else:
            logger.warning("No %s reminder delivered for appointment %s", window.kind, appointment.id)
    if sent:
        logger.info("Sent %d %s reminder(s)", sent, window.kind)
    return sent


async def run_reminders(
    window: ReminderWindow,
    session_factory=async_session,
    notifier: Notifier | None = None,
    now: datetime | None = None,
) -> int:
    """Scheduled entry point; opens its own session."""
    try:
        async with session_factory() as db:
            return await send_reminders(db, notifier or get_notifier(), now or datetime.now(), window)
    except Exception as e:
        logger.error("Reminder job %s failed: %s", window.kind, e)
        return 0


def start_scheduler() -> AsyncIOScheduler:
    for window in (DAY_BEFORE_WINDOW, SOON_WINDOW):
        scheduler.add_job(
            run_reminders,
            "interval",
            minutes=window.every_minutes,
            args=[window],
            id=f"reminders-{window.kind}",
            replace_existing=True,
        )
    if not scheduler.running:
        scheduler.start()
        logger.info("Reminder scheduler started")
    return scheduler


def shutdown_scheduler() -> None:
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Reminder scheduler stopped")
