"""Time-interval helpers shared by the scheduling services.

Intervals are half-open ``[start, end)``: two bookings that touch at an edge
do not overlap.
"""

from datetime import date, datetime, time, timedelta

WEEKDAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


def overlaps(start, end, other_start, other_end) -> bool:
    """True when ``[start, end)`` and ``[other_start, other_end)`` share any instant."""
    return start < other_end and end > other_start


def day_of_week(day: date) -> int:
    """Weekday number used by availability windows: 0 = Sunday … 6 = Saturday."""
    return (day.weekday() + 1) % 7


def at(day: date, clock_time: time) -> datetime:
    return datetime.combine(day, clock_time)


def minutes(n: int) -> timedelta:
    return timedelta(minutes=n)


def fits_window(start: datetime, end: datetime, open_time: time, close_time: time) -> bool:
    """Whether ``[start, end)`` lies inside the window on ``start``'s day."""
    day = start.date()
    return start >= at(day, open_time) and end <= at(day, close_time)


def format_clock(value: time | datetime) -> str:
    return value.strftime("%H:%M")
