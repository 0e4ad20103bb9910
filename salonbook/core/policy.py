"""Immutable booking policy, loaded once from settings."""

from dataclasses import dataclass
from datetime import datetime, timedelta

from salonbook.core.config import Settings, settings

SLOT_MINUTES = 30


@dataclass(frozen=True)
class SchedulingPolicy:
    min_reschedule_hours: float = 24
    min_cancel_hours: float = 24
    slot_minutes: int = SLOT_MINUTES

    @classmethod
    def from_settings(cls, cfg: Settings) -> "SchedulingPolicy":
        return cls(
            min_reschedule_hours=cfg.MIN_RESCHEDULE_HOURS,
            min_cancel_hours=cfg.MIN_CANCEL_HOURS,
        )

    @property
    def reschedule_notice(self) -> timedelta:
        return timedelta(hours=self.min_reschedule_hours)

    @property
    def cancel_notice(self) -> timedelta:
        return timedelta(hours=self.min_cancel_hours)

    @property
    def slot_step(self) -> timedelta:
        return timedelta(minutes=self.slot_minutes)


scheduling_policy = SchedulingPolicy.from_settings(settings)


def get_scheduling_policy() -> SchedulingPolicy:
    return scheduling_policy


def get_clock():
    """Returns the callable used as "now"; tests override it."""
    return datetime.now
