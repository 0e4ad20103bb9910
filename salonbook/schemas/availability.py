"""Pydantic schemas for staff availability and slots."""

from datetime import datetime, time
from uuid import UUID
from typing import Optional
from pydantic import Field

from salonbook.schemas.common import CamelModel


class AvailabilityWindowIn(CamelModel):
    day_of_week: int = Field(..., ge=0, le=6, description="0 = Sunday ... 6 = Saturday")
    start_time: time
    end_time: time


class AvailabilityWindowUpdate(CamelModel):
    day_of_week: Optional[int] = Field(None, ge=0, le=6)
    start_time: Optional[time] = None
    end_time: Optional[time] = None


class ScheduleBatchIn(CamelModel):
    schedules: list[AvailabilityWindowIn]


class AvailabilityWindowOut(CamelModel):
    id: UUID
    staff_id: UUID
    day_of_week: int
    start_time: time
    end_time: time


class SlotOut(CamelModel):
    start_time: datetime
    end_time: datetime
    display_time: str


class SlotsOut(CamelModel):
    slots: list[SlotOut]
    message: Optional[str] = None
