"""Pydantic schemas for reviews."""

from datetime import datetime
from uuid import UUID
from typing import Optional
from pydantic import Field

from salonbook.schemas.appointment import NamedRef
from salonbook.schemas.common import CamelModel


class ReviewCreate(CamelModel):
    appointment_id: UUID
    service_id: UUID
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None


class ReviewResponseIn(CamelModel):
    response: str = Field(..., min_length=1)


class ReviewOut(CamelModel):
    id: UUID
    customer_id: UUID
    appointment_id: UUID
    service_id: UUID
    staff_id: Optional[UUID] = None
    rating: int
    comment: Optional[str] = None
    staff_response: Optional[str] = None
    created_at: Optional[datetime] = None
    service: Optional[NamedRef] = None
    staff: Optional[NamedRef] = None
