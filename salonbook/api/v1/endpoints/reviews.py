"""Customer reviews and staff responses."""

from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from salonbook.core.database import get_db
from salonbook.core.deps import get_current_user, require_staff_or_admin
from salonbook.models.user import User
from salonbook.schemas.review import ReviewCreate, ReviewOut, ReviewResponseIn
from salonbook.services import reviews

router = APIRouter()


@router.get("", response_model=list[ReviewOut])
async def list_reviews(db: AsyncSession = Depends(get_db)):
    return await reviews.list_reviews(db)


@router.get("/{review_id}", response_model=ReviewOut)
async def get_review(review_id: UUID, db: AsyncSession = Depends(get_db)):
    return await reviews.get_review(db, review_id)


@router.post("", response_model=ReviewOut, status_code=201)
async def create_review(
    body: ReviewCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await reviews.create_review(
        db,
        current_user,
        appointment_id=body.appointment_id,
        service_id=body.service_id,
        rating=body.rating,
        comment=body.comment,
    )


@router.put("/{review_id}/response", response_model=ReviewOut)
async def respond_to_review(
    review_id: UUID,
    body: ReviewResponseIn,
    current_user: User = Depends(require_staff_or_admin),
    db: AsyncSession = Depends(get_db),
):
    return await reviews.respond(db, review_id, current_user, body.response)
