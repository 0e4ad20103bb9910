"""Customer reviews of services in completed appointments."""

import logging
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from salonbook.core.errors import Forbidden, NotFound, PolicyViolation, ValidationError
from salonbook.models.appointment import AppointmentStatus
from salonbook.models.review import Review
from salonbook.models.user import User, UserRole
from salonbook.services.booking import load_appointment
from salonbook.services.staff_profiles import get_staff_profile

logger = logging.getLogger(__name__)


async def list_reviews(db: AsyncSession) -> list[Review]:
    result = await db.execute(select(Review).order_by(Review.created_at.desc()))
    return list(result.scalars().all())


async def get_review(db: AsyncSession, review_id: UUID) -> Review:
    result = await db.execute(
        select(Review).where(Review.id == review_id).execution_options(populate_existing=True)
    )
    review = result.scalar_one_or_none()
    if not review:
        raise NotFound("Review not found")
    return review


async def create_review(
    db: AsyncSession,
    customer: User,
    appointment_id: UUID,
    service_id: UUID,
    rating: int,
    comment: str | None = None,
) -> Review:
    """Review one service of the customer's completed appointment.

    The review is credited to whoever performed that service.
    """
    if rating is None or not 1 <= rating <= 5:
        raise ValidationError("appointmentId, serviceId and rating (1-5) are required")

    appointment = await load_appointment(db, appointment_id)
    if appointment.customer_id != customer.id:
        raise Forbidden("You can only review your own appointments")
    if appointment.status != AppointmentStatus.COMPLETED:
        raise PolicyViolation("You can only review completed appointments")

    if appointment.assignments:
        match = next((a for a in appointment.assignments if a.service_id == service_id), None)
        reviewed_staff = match.staff_id if match else None
    else:
        match = appointment if appointment.service_id == service_id else None
        reviewed_staff = appointment.staff_id
    if match is None:
        raise ValidationError("Service not found in this appointment")

    existing = await db.execute(
        select(Review.id).where(
            Review.customer_id == customer.id,
            Review.appointment_id == appointment.id,
            Review.service_id == service_id,
        )
    )
    if existing.first() is not None:
        raise PolicyViolation("You have already reviewed this service for this appointment")

    review = Review(
        customer_id=customer.id,
        appointment_id=appointment.id,
        service_id=service_id,
        staff_id=reviewed_staff,
        rating=rating,
        comment=comment or None,
    )
    db.add(review)
    await db.commit()
    logger.info("Review %s (%d stars) for appointment %s", review.id, rating, appointment.id)
    return await get_review(db, review.id)


async def respond(db: AsyncSession, review_id: UUID, actor: User, response: str) -> Review:
    """Staff reply to a review of their own service; admins may reply to any."""
    review = await get_review(db, review_id)

    if actor.role == UserRole.STAFF.value:
        staff = await get_staff_profile(db, actor)
        if staff is None:
            raise Forbidden("Staff profile not found")
        if review.staff_id != staff.id:
            raise Forbidden("You can only respond to reviews for services you provided")
    elif not actor.is_admin:
        raise Forbidden("Only staff and admins can respond to reviews")

    review.staff_response = response
    await db.commit()
    return await get_review(db, review.id)
