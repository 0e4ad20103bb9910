"""Link staff logins to their staff profile."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from salonbook.models.staff import Staff
from salonbook.models.user import User


async def get_staff_profile(db: AsyncSession, user: User) -> Staff | None:
    """The staff profile sharing the user's email, if any."""
    result = await db.execute(select(Staff).where(Staff.email == user.email))
    return result.scalars().first()
