"""Async SQLAlchemy engine, session factory and declarative base."""

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase

from salonbook.core.config import settings

engine = create_async_engine(settings.DATABASE_URL, pool_pre_ping=True)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncSession:
    """FastAPI dependency: one session per request."""
    async with async_session() as session:
        yield session


def enum_values(enum_cls) -> list[str]:
    """Persist str enums by value ("pending"), not by member name."""
    return [member.value for member in enum_cls]
