"""Database configuration and session management."""

from collections.abc import AsyncIterator

from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from mealdeal.config import settings

_SQL_ECHO = settings.is_development and settings.log_level.upper() == "DEBUG"


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


# Async engine for FastAPI endpoints
async_engine = create_async_engine(settings.database_url, echo=_SQL_ECHO)
AsyncSessionLocal = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# Sync engine for CSV imports and Celery tasks
sync_engine = create_engine(settings.sync_database_url, echo=_SQL_ECHO)


async def get_db() -> AsyncIterator[AsyncSession]:
    """Dependency for FastAPI endpoints."""
    async with AsyncSessionLocal() as session:
        yield session
