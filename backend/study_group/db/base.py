"""Database base class and session management.

This module provides:
- SQLAlchemy base class for declarative models
- Database engine and session factory for the Study Group store
"""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from ..core.config import get_settings


class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


# =============================================================================
# Study Group Database
# =============================================================================

_engine = None
_session_maker = None


def get_engine():
    """Get or create the database engine."""
    global _engine

    if _engine is None:
        settings = get_settings()
        engine_kwargs = {"echo": settings.DEBUG}
        # SQLite drivers do not take a connection pool size
        if not settings.DATABASE_URL.startswith("sqlite"):
            engine_kwargs.update(
                pool_size=settings.DB_POOL_SIZE,
                max_overflow=settings.DB_MAX_OVERFLOW,
                pool_timeout=settings.DB_POOL_TIMEOUT,
            )
        _engine = create_async_engine(settings.DATABASE_URL, **engine_kwargs)

    return _engine


def get_session_maker():
    """Get or create the session maker."""
    global _session_maker

    if _session_maker is None:
        _session_maker = async_sessionmaker(
            bind=get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )

    return _session_maker


# =============================================================================
# Utility Functions
# =============================================================================

async def init_databases():
    """Initialize the database (create tables)."""
    from . import models  # noqa: F401

    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_all():
    """Close all database connections."""
    global _engine, _session_maker

    if _engine:
        await _engine.dispose()
        _engine = None

    _session_maker = None
