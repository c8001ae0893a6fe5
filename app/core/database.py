"""
SkillPulse Database Configuration
Async SQLAlchemy setup with PostgreSQL

With SKIP_DB or DEMO_MODE, uses a mock session and user skills live in memory.
"""
from sqlalchemy.orm import declarative_base
from typing import AsyncGenerator

from app.core.config import settings

# Base class for models (always needed for model definitions)
Base = declarative_base()

engine = None
async_session_maker = None


def use_database() -> bool:
    return not settings.DEMO_MODE and not settings.SKIP_DB


if use_database():
    from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

    engine = create_async_engine(
        settings.DATABASE_URL,
        echo=settings.DEBUG,
        future=True,
    )

    async_session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


class MockSession:
    """
    Placeholder session yielded when the database is skipped.

    Stores check use_database() before touching the session, so reaching any
    of these methods is a bug in the caller.
    """

    def _skipped(self, *args, **kwargs):
        raise RuntimeError("Database is skipped (SKIP_DB/DEMO_MODE)")

    execute = add = flush = commit = rollback = _skipped


async def get_db() -> AsyncGenerator:
    """
    Dependency that provides database session.
    When the database is skipped, provides a mock session.
    """
    if not use_database() or async_session_maker is None:
        yield MockSession()
        return

    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db():
    """Create tables (skipped when the database is skipped)."""
    if not use_database() or engine is None:
        return

    # Register models on Base.metadata
    from app.models import user  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
