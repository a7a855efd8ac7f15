"""
Database session configuration.

This module handles database engine creation and session management
using SQLAlchemy with async support. Only account profiles (users, drivers)
live in the relational store; pickups are kept in the key-value store.
"""

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from backend.app.core.config import settings


def build_engine(database_url: str):
    """
    Create the async engine.

    PostgreSQL gets a sized connection pool; SQLite (local runs) does not
    accept pool sizing, so it uses the dialect default.
    """
    options = {"echo": settings.db_echo, "future": True}
    if not database_url.startswith("sqlite"):
        options.update(pool_size=settings.db_pool_size, max_overflow=settings.db_max_overflow)
    return create_async_engine(database_url, **options)


engine = build_engine(settings.database_url)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

# Create declarative base for models
Base = declarative_base()


async def create_tables() -> None:
    """Create tables for every model registered on ``Base``."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db():
    """
    FastAPI dependency for database sessions.

    One session per request; writes are committed explicitly by the caller.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
