from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from marketplace_api.core.config import Settings
from marketplace_api.core.exceptions import DatabaseError
from marketplace_api.core.logging import get_structlog_logger
from marketplace_api.db.base import Base

logger = get_structlog_logger(__name__)


def create_database_engine(settings: Settings) -> AsyncEngine:
    """Create and configure the async database engine."""
    url = make_url(settings.database_url)

    if url.get_backend_name() == "sqlite":
        engine = create_async_engine(url, echo=settings.debug)
    else:
        engine = create_async_engine(
            url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_pre_ping=True,  # Verify connections before using
            echo=settings.debug,
        )

    logger.info(
        "database.engine.created",
        backend=url.get_backend_name(),
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    return engine


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def init_models(engine: AsyncEngine) -> None:
    """Create missing tables."""
    # Import models so they register on Base.metadata
    import marketplace_api.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database.tables_ready", tables=sorted(Base.metadata.tables))


@asynccontextmanager
async def session_scope(
    sessionmaker: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Open a session; database failures surface as DatabaseError."""
    session = sessionmaker()

    try:
        yield session

    except SQLAlchemyError as e:
        await session.rollback()
        logger.error("database.session_error", error=str(e))
        raise DatabaseError(
            message="Database operation failed",
            details={"error": str(e)},
        ) from e

    finally:
        await session.close()


async def health_check(sessionmaker: async_sessionmaker[AsyncSession]) -> dict:
    """Check database health."""
    try:
        async with sessionmaker() as session:
            result = await session.execute(text("SELECT 1"))
            row = result.first()
        return {
            "status": "healthy" if row and row[0] == 1 else "unhealthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    except Exception as e:
        logger.error("database.health_check_failed", error=str(e))
        return {
            "status": "unhealthy",
            "error": str(e),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
