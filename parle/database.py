"""Async engine and per-request sessions for the conversations store."""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from parle.config.settings import settings
from parle.models import Base

logger = logging.getLogger(__name__)


def _create_engine() -> AsyncEngine:
    engine_options: dict[str, Any] = {
        "echo": settings.debug,
        "pool_pre_ping": True,
    }

    if settings.database.serverless or settings.debug:
        # Serverless Postgres suspends idle compute; pooled connections would go stale.
        engine_options["poolclass"] = NullPool

    return create_async_engine(settings.database.url, **engine_options)


engine: AsyncEngine = _create_engine()

SessionFactory = async_sessionmaker(
    engine,
    expire_on_commit=False,
    class_=AsyncSession,
)


async def get_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency yielding one session per request.

    Repositories commit their own writes; anything left pending when a
    database error escapes the request is rolled back.
    """

    async with SessionFactory() as session:
        try:
            yield session
        except SQLAlchemyError:
            await session.rollback()
            raise


async def init_models() -> None:
    """Create missing tables and indexes."""

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Ensured database tables: %s", ", ".join(sorted(Base.metadata.tables)))


async def dispose_engine() -> None:
    await engine.dispose()
    logger.info("Database engine disposed")
