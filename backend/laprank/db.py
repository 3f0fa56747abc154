"""Engine and session factory for the read models.

Nothing connects at import time; the engine is built from ``DATABASE_URL`` on
first use so tests and scripts can choose the database beforehand.
"""

import logging
import os
from typing import AsyncIterator, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import NullPool, StaticPool

logger = logging.getLogger(__name__)

engine: Optional[AsyncEngine] = None
AsyncSessionLocal: Optional[sessionmaker] = None
Base = declarative_base()

_ASYNC_DRIVERS = {
    "postgresql://": "postgresql+asyncpg://",
    "postgres://": "postgresql+asyncpg://",
    "sqlite://": "sqlite+aiosqlite://",
}


def normalize_database_url(database_url: str) -> str:
    """Point plain ``postgresql://`` and ``sqlite://`` URLs at their async drivers."""

    for plain, async_prefix in _ASYNC_DRIVERS.items():
        if database_url.startswith(plain):
            return async_prefix + database_url[len(plain):]
    return database_url


def _engine_options(database_url: str) -> dict:
    options: dict = {"echo": (os.getenv("LAPRANK_DB_ECHO") or "").lower() == "true"}
    if database_url.startswith("sqlite+aiosqlite://"):
        # An in-memory database only lives as long as its single connection.
        options["poolclass"] = StaticPool if ":memory:" in database_url else NullPool
    else:
        options["pool_pre_ping"] = True
    return options


def get_engine() -> AsyncEngine:
    global engine, AsyncSessionLocal

    if engine is None:
        raw_url = os.getenv("DATABASE_URL")
        if not raw_url:
            raise RuntimeError("DATABASE_URL environment variable is required")

        database_url = normalize_database_url(raw_url)
        engine = create_async_engine(database_url, **_engine_options(database_url))
        AsyncSessionLocal = sessionmaker(
            engine, class_=AsyncSession, expire_on_commit=False
        )
        logger.debug("Created engine for %s", engine.url.render_as_string(hide_password=True))

    return engine


async def create_schema() -> None:
    """Create any missing tables (used by the seed script and tests)."""

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    global engine, AsyncSessionLocal

    if engine is not None:
        await engine.dispose()
    engine = None
    AsyncSessionLocal = None


async def get_session() -> AsyncIterator[AsyncSession]:
    """Provide a database session for FastAPI dependencies."""

    if AsyncSessionLocal is None:
        get_engine()

    assert AsyncSessionLocal is not None  # for type checkers
    async with AsyncSessionLocal() as session:
        yield session
