"""
PostgreSQL Client
=================

Async PostgreSQL client using SQLAlchemy 2.0 with asyncpg.

Supplier, site, task and alert records live in the ``supplylens`` schema;
the engine talks to them through plain ``text()`` statements.

Version: 0.1.0
"""

import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from shared.config import settings
from shared.logging import get_logger


logger = get_logger(__name__)

SCHEMA = "supplylens"

# Tables the risk engine reads and writes
REQUIRED_TABLES = ("suppliers", "supplier_sites", "onboarding_tasks", "risk_alerts")


class PostgresClient:
    """
    Async PostgreSQL client wrapper.

    Manages connection pooling and session lifecycle. The pool is sized
    so that a full batch recompute (one session per worker) never waits
    on a connection.
    """

    _engine: AsyncEngine | None = None
    _session_factory: async_sessionmaker[AsyncSession] | None = None

    @classmethod
    def get_engine(cls) -> AsyncEngine:
        """Get or create the async engine."""
        if cls._engine is None:
            cls._engine = create_async_engine(
                settings.postgres.async_url,
                echo=settings.debug and not settings.is_testing,
                pool_size=max(10, settings.risk.max_concurrency),
                max_overflow=20,
                pool_pre_ping=True,
                pool_recycle=3600,
                connect_args={"server_settings": {"search_path": f"{SCHEMA},public"}},
            )
            logger.info(
                "postgres_engine_created",
                host=settings.postgres.host,
                database=settings.postgres.db,
                schema=SCHEMA,
            )
        return cls._engine

    @classmethod
    def get_session_factory(cls) -> async_sessionmaker[AsyncSession]:
        """Get or create the session factory."""
        if cls._session_factory is None:
            cls._session_factory = async_sessionmaker(
                cls.get_engine(),
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )
        return cls._session_factory

    @classmethod
    async def close(cls) -> None:
        """Close the engine and release all connections."""
        if cls._engine is not None:
            await cls._engine.dispose()
            cls._engine = None
            cls._session_factory = None
            logger.info("postgres_engine_closed")

    @classmethod
    async def health_check(cls) -> dict[str, Any]:
        """
        Check connectivity and that the engine tables exist.

        Returns:
            dict with status, latency and any missing tables
        """
        try:
            start = time.perf_counter()
            async with cls.get_session_factory()() as session:
                result = await session.execute(
                    text("""
                        SELECT table_name FROM information_schema.tables
                        WHERE table_schema = :schema
                    """),
                    {"schema": SCHEMA},
                )
                present = {row[0] for row in result.fetchall()}
            latency_ms = (time.perf_counter() - start) * 1000

            missing = [t for t in REQUIRED_TABLES if t not in present]
            return {
                "status": "degraded" if missing else "healthy",
                "missing_tables": missing,
                "latency_ms": round(latency_ms, 2),
                "host": settings.postgres.host,
                "database": settings.postgres.db,
            }
        except Exception as e:
            logger.error("postgres_health_check_failed", error=str(e))
            return {
                "status": "unhealthy",
                "error": str(e),
            }


@asynccontextmanager
async def postgres_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Context manager for a transactional PostgreSQL session.

    Commits on clean exit and rolls back on any exception.

    Usage:
        async with postgres_session() as session:
            await session.execute(text("UPDATE ..."), params)
    """
    session_factory = PostgresClient.get_session_factory()
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
