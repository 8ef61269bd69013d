"""
Asynchronous Database Utilities Module

This module owns the SQLAlchemy async engine used by the credential store.
The URL comes from ``settings.DATABASE_URL`` (``postgresql+asyncpg`` in
deployments, ``sqlite+aiosqlite`` in local test runs).

**Security Note**: Ensure that the database connection URL is configured for
SSL/TLS when connecting over untrusted networks. asyncpg takes SSL options in
the URL, not ``sslmode``. Never log the connection URL.

Key Components:
    - engine: The asynchronous SQLAlchemy engine.
    - AsyncSessionFactory: A factory for creating asynchronous database sessions.
    - get_async_db: A context manager yielding one session per unit of work.
    - create_async_db_and_tables: Utility to create tables using the async engine.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict

from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from structlog import get_logger

from src.core.config.settings import settings

logger = get_logger(__name__)


def build_async_url(database_url: str | None = None) -> URL:
    """
    Build the asynchronous database URL.

    Synchronous PostgreSQL driver names are swapped for asyncpg and
    ``sslmode`` is stripped, since asyncpg handles SSL differently.

    Returns:
        URL: The cleaned asynchronous database URL.
    """
    url = make_url(database_url or settings.DATABASE_URL)
    if url.drivername in ("postgresql", "postgresql+psycopg2"):
        url = url.set(drivername="postgresql+asyncpg")
    return url.difference_update_query(["sslmode"])


def _engine_options(url: URL) -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": settings.DATABASE_ECHO}
    if url.get_backend_name() != "sqlite":
        options.update(
            pool_size=settings.POSTGRES_POOL_SIZE,
            max_overflow=settings.POSTGRES_MAX_OVERFLOW,
            pool_timeout=settings.POSTGRES_POOL_TIMEOUT,
            pool_pre_ping=True,
        )
    return options


url = build_async_url()
engine = create_async_engine(url, **_engine_options(url))

AsyncSessionFactory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@asynccontextmanager
async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Yield an AsyncSession for one unit of work.

    Rolls the transaction back if the block raises and always closes the
    session.

    Example:
        async with get_async_db() as session:
            service = build_authentication_service(session)
            result = await service.login(username, password)
    """
    async with AsyncSessionFactory() as session:
        logger.debug("Async database session created")
        try:
            yield session
        except Exception:
            await session.rollback()
            logger.error("Async database session rollback due to error")
            raise
        finally:
            await session.close()
            logger.debug("Async database session closed")


async def create_async_db_and_tables() -> None:
    """Create tables using the async engine (local development only; deployments use Alembic)."""
    logger.info("Creating async database tables")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("Async database tables created")
