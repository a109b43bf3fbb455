"""
Database connection and session management for SQLAlchemy 2.0.
The engine is only created when DATABASE_URL is set; otherwise every
session dependency yields None, which read paths treat as "no backend".
"""
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    AsyncEngine,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy import text
from typing import AsyncIterator, Optional
from urllib.parse import urlparse
import logging

from portfolio.config import settings

logger = logging.getLogger(__name__)

# Create declarative base for models
Base = declarative_base()


def _engine_args(url: str) -> dict:
    args = {"echo": False}
    # Pool settings only apply to PostgreSQL (not SQLite)
    if url.startswith("postgresql"):
        args.update({
            "pool_size": 10,
            "max_overflow": 20,
            "pool_pre_ping": True,  # handles stale connections
            "pool_recycle": 3600,
            "connect_args": {
                "server_settings": {
                    "application_name": "portfolio-api"
                }
            }
        })
    return args


def build_engine(url: str) -> Optional[AsyncEngine]:
    """Create the async engine, or None when no database is configured."""
    if not url:
        return None
    return create_async_engine(url, **_engine_args(url))


engine = build_engine(settings.DATABASE_URL)

AsyncSessionLocal = (
    async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )
    if engine is not None
    else None
)


def is_backend_configured() -> bool:
    return AsyncSessionLocal is not None


async def get_db() -> AsyncIterator[Optional[AsyncSession]]:
    """
    FastAPI dependency for database sessions.
    Provides an async session with automatic commit/rollback, or None when
    the record store is not configured.

    Usage:
        @router.get("/endpoint")
        async def my_endpoint(db: Optional[AsyncSession] = Depends(get_db)):
            ...
    """
    if AsyncSessionLocal is None:
        yield None
        return

    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Database session error: {str(e)}", exc_info=True)
            raise


def _validate_database_url(url: str) -> tuple[bool, str]:
    """
    Validate database URL and provide diagnostic information.
    Returns (is_valid, diagnostic_message)
    """
    try:
        parsed = urlparse(url)
    except Exception as e:
        return False, f"Error parsing DATABASE_URL: {str(e)}"

    if not parsed.scheme.startswith(("postgresql", "sqlite")):
        return False, f"Unsupported database URL scheme: {parsed.scheme}"

    if parsed.scheme.startswith("sqlite"):
        return True, f"SQLite database at {parsed.path or ':memory:'}"

    if not parsed.hostname:
        return False, "No hostname found in DATABASE_URL"

    return True, (
        f"Hostname: {parsed.hostname}, Port: {parsed.port or 5432}, "
        f"Database: {parsed.path or '/postgres'}"
    )


async def init_db():
    """
    Verify the database connection on startup.
    """
    if engine is None:
        logger.warning("DATABASE_URL not set, skipping database initialization")
        return

    is_valid, diagnostic = _validate_database_url(settings.DATABASE_URL)
    if not is_valid:
        logger.error(f"Invalid DATABASE_URL: {diagnostic}")
        raise ValueError(f"Invalid DATABASE_URL: {diagnostic}")

    logger.info(f"Database URL validation: {diagnostic}")

    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            logger.info("Database connection initialized successfully")
    except Exception as e:
        logger.error(
            f"Database connection failed ({type(e).__name__}): {str(e)}\n"
            f"Diagnostic: {diagnostic}"
        )
        raise


async def close_db():
    """
    Close database connections.
    """
    if engine is None:
        return
    await engine.dispose()
    logger.info("Database connections closed")
