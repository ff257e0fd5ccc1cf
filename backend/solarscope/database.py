"""
Database connection and session management.
Handles async SQLAlchemy setup, connection pooling, and table creation.

Nothing here runs at import time: the engine is built from settings by
`init_database`, and a missing DATABASE_URL simply means memory-only mode.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .config import Settings, settings as default_settings
from .models import Base

logger = logging.getLogger(__name__)

# Sync driver names people put in DATABASE_URL, mapped to their async twins
_ASYNC_DRIVERS = {
    "postgres": "postgresql+asyncpg",
    "postgresql": "postgresql+asyncpg",
    "postgresql+psycopg2": "postgresql+asyncpg",
    "sqlite": "sqlite+aiosqlite",
}


def async_database_url(dsn: str) -> str:
    """Rewrite a plain DATABASE_URL to use an async driver."""
    url = make_url(dsn)
    driver = _ASYNC_DRIVERS.get(url.drivername)
    if driver:
        url = url.set(drivername=driver)
    return url.render_as_string(hide_password=False)


def create_engine_from_url(dsn: str, *, echo: bool = False) -> AsyncEngine:
    # ---- Engine (robust defaults) ----
    # - pool_pre_ping=True to heal dead/stale connections
    # - pool_recycle guards long-lived idle conns
    url = async_database_url(dsn)
    kwargs: Dict[str, Any] = {"echo": echo, "pool_pre_ping": True}
    if not url.startswith("sqlite"):
        kwargs.update(pool_size=20, max_overflow=30, pool_recycle=3600)
    return create_async_engine(url, **kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False keeps attributes accessible after adapter commits
    return async_sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
        class_=AsyncSession,
    )


async def create_tables(engine: AsyncEngine) -> None:
    """Create any missing tables. Existing tables are left alone."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def init_database(
    settings: Optional[Settings] = None,
) -> Tuple[Optional[AsyncEngine], Optional[async_sessionmaker[AsyncSession]]]:
    """
    Build the engine and session factory and make sure the schema exists.

    Returns (None, None) when no DATABASE_URL is configured or the database
    cannot be reached; the storage layer then runs on memory alone.
    """
    settings = settings or default_settings
    if not settings.DATABASE_URL:
        logger.warning("DATABASE_URL not set - running with memory storage only")
        return None, None

    ds = redacted_dsn(settings.DATABASE_URL)
    engine = create_engine_from_url(settings.DATABASE_URL, echo=settings.SQL_ECHO)
    try:
        await create_tables(engine)
    except Exception as e:
        logger.warning(f"Database initialization failed for dsn={ds}: {e}")
        await engine.dispose()
        return None, None

    logger.warning(f"DB connected -> dsn={ds}")
    return engine, create_session_factory(engine)


# -------- Optional helpers (handy for startup/debug) --------

def redacted_dsn(dsn: str) -> str:
    """
    Redact password in a DATABASE_URL for safe logging.
    """
    try:
        url = make_url(dsn)
        return url.render_as_string(hide_password=True)
    except Exception:
        return "<unparsable DSN>"

