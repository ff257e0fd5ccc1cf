"""
Builds the storage backend for the current configuration.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..config import Settings, settings as default_settings
from .database import DatabaseStorage
from .hybrid import HybridStorage
from .memory import MemoryStorage

logger = logging.getLogger(__name__)


def create_storage(
    settings: Optional[Settings] = None,
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
) -> Union[HybridStorage, MemoryStorage]:
    """
    HybridStorage when a DATABASE_URL is configured, plain MemoryStorage
    otherwise. A configured URL with no session factory (the database could
    not be initialized) still gets a HybridStorage; its probe then fails and it
    settles on memory.
    """
    settings = settings or default_settings
    memory = MemoryStorage(session_ttl_seconds=settings.SESSION_TTL_SECONDS)

    if not settings.DATABASE_URL:
        logger.warning("Using memory storage (no DATABASE_URL)")
        return memory

    logger.warning("DATABASE_URL found - using hybrid storage with memory fallback")
    return HybridStorage(
        memory,
        DatabaseStorage(session_factory, session_ttl_seconds=settings.SESSION_TTL_SECONDS),
        warmup_seconds=settings.STORAGE_WARMUP_SECONDS,
        probe_timeout_seconds=settings.STORAGE_PROBE_TIMEOUT_SECONDS,
    )
