"""
Login-session stores.

The auth layer keeps its cookie sessions in whichever store the active storage
backend exposes as `session_store`: an in-memory one by default, the
`http_sessions` table once the database has been verified.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..models import HttpSession, utcnow
from .errors import BackendOperationFailed

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 24 * 60 * 60


class SessionStore(ABC):
    """Key/value store for serialized login sessions with expiry."""

    def __init__(self, ttl_seconds: int = DEFAULT_TTL_SECONDS):
        self.ttl = timedelta(seconds=ttl_seconds)

    @abstractmethod
    async def get(self, sid: str) -> Optional[Dict[str, Any]]: ...

    @abstractmethod
    async def set(self, sid: str, data: Dict[str, Any]) -> None: ...

    @abstractmethod
    async def destroy(self, sid: str) -> None: ...

    @abstractmethod
    async def purge_expired(self) -> int: ...


class MemorySessionStore(SessionStore):
    """Sessions in a dict; expired entries are dropped on read and on purge."""

    def __init__(self, ttl_seconds: int = DEFAULT_TTL_SECONDS):
        super().__init__(ttl_seconds)
        self._sessions: Dict[str, Tuple[Dict[str, Any], datetime]] = {}
        self._lock = threading.Lock()

    async def get(self, sid: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            entry = self._sessions.get(sid)
            if entry is None:
                return None
            data, expires_at = entry
            if expires_at <= utcnow():
                del self._sessions[sid]
                return None
            return dict(data)

    async def set(self, sid: str, data: Dict[str, Any]) -> None:
        with self._lock:
            self._sessions[sid] = (dict(data), utcnow() + self.ttl)

    async def destroy(self, sid: str) -> None:
        with self._lock:
            self._sessions.pop(sid, None)

    async def purge_expired(self) -> int:
        now = utcnow()
        with self._lock:
            expired = [sid for sid, (_, exp) in self._sessions.items() if exp <= now]
            for sid in expired:
                del self._sessions[sid]
        return len(expired)


class DatabaseSessionStore(SessionStore):
    """Sessions in the http_sessions table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], ttl_seconds: int = DEFAULT_TTL_SECONDS):
        super().__init__(ttl_seconds)
        self._session_factory = session_factory

    async def get(self, sid: str) -> Optional[Dict[str, Any]]:
        try:
            async with self._session_factory() as db:
                row = await db.get(HttpSession, sid)
                if row is None:
                    return None
                if row.expires_at <= utcnow():
                    await db.delete(row)
                    await db.commit()
                    return None
                return dict(row.data)
        except SQLAlchemyError as e:
            logger.error(f"Session store get failed for sid={sid}: {e}")
            raise BackendOperationFailed("session_store.get", e) from e

    async def set(self, sid: str, data: Dict[str, Any]) -> None:
        try:
            async with self._session_factory() as db:
                await db.merge(HttpSession(sid=sid, data=dict(data), expires_at=utcnow() + self.ttl))
                await db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Session store set failed for sid={sid}: {e}")
            raise BackendOperationFailed("session_store.set", e) from e

    async def destroy(self, sid: str) -> None:
        try:
            async with self._session_factory() as db:
                await db.execute(delete(HttpSession).where(HttpSession.sid == sid))
                await db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Session store destroy failed for sid={sid}: {e}")
            raise BackendOperationFailed("session_store.destroy", e) from e

    async def purge_expired(self) -> int:
        try:
            async with self._session_factory() as db:
                expired = (
                    await db.execute(select(HttpSession.sid).where(HttpSession.expires_at <= utcnow()))
                ).scalars().all()
                if expired:
                    await db.execute(delete(HttpSession).where(HttpSession.sid.in_(expired)))
                    await db.commit()
                return len(expired)
        except SQLAlchemyError as e:
            logger.error(f"Session store purge failed: {e}")
            raise BackendOperationFailed("session_store.purge_expired", e) from e
