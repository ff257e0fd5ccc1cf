"""
Hybrid storage: database first, memory as the fallback.

On construction a background probe waits for the rest of the process to finish
its own database setup, then checks the connection with a timeout. Until that
probe succeeds every call goes to memory. After it succeeds calls go to the
database, and the first failing database call switches the instance to memory
for the rest of the process. There is no re-probe and no way back.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Optional, Union

from ..schemas import (
    AnalysisCreate,
    AnalysisRecord,
    ChatMessageCreate,
    ChatMessageRecord,
    StorageStatus,
    UserCreate,
    UserRecord,
)
from .base import DEFAULT_MESSAGE_LIMIT, Storage, to_schema
from .database import DatabaseStorage
from .errors import DuplicateKey
from .memory import MemoryStorage

logger = logging.getLogger(__name__)

DEFAULT_WARMUP_SECONDS = 2.0
DEFAULT_PROBE_TIMEOUT_SECONDS = 5.0


class HybridStorage(Storage):
    """
    Routes each call to the database adapter while it is healthy, otherwise to
    the memory adapter.

    Only this class has a startup probe, so callers that need to wait for it
    check `isinstance(storage, HybridStorage)` and await
    `wait_for_connection_check()`.
    """

    def __init__(
        self,
        memory: Optional[MemoryStorage] = None,
        database: Optional[DatabaseStorage] = None,
        *,
        warmup_seconds: float = DEFAULT_WARMUP_SECONDS,
        probe_timeout_seconds: float = DEFAULT_PROBE_TIMEOUT_SECONDS,
    ):
        self._memory = memory or MemoryStorage()
        self._database = database
        self._database_available = False
        self._warmup_seconds = warmup_seconds
        self._probe_timeout_seconds = probe_timeout_seconds
        self._connection_check: Optional[asyncio.Task] = None

        # Memory session store until the database has been verified
        self.session_store = self._memory.session_store

        # Start probing right away when built inside a running loop; otherwise
        # the first wait_for_connection_check() starts it
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            pass
        else:
            self.start_connection_check()

    # ---------- Connection check ----------

    def start_connection_check(self) -> asyncio.Task:
        """Schedule the probe once; later calls return the same task."""
        if self._connection_check is None:
            self._connection_check = asyncio.get_running_loop().create_task(
                self._check_database_connection()
            )
        return self._connection_check

    async def wait_for_connection_check(self) -> None:
        await self.start_connection_check()

    async def _check_database_connection(self) -> None:
        database = self._database
        if database is None:
            logger.warning("No database adapter configured - using memory storage")
            return

        try:
            # Give the rest of the process time to finish its own connection setup
            if self._warmup_seconds > 0:
                await asyncio.sleep(self._warmup_seconds)
            await asyncio.wait_for(database.ping(), timeout=self._probe_timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(
                f"Database connection timed out after {self._probe_timeout_seconds}s, using memory storage"
            )
            self._disable_database()
            return
        except Exception as e:
            logger.warning(f"Database connection failed, using memory storage: {e}")
            self._disable_database()
            return

        self._database_available = True
        if database.session_store is not None:
            self.session_store = database.session_store
        logger.info("Database connection verified - using database storage")

    def _disable_database(self) -> None:
        self._database_available = False
        self._database = None

    # ---------- Dispatch ----------

    async def _run(self, operation: str, *args: Any, **kwargs: Any) -> Any:
        database = self._database
        if self._database_available and database is not None:
            try:
                return await getattr(database, operation)(*args, **kwargs)
            except DuplicateKey:
                # Falling back here would let the same identity exist in both stores
                raise
            except Exception as e:
                logger.warning(f"Database {operation} failed, falling back to memory: {e}")
                self._database_available = False
        return await getattr(self._memory, operation)(*args, **kwargs)

    # ---------- Users ----------

    async def get_user(self, id: int) -> Optional[UserRecord]:
        return await self._run("get_user", id)

    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        return await self._run("get_user_by_username", username)

    async def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        return await self._run("get_user_by_email", email)

    async def create_user(self, data: Union[UserCreate, dict]) -> UserRecord:
        # Validate before dispatch so bad input never counts as a database failure
        return await self._run("create_user", to_schema(UserCreate, data))

    async def update_user_password(self, email: str, password_hash: str) -> Optional[UserRecord]:
        return await self._run("update_user_password", email, password_hash)

    # ---------- Analyses ----------

    async def create_analysis(self, data: Union[AnalysisCreate, dict]) -> AnalysisRecord:
        return await self._run("create_analysis", to_schema(AnalysisCreate, data))

    async def get_analyses_by_user(self, user_id: int) -> List[AnalysisRecord]:
        return await self._run("get_analyses_by_user", user_id)

    async def get_analyses_by_session(self, session_id: str) -> List[AnalysisRecord]:
        return await self._run("get_analyses_by_session", session_id)

    async def get_analysis(self, id: int) -> Optional[AnalysisRecord]:
        return await self._run("get_analysis", id)

    # ---------- Chat ----------

    async def create_chat_message(self, data: Union[ChatMessageCreate, dict]) -> ChatMessageRecord:
        return await self._run("create_chat_message", to_schema(ChatMessageCreate, data))

    async def get_chat_messages(self, limit: int = DEFAULT_MESSAGE_LIMIT) -> List[ChatMessageRecord]:
        return await self._run("get_chat_messages", limit)

    async def get_chat_messages_by_user(
        self, user_id: int, limit: int = DEFAULT_MESSAGE_LIMIT
    ) -> List[ChatMessageRecord]:
        return await self._run("get_chat_messages_by_user", user_id, limit)

    async def get_chat_messages_by_session(
        self, session_id: str, limit: int = DEFAULT_MESSAGE_LIMIT
    ) -> List[ChatMessageRecord]:
        return await self._run("get_chat_messages_by_session", session_id, limit)

    # ---------- Maintenance ----------

    async def clear_session_data(self, session_id: str) -> None:
        await self._run("clear_session_data", session_id)

    async def clear_all_users_except_testing(self) -> None:
        await self._run("clear_all_users_except_testing")

    def get_storage_status(self) -> StorageStatus:
        return StorageStatus(type="database" if self._database_available else "memory", available=True)
