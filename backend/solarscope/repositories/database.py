"""
Relational storage adapter (async SQLAlchemy).

Every call opens a short-lived AsyncSession from the injected factory. The
engine itself belongs to solarscope.database; this adapter only asks for a
session and fails with StoreUnavailable when there is none to ask.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional, Union

from sqlalchemy import delete, desc, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..models import Analysis, ChatMessage, User
from ..schemas import (
    AnalysisCreate,
    AnalysisRecord,
    ChatMessageCreate,
    ChatMessageRecord,
    StorageStatus,
    UserCreate,
    UserRecord,
    normalize_email,
)
from .base import DEFAULT_MESSAGE_LIMIT, Storage, next_sequence_number, to_schema
from .errors import BackendOperationFailed, DuplicateKey, StorageError, StoreUnavailable
from .session_store import DEFAULT_TTL_SECONDS, DatabaseSessionStore, SessionStore

logger = logging.getLogger(__name__)


def _duplicate_user_field(error: IntegrityError) -> Optional[str]:
    """
    Name of the users column a uniqueness violation is about, or None for any
    other integrity failure (NOT NULL, CHECK, ...).
    """
    message = str(error.orig).lower()
    if "unique" not in message:
        return None
    for field in ("username", "email"):
        if field in message:
            return field
    return None


class DatabaseStorage(Storage):
    """
    Storage contract over the users / analyses / chat_messages tables.

    Failures are raised, never swallowed: StoreUnavailable without a session
    factory, BackendOperationFailed for any failing statement, DuplicateKey for
    a username/email uniqueness violation on create_user. Each write commits
    in its own transaction, so a call either returns a complete record or
    leaves nothing behind.
    """

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker[AsyncSession]],
        *,
        session_ttl_seconds: int = DEFAULT_TTL_SECONDS,
    ):
        self._session_factory = session_factory
        self.session_store: Optional[SessionStore] = (
            DatabaseSessionStore(session_factory, ttl_seconds=session_ttl_seconds)
            if session_factory is not None
            else None
        )

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        """Yield a session; map driver failures onto the storage error types."""
        if self._session_factory is None:
            raise StoreUnavailable("Database connection not available")
        try:
            async with self._session_factory() as db:
                yield db
        except StorageError:
            raise
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Database {operation} failed: {e}")
            raise BackendOperationFailed(operation, e) from e

    async def ping(self) -> None:
        """Liveness check used by the startup probe."""
        async with self._session("ping") as db:
            await db.execute(text("SELECT 1"))

    # ---------- Users ----------

    async def get_user(self, id: int) -> Optional[UserRecord]:
        async with self._session("get_user") as db:
            row = await db.get(User, id)
            return UserRecord.model_validate(row) if row else None

    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        async with self._session("get_user_by_username") as db:
            row = (await db.execute(select(User).where(User.username == username))).scalars().first()
            return UserRecord.model_validate(row) if row else None

    async def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        email_norm = normalize_email(email)
        async with self._session("get_user_by_email") as db:
            row = (await db.execute(select(User).where(User.email == email_norm))).scalars().first()
            return UserRecord.model_validate(row) if row else None

    async def create_user(self, data: Union[UserCreate, dict]) -> UserRecord:
        payload = to_schema(UserCreate, data)
        async with self._session("create_user") as db:
            obj = User(**payload.model_dump())
            db.add(obj)
            try:
                # Commit immediately so a uniqueness violation surfaces here
                await db.commit()
            except IntegrityError as e:
                await db.rollback()
                field = _duplicate_user_field(e)
                if field is None:
                    logger.error(f"Database create_user failed: {e}")
                    raise BackendOperationFailed("create_user", e) from e
                logger.info(f"create_user rejected: duplicate {field}")
                raise DuplicateKey(field, getattr(payload, field)) from e
            await db.refresh(obj)
            logger.debug({"repo": "database.create_user", "id": obj.id, "username": obj.username})
            return UserRecord.model_validate(obj)

    async def update_user_password(self, email: str, password_hash: str) -> Optional[UserRecord]:
        email_norm = normalize_email(email)
        async with self._session("update_user_password") as db:
            row = (await db.execute(select(User).where(User.email == email_norm))).scalars().first()
            if row is None:
                return None
            row.password_hash = password_hash
            await db.commit()
            await db.refresh(row)
            logger.info(f"Updated password for user {row.id}")
            return UserRecord.model_validate(row)

    # ---------- Analyses ----------

    async def create_analysis(self, data: Union[AnalysisCreate, dict]) -> AnalysisRecord:
        payload = to_schema(AnalysisCreate, data)
        async with self._session("create_analysis") as db:
            existing: List[int] = []
            if payload.user_id is not None:
                # Read-then-insert without isolation: concurrent creates may share a number
                existing = (
                    await db.execute(
                        select(Analysis.user_sequence_number)
                        .where(Analysis.user_id == payload.user_id, Analysis.type == payload.type)
                        .order_by(desc(Analysis.user_sequence_number))
                    )
                ).scalars().all()
            seq = next_sequence_number(payload.user_id, existing)

            obj = Analysis(user_sequence_number=seq, **payload.model_dump())
            db.add(obj)
            await db.commit()
            await db.refresh(obj)
            logger.debug({"repo": "database.create_analysis", "id": obj.id, "seq": seq, "type": obj.type})
            return AnalysisRecord.model_validate(obj)

    async def get_analyses_by_user(self, user_id: int) -> List[AnalysisRecord]:
        async with self._session("get_analyses_by_user") as db:
            rows = (
                await db.execute(
                    select(Analysis)
                    .where(Analysis.user_id == user_id)
                    .order_by(desc(Analysis.created_at), desc(Analysis.id))
                )
            ).scalars().all()
            return [AnalysisRecord.model_validate(r) for r in rows]

    async def get_analyses_by_session(self, session_id: str) -> List[AnalysisRecord]:
        async with self._session("get_analyses_by_session") as db:
            rows = (
                await db.execute(
                    select(Analysis)
                    .where(Analysis.session_id == session_id)
                    .order_by(desc(Analysis.created_at), desc(Analysis.id))
                )
            ).scalars().all()
            return [AnalysisRecord.model_validate(r) for r in rows]

    async def get_analysis(self, id: int) -> Optional[AnalysisRecord]:
        async with self._session("get_analysis") as db:
            row = await db.get(Analysis, id)
            return AnalysisRecord.model_validate(row) if row else None

    # ---------- Chat ----------

    async def create_chat_message(self, data: Union[ChatMessageCreate, dict]) -> ChatMessageRecord:
        payload = to_schema(ChatMessageCreate, data)
        async with self._session("create_chat_message") as db:
            obj = ChatMessage(**payload.model_dump())
            db.add(obj)
            await db.commit()
            await db.refresh(obj)
            return ChatMessageRecord.model_validate(obj)

    async def _list_messages(self, operation: str, condition, limit: int) -> List[ChatMessageRecord]:
        async with self._session(operation) as db:
            rows = (
                await db.execute(
                    select(ChatMessage)
                    .where(condition)
                    .order_by(desc(ChatMessage.created_at), desc(ChatMessage.id))
                    .limit(limit)
                )
            ).scalars().all()
            return [ChatMessageRecord.model_validate(r) for r in rows]

    async def get_chat_messages(self, limit: int = DEFAULT_MESSAGE_LIMIT) -> List[ChatMessageRecord]:
        return await self._list_messages("get_chat_messages", ChatMessage.user_id.is_(None), limit)

    async def get_chat_messages_by_user(
        self, user_id: int, limit: int = DEFAULT_MESSAGE_LIMIT
    ) -> List[ChatMessageRecord]:
        return await self._list_messages("get_chat_messages_by_user", ChatMessage.user_id == user_id, limit)

    async def get_chat_messages_by_session(
        self, session_id: str, limit: int = DEFAULT_MESSAGE_LIMIT
    ) -> List[ChatMessageRecord]:
        return await self._list_messages(
            "get_chat_messages_by_session", ChatMessage.session_id == session_id, limit
        )

    # ---------- Maintenance ----------

    async def clear_session_data(self, session_id: str) -> None:
        async with self._session("clear_session_data") as db:
            await db.execute(delete(Analysis).where(Analysis.session_id == session_id))
            await db.execute(delete(ChatMessage).where(ChatMessage.session_id == session_id))
            await db.commit()

    async def clear_all_users_except_testing(self) -> None:
        async with self._session("clear_all_users_except_testing") as db:
            await db.execute(delete(User))
            await db.execute(delete(Analysis))
            await db.execute(delete(ChatMessage))
            await db.commit()
        logger.warning("Database storage wiped (users, analyses, chat messages)")

    def get_storage_status(self) -> StorageStatus:
        return StorageStatus(type="database", available=True)
