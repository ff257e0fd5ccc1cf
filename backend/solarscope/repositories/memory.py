"""
In-memory storage adapter.

Used on its own when no database is configured and as the fallback inside
HybridStorage. Nothing survives a restart. Operations never block, so they
never suspend; the async signatures only exist to match the contract.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, Iterable, List, Optional, TypeVar, Union

from ..models import utcnow
from ..schemas import (
    AnalysisCreate,
    AnalysisRecord,
    ChatMessageCreate,
    ChatMessageRecord,
    RecordSchema,
    StorageStatus,
    UserCreate,
    UserRecord,
    normalize_email,
)
from ..security import DEMO_EMAIL, DEMO_USERNAME, demo_password_hash
from .base import DEFAULT_MESSAGE_LIMIT, Storage, next_sequence_number, to_schema
from .errors import DuplicateKey
from .session_store import DEFAULT_TTL_SECONDS, MemorySessionStore

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=RecordSchema)


def _newest_first(records: Iterable[RecordT]) -> List[RecordT]:
    return sorted(records, key=lambda r: (r.created_at, r.id), reverse=True)


class MemoryStorage(Storage):
    """
    Dict-backed implementation of the storage contract.

    Each entity has its own id counter starting at 1. Records are frozen, so
    the stored objects can be handed out directly. All reads and writes take
    one re-entrant lock so the containers stay consistent when called from
    worker threads as well as the event loop.
    """

    def __init__(self, *, session_ttl_seconds: int = DEFAULT_TTL_SECONDS, seed_demo_user: bool = True):
        self._lock = threading.RLock()
        self._seed_demo_user = seed_demo_user
        self._reset()
        self.session_store = MemorySessionStore(ttl_seconds=session_ttl_seconds)

    # ---------- Helpers (internal) ----------

    def _reset(self) -> None:
        with self._lock:
            self._users: Dict[int, UserRecord] = {}
            self._analyses: Dict[int, AnalysisRecord] = {}
            self._chat_messages: Dict[int, ChatMessageRecord] = {}
            self._next_user_id = 1
            self._next_analysis_id = 1
            self._next_chat_message_id = 1
            if self._seed_demo_user:
                self._insert_user(UserCreate(
                    username=DEMO_USERNAME,
                    email=DEMO_EMAIL,
                    password_hash=demo_password_hash(),
                ))

    def _insert_user(self, data: UserCreate) -> UserRecord:
        with self._lock:
            for existing in self._users.values():
                if existing.username == data.username:
                    raise DuplicateKey("username", data.username)
                if existing.email == data.email:
                    raise DuplicateKey("email", data.email)
            user = UserRecord(id=self._next_user_id, created_at=utcnow(), **data.model_dump())
            self._users[user.id] = user
            self._next_user_id += 1
            return user

    # ---------- Users ----------

    async def get_user(self, id: int) -> Optional[UserRecord]:
        with self._lock:
            return self._users.get(id)

    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        with self._lock:
            return next((u for u in self._users.values() if u.username == username), None)

    async def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        email_norm = normalize_email(email)
        with self._lock:
            return next((u for u in self._users.values() if u.email == email_norm), None)

    async def create_user(self, data: Union[UserCreate, dict]) -> UserRecord:
        user = self._insert_user(to_schema(UserCreate, data))
        logger.debug({"repo": "memory.create_user", "id": user.id, "username": user.username})
        return user

    async def update_user_password(self, email: str, password_hash: str) -> Optional[UserRecord]:
        email_norm = normalize_email(email)
        with self._lock:
            user = next((u for u in self._users.values() if u.email == email_norm), None)
            if user is None:
                return None
            updated = user.model_copy(update={"password_hash": password_hash})
            self._users[user.id] = updated
        logger.info(f"Updated password for user {updated.id} (memory)")
        return updated

    # ---------- Analyses ----------

    async def create_analysis(self, data: Union[AnalysisCreate, dict]) -> AnalysisRecord:
        payload = to_schema(AnalysisCreate, data)
        with self._lock:
            seq = next_sequence_number(
                payload.user_id,
                (
                    a.user_sequence_number
                    for a in self._analyses.values()
                    if a.user_id == payload.user_id and a.type == payload.type
                ),
            )
            analysis = AnalysisRecord(
                id=self._next_analysis_id,
                created_at=utcnow(),
                user_sequence_number=seq,
                **payload.model_dump(),
            )
            self._analyses[analysis.id] = analysis
            self._next_analysis_id += 1
        logger.debug({"repo": "memory.create_analysis", "id": analysis.id, "seq": seq, "type": analysis.type})
        return analysis

    async def get_analyses_by_user(self, user_id: int) -> List[AnalysisRecord]:
        with self._lock:
            return _newest_first(a for a in self._analyses.values() if a.user_id == user_id)

    async def get_analyses_by_session(self, session_id: str) -> List[AnalysisRecord]:
        with self._lock:
            return _newest_first(a for a in self._analyses.values() if a.session_id == session_id)

    async def get_analysis(self, id: int) -> Optional[AnalysisRecord]:
        with self._lock:
            return self._analyses.get(id)

    # ---------- Chat ----------

    async def create_chat_message(self, data: Union[ChatMessageCreate, dict]) -> ChatMessageRecord:
        payload = to_schema(ChatMessageCreate, data)
        with self._lock:
            message = ChatMessageRecord(id=self._next_chat_message_id, created_at=utcnow(), **payload.model_dump())
            self._chat_messages[message.id] = message
            self._next_chat_message_id += 1
        return message

    async def get_chat_messages(self, limit: int = DEFAULT_MESSAGE_LIMIT) -> List[ChatMessageRecord]:
        with self._lock:
            return _newest_first(m for m in self._chat_messages.values() if m.user_id is None)[:limit]

    async def get_chat_messages_by_user(
        self, user_id: int, limit: int = DEFAULT_MESSAGE_LIMIT
    ) -> List[ChatMessageRecord]:
        with self._lock:
            return _newest_first(m for m in self._chat_messages.values() if m.user_id == user_id)[:limit]

    async def get_chat_messages_by_session(
        self, session_id: str, limit: int = DEFAULT_MESSAGE_LIMIT
    ) -> List[ChatMessageRecord]:
        with self._lock:
            return _newest_first(m for m in self._chat_messages.values() if m.session_id == session_id)[:limit]

    # ---------- Maintenance ----------

    async def clear_session_data(self, session_id: str) -> None:
        with self._lock:
            for id in [k for k, a in self._analyses.items() if a.session_id == session_id]:
                del self._analyses[id]
            for id in [k for k, m in self._chat_messages.items() if m.session_id == session_id]:
                del self._chat_messages[id]

    async def clear_all_users_except_testing(self) -> None:
        # Wipe everything and restart the counters; the demo account is reseeded
        self._reset()
        logger.warning("Memory storage reset (demo account reseeded)")

    def get_storage_status(self) -> StorageStatus:
        return StorageStatus(type="memory", available=True)
