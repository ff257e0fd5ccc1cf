"""
Storage contract shared by the database adapter, the in-memory adapter and the
hybrid coordinator that switches between them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Optional, Type, TypeVar, Union, TYPE_CHECKING

from pydantic import BaseModel

from ..schemas import (
    AnalysisCreate,
    AnalysisRecord,
    ChatMessageCreate,
    ChatMessageRecord,
    StorageStatus,
    UserCreate,
    UserRecord,
)

if TYPE_CHECKING:
    from .session_store import SessionStore

SchemaT = TypeVar("SchemaT", bound=BaseModel)

DEFAULT_MESSAGE_LIMIT = 50


def next_sequence_number(user_id: Optional[int], existing: Iterable[int]) -> int:
    """
    Sequence number for a new analysis of one (user, type) pair.

    Anonymous analyses always get 1. Otherwise it is the highest existing number
    plus one. Callers read `existing` and insert in separate steps, so two
    concurrent creates for the same pair can both get the same number.
    """
    if user_id is None:
        return 1
    return max(existing, default=0) + 1


def to_schema(schema: Type[SchemaT], obj: Union[SchemaT, dict, Any]) -> SchemaT:
    """Accept a create schema or a plain dict; validate dicts against `schema`."""
    if isinstance(obj, schema):
        return obj
    if isinstance(obj, dict):
        return schema.model_validate(obj)
    # Another pydantic model with compatible fields
    if hasattr(obj, "model_dump"):
        return schema.model_validate(obj.model_dump())
    raise TypeError(f"Unsupported input type for {schema.__name__}: {type(obj)}")


class Storage(ABC):
    """
    Every operation the route layer may call. All data operations are
    coroutines; single-record getters return None when nothing matches and
    listings come back newest first.
    """

    session_store: "SessionStore"

    # ---------- Users ----------

    @abstractmethod
    async def get_user(self, id: int) -> Optional[UserRecord]: ...

    @abstractmethod
    async def get_user_by_username(self, username: str) -> Optional[UserRecord]: ...

    @abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[UserRecord]: ...

    @abstractmethod
    async def create_user(self, data: Union[UserCreate, dict]) -> UserRecord:
        """Raises DuplicateKey when the username or email is taken."""

    @abstractmethod
    async def update_user_password(self, email: str, password_hash: str) -> Optional[UserRecord]:
        """Administrative password reset; None when no such user exists."""

    # ---------- Analyses ----------

    @abstractmethod
    async def create_analysis(self, data: Union[AnalysisCreate, dict]) -> AnalysisRecord: ...

    @abstractmethod
    async def get_analyses_by_user(self, user_id: int) -> List[AnalysisRecord]: ...

    @abstractmethod
    async def get_analyses_by_session(self, session_id: str) -> List[AnalysisRecord]: ...

    @abstractmethod
    async def get_analysis(self, id: int) -> Optional[AnalysisRecord]: ...

    # ---------- Chat ----------

    @abstractmethod
    async def create_chat_message(self, data: Union[ChatMessageCreate, dict]) -> ChatMessageRecord: ...

    @abstractmethod
    async def get_chat_messages(self, limit: int = DEFAULT_MESSAGE_LIMIT) -> List[ChatMessageRecord]:
        """Messages not tied to a user account."""

    @abstractmethod
    async def get_chat_messages_by_user(
        self, user_id: int, limit: int = DEFAULT_MESSAGE_LIMIT
    ) -> List[ChatMessageRecord]: ...

    @abstractmethod
    async def get_chat_messages_by_session(
        self, session_id: str, limit: int = DEFAULT_MESSAGE_LIMIT
    ) -> List[ChatMessageRecord]: ...

    # ---------- Maintenance ----------

    @abstractmethod
    async def clear_session_data(self, session_id: str) -> None:
        """Delete every analysis and chat message of one anonymous session."""

    @abstractmethod
    async def clear_all_users_except_testing(self) -> None:
        """Full reset for non-production tooling."""

    @abstractmethod
    def get_storage_status(self) -> StorageStatus: ...
