# Repositories package: storage adapters and the hybrid coordinator

# Contract
from .base import Storage, DEFAULT_MESSAGE_LIMIT, next_sequence_number

# Errors
from .errors import StorageError, StoreUnavailable, BackendOperationFailed, DuplicateKey

# Adapters
from .memory import MemoryStorage
from .database import DatabaseStorage
from .hybrid import HybridStorage
from .factory import create_storage

# Login-session stores
from .session_store import SessionStore, MemorySessionStore, DatabaseSessionStore

__all__ = [
    "Storage",
    "DEFAULT_MESSAGE_LIMIT",
    "next_sequence_number",
    "StorageError",
    "StoreUnavailable",
    "BackendOperationFailed",
    "DuplicateKey",
    "MemoryStorage",
    "DatabaseStorage",
    "HybridStorage",
    "create_storage",
    "SessionStore",
    "MemorySessionStore",
    "DatabaseSessionStore",
]
