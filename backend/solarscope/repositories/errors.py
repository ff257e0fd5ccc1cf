"""
Storage error taxonomy.

A lookup that finds nothing is not an error: single-record getters return None.
"""


class StorageError(Exception):
    """Base class for every failure a storage adapter raises."""


class StoreUnavailable(StorageError):
    """No connection handle could be obtained for the durable store."""


class BackendOperationFailed(StorageError):
    """A statement against an available durable store failed."""

    def __init__(self, operation: str, cause: BaseException):
        super().__init__(f"{operation} failed: {cause}")
        self.operation = operation
        self.cause = cause


class DuplicateKey(StorageError):
    """Username or email is already registered. Never triggers a fallback."""

    def __init__(self, field: str, value: str):
        super().__init__(f"{field} already registered")
        self.field = field
        self.value = value
