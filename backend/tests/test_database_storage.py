# backend/tests/test_database_storage.py

"""
Relational adapter failure modes: it raises, it never falls back on its own.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from solarscope.database import create_engine_from_url, create_session_factory
from solarscope.repositories import (
    BackendOperationFailed,
    DatabaseSessionStore,
    DatabaseStorage,
    DuplicateKey,
    StorageError,
    StoreUnavailable,
)
from solarscope.schemas import UserCreate
from solarscope.security import DEMO_USERNAME


@pytest.mark.asyncio
async def test_without_session_factory_every_call_is_unavailable() -> None:
    storage = DatabaseStorage(None)
    assert storage.session_store is None

    with pytest.raises(StoreUnavailable):
        await storage.ping()
    with pytest.raises(StoreUnavailable):
        await storage.get_analyses_by_session("s1")
    with pytest.raises(StoreUnavailable):
        await storage.create_chat_message({"session_id": "s1", "username": "guest", "message": "hi"})


@pytest.mark.asyncio
async def test_failing_statement_raises_backend_operation_failed(tmp_path: Path) -> None:
    # Reachable database, but the schema was never created
    engine = create_engine_from_url(f"sqlite:///{tmp_path / 'empty.db'}")
    try:
        storage = DatabaseStorage(create_session_factory(engine))
        await storage.ping()

        with pytest.raises(BackendOperationFailed) as exc:
            await storage.get_analysis(1)
        assert exc.value.operation == "get_analysis"
        assert isinstance(exc.value, StorageError)
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_no_demo_account_in_database(database_storage) -> None:
    assert await database_storage.get_user_by_username(DEMO_USERNAME) is None


@pytest.mark.asyncio
async def test_results_payload_is_stored_verbatim(database_storage) -> None:
    results = {"panels": [{"row": 1, "watts": 410.5}], "warnings": [], "score": None}
    created = await database_storage.create_analysis(
        {"type": "installation", "image_path": "/a.jpg", "results": results, "user_id": 2}
    )
    assert (await database_storage.get_analysis(created.id)).results == results


@pytest.mark.asyncio
async def test_status_and_session_store(database_storage) -> None:
    assert database_storage.get_storage_status().type == "database"
    assert isinstance(database_storage.session_store, DatabaseSessionStore)


@pytest.mark.asyncio
async def test_non_unique_integrity_error_is_not_a_duplicate(database_storage) -> None:
    # Skips validation so the NOT NULL constraint is what rejects the row
    broken = UserCreate.model_construct(username="henry", email="henry@example.com", password_hash=None)

    with pytest.raises(BackendOperationFailed) as exc:
        await database_storage.create_user(broken)
    assert not isinstance(exc.value, DuplicateKey)
    assert exc.value.operation == "create_user"
    assert await database_storage.get_user_by_username("henry") is None
