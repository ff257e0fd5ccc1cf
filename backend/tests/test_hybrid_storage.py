# backend/tests/test_hybrid_storage.py

"""
Startup probe and one-way fallback of HybridStorage.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from solarscope.database import create_engine_from_url, create_session_factory
from solarscope.repositories import (
    BackendOperationFailed,
    DatabaseSessionStore,
    DatabaseStorage,
    DuplicateKey,
    HybridStorage,
    MemorySessionStore,
    MemoryStorage,
)

ANALYSIS = {"type": "installation", "image_path": "/tmp/roof.jpg", "results": {"panels": 10}}


class SlowDatabaseStorage(DatabaseStorage):
    """Database adapter whose liveness check never answers in time."""

    async def ping(self) -> None:
        await asyncio.sleep(10)


@pytest.mark.asyncio
async def test_probe_without_connection_settles_on_memory() -> None:
    storage = HybridStorage(MemoryStorage(), DatabaseStorage(None), warmup_seconds=0)
    await storage.wait_for_connection_check()

    assert storage.get_storage_status().type == "memory"
    assert storage.get_storage_status().available is True
    assert isinstance(storage.session_store, MemorySessionStore)

    created = await storage.create_analysis({**ANALYSIS, "session_id": "s1"})
    fetched = await storage.get_analysis(created.id)
    assert fetched == created


@pytest.mark.asyncio
async def test_probe_against_unreachable_database_settles_on_memory(tmp_path: Path) -> None:
    # Parent directory does not exist, so SQLite cannot open the file
    engine = create_engine_from_url(f"sqlite:///{tmp_path / 'missing' / 'db.sqlite'}")
    try:
        storage = HybridStorage(
            MemoryStorage(), DatabaseStorage(create_session_factory(engine)), warmup_seconds=0
        )
        await storage.wait_for_connection_check()

        assert storage.get_storage_status().type == "memory"
        created = await storage.create_analysis({**ANALYSIS, "user_id": 7})
        assert created.user_sequence_number == 1
        assert await storage.get_analysis(created.id) == created
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_probe_timeout_settles_on_memory(session_factory) -> None:
    storage = HybridStorage(
        MemoryStorage(),
        SlowDatabaseStorage(session_factory),
        warmup_seconds=0,
        probe_timeout_seconds=0.05,
    )
    await storage.wait_for_connection_check()
    assert storage.get_storage_status().type == "memory"


@pytest.mark.asyncio
async def test_without_database_adapter_uses_memory() -> None:
    storage = HybridStorage(warmup_seconds=0)
    await storage.wait_for_connection_check()
    # Second wait returns immediately
    await storage.wait_for_connection_check()
    assert storage.get_storage_status().type == "memory"


@pytest.mark.asyncio
async def test_successful_probe_routes_to_database(memory_storage, database_storage) -> None:
    storage = HybridStorage(memory_storage, database_storage, warmup_seconds=0)
    await storage.wait_for_connection_check()

    assert storage.get_storage_status().type == "database"
    assert isinstance(storage.session_store, DatabaseSessionStore)

    created = await storage.create_analysis({**ANALYSIS, "session_id": "s1"})
    assert await database_storage.get_analysis(created.id) == created
    assert await memory_storage.get_analyses_by_session("s1") == []


@pytest.mark.asyncio
async def test_calls_before_probe_completes_use_memory(memory_storage, database_storage) -> None:
    storage = HybridStorage(memory_storage, database_storage, warmup_seconds=0.2)
    assert storage.get_storage_status().type == "memory"

    early = await storage.create_analysis({**ANALYSIS, "session_id": "early"})
    assert await memory_storage.get_analysis(early.id) == early
    assert await database_storage.get_analyses_by_session("early") == []

    await storage.wait_for_connection_check()
    assert storage.get_storage_status().type == "database"


@pytest.mark.asyncio
async def test_failure_demotes_permanently(hybrid_storage, memory_storage, database_storage, monkeypatch) -> None:
    stored = await hybrid_storage.create_analysis({**ANALYSIS, "user_id": 1})
    assert await hybrid_storage.get_analysis(stored.id) == stored

    async def broken(*args, **kwargs):
        raise BackendOperationFailed("get_analysis", ConnectionError("connection reset"))

    monkeypatch.setattr(database_storage, "get_analysis", broken)

    # Served from memory, which never saw the row
    assert await hybrid_storage.get_analysis(stored.id) is None
    assert hybrid_storage.get_storage_status().type == "memory"

    # Database is healthy again, but the coordinator does not go back
    monkeypatch.undo()
    assert await database_storage.get_analysis(stored.id) == stored

    later = await hybrid_storage.create_analysis({**ANALYSIS, "user_id": 1})
    assert hybrid_storage.get_storage_status().type == "memory"
    assert await memory_storage.get_analysis(later.id) == later
    assert [a.id for a in await database_storage.get_analyses_by_user(1)] == [stored.id]


@pytest.mark.asyncio
async def test_any_exception_from_database_triggers_fallback(hybrid_storage, database_storage, monkeypatch) -> None:
    async def boom(*args, **kwargs):
        raise RuntimeError("driver crashed")

    monkeypatch.setattr(database_storage, "get_chat_messages_by_session", boom)
    assert await hybrid_storage.get_chat_messages_by_session("s1") == []
    assert hybrid_storage.get_storage_status().type == "memory"


@pytest.mark.asyncio
async def test_duplicate_user_is_not_retried_on_memory(hybrid_storage, memory_storage) -> None:
    await hybrid_storage.create_user({"username": "alice", "email": "alice@example.com", "password_hash": "h"})

    with pytest.raises(DuplicateKey):
        await hybrid_storage.create_user({"username": "alice2", "email": "alice@example.com", "password_hash": "h"})

    assert hybrid_storage.get_storage_status().type == "database"
    assert await memory_storage.get_user_by_email("alice@example.com") is None
    assert await memory_storage.get_user_by_username("alice2") is None


@pytest.mark.asyncio
async def test_invalid_input_does_not_demote(hybrid_storage) -> None:
    with pytest.raises(ValidationError):
        await hybrid_storage.create_analysis({**ANALYSIS, "user_id": 1, "session_id": "s1"})
    with pytest.raises(ValidationError):
        await hybrid_storage.create_analysis(ANALYSIS)
    assert hybrid_storage.get_storage_status().type == "database"


@pytest.mark.asyncio
async def test_session_store_follows_successful_probe(hybrid_storage) -> None:
    await hybrid_storage.session_store.set("sid-1", {"passport": {"user": 3}})
    assert await hybrid_storage.session_store.get("sid-1") == {"passport": {"user": 3}}


@pytest.mark.asyncio
async def test_successful_connection_check_logs_at_info(memory_storage, database_storage, caplog) -> None:
    caplog.set_level(logging.INFO, logger="solarscope.repositories.hybrid")
    storage = HybridStorage(memory_storage, database_storage, warmup_seconds=0)
    await storage.wait_for_connection_check()

    verified = [r for r in caplog.records if "verified" in r.getMessage()]
    assert [r.levelno for r in verified] == [logging.INFO]
    assert not [r for r in caplog.records if r.name == "solarscope.repositories.hybrid" and r.levelno >= logging.WARNING]
