# backend/tests/conftest.py

"""
Shared fixtures: a throwaway SQLite database per test (file-backed so several
connections see the same schema) and ready-made storage backends.
"""

from __future__ import annotations

from pathlib import Path
from typing import AsyncIterator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from solarscope.database import create_engine_from_url, create_session_factory, create_tables
from solarscope.repositories import DatabaseStorage, HybridStorage, MemoryStorage


def sqlite_url(path: Path) -> str:
    # Plain sqlite URL; the engine helper swaps in the aiosqlite driver
    return f"sqlite:///{path}"


@pytest_asyncio.fixture()
async def async_engine(tmp_path: Path) -> AsyncIterator[AsyncEngine]:
    engine = create_engine_from_url(sqlite_url(tmp_path / "test.db"))
    await create_tables(engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture()
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(async_engine)


@pytest.fixture()
def database_storage(session_factory: async_sessionmaker[AsyncSession]) -> DatabaseStorage:
    return DatabaseStorage(session_factory)


@pytest.fixture()
def memory_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest_asyncio.fixture()
async def hybrid_storage(memory_storage: MemoryStorage, database_storage: DatabaseStorage) -> HybridStorage:
    """Hybrid backend whose probe has already succeeded."""
    storage = HybridStorage(memory_storage, database_storage, warmup_seconds=0, probe_timeout_seconds=5)
    await storage.wait_for_connection_check()
    assert storage.get_storage_status().type == "database"
    return storage


@pytest_asyncio.fixture(params=["memory", "database", "hybrid"])
async def storage(request: pytest.FixtureRequest, tmp_path: Path):
    """Each storage backend in turn, for tests of the shared contract."""
    if request.param == "memory":
        yield MemoryStorage()
        return

    engine = create_engine_from_url(sqlite_url(tmp_path / "contract.db"))
    await create_tables(engine)
    database = DatabaseStorage(create_session_factory(engine))
    try:
        if request.param == "database":
            yield database
        else:
            hybrid = HybridStorage(MemoryStorage(), database, warmup_seconds=0)
            await hybrid.wait_for_connection_check()
            yield hybrid
    finally:
        await engine.dispose()
