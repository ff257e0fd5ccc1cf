# backend/tests/test_session_store.py

"""
Login-session stores: memory and http_sessions table behave the same.
"""

from __future__ import annotations

import pytest

from solarscope.repositories import DatabaseSessionStore, MemorySessionStore


@pytest.fixture(params=["memory", "database"])
def make_store(request, session_factory):
    def build(ttl_seconds: int = 3600):
        if request.param == "memory":
            return MemorySessionStore(ttl_seconds=ttl_seconds)
        return DatabaseSessionStore(session_factory, ttl_seconds=ttl_seconds)

    return build


@pytest.mark.asyncio
async def test_set_get_destroy(make_store) -> None:
    store = make_store()
    assert await store.get("sid") is None

    await store.set("sid", {"passport": {"user": 1}})
    assert await store.get("sid") == {"passport": {"user": 1}}

    # Overwrite
    await store.set("sid", {"passport": {"user": 2}})
    assert await store.get("sid") == {"passport": {"user": 2}}

    await store.destroy("sid")
    await store.destroy("sid")
    assert await store.get("sid") is None


@pytest.mark.asyncio
async def test_expired_sessions_are_not_returned(make_store) -> None:
    store = make_store(ttl_seconds=0)
    await store.set("old", {"cart": []})
    assert await store.get("old") is None


@pytest.mark.asyncio
async def test_purge_expired(make_store) -> None:
    expired = make_store(ttl_seconds=0)
    await expired.set("a", {})
    await expired.set("b", {})
    assert await expired.purge_expired() == 2
    assert await expired.purge_expired() == 0

    live = make_store()
    await live.set("c", {"k": "v"})
    assert await live.purge_expired() == 0
    assert await live.get("c") == {"k": "v"}
