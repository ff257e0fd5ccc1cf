# backend/tests/test_memory_storage.py

"""
In-memory adapter specifics: demo account, reset, frozen records, threads.
"""

from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor

import pytest
from pydantic import ValidationError

from solarscope.repositories import MemorySessionStore, MemoryStorage
from solarscope.security import DEMO_EMAIL, DEMO_PASSWORD, DEMO_USERNAME, verify_password


@pytest.mark.asyncio
async def test_demo_account_is_seeded() -> None:
    storage = MemoryStorage()
    demo = await storage.get_user_by_username(DEMO_USERNAME)

    assert demo is not None
    assert demo.id == 1
    assert demo.email == DEMO_EMAIL
    assert verify_password(DEMO_PASSWORD, demo.password_hash)
    assert (await storage.get_user_by_email(DEMO_EMAIL)).id == demo.id


@pytest.mark.asyncio
async def test_seeding_can_be_turned_off() -> None:
    storage = MemoryStorage(seed_demo_user=False)
    assert await storage.get_user_by_username(DEMO_USERNAME) is None

    user = await storage.create_user({"username": "alice", "email": "alice@example.com", "password_hash": "h"})
    assert user.id == 1


@pytest.mark.asyncio
async def test_reset_reseeds_and_restarts_counters() -> None:
    storage = MemoryStorage()
    await storage.create_user({"username": "alice", "email": "alice@example.com", "password_hash": "h"})
    await storage.create_analysis({"type": "installation", "image_path": "/a.jpg", "results": {}, "session_id": "s1"})

    await storage.clear_all_users_except_testing()

    assert await storage.get_user_by_username("alice") is None
    assert (await storage.get_user_by_username(DEMO_USERNAME)).id == 1
    again = await storage.create_analysis(
        {"type": "installation", "image_path": "/b.jpg", "results": {}, "session_id": "s1"}
    )
    assert again.id == 1


@pytest.mark.asyncio
async def test_records_are_frozen() -> None:
    storage = MemoryStorage()
    analysis = await storage.create_analysis(
        {"type": "fault-detection", "image_path": "/a.jpg", "results": {"faults": []}, "user_id": 3}
    )
    with pytest.raises(ValidationError):
        analysis.image_path = "/other.jpg"
    assert (await storage.get_analysis(analysis.id)).image_path == "/a.jpg"


@pytest.mark.asyncio
async def test_ids_are_per_entity() -> None:
    storage = MemoryStorage(seed_demo_user=False)
    analysis = await storage.create_analysis(
        {"type": "installation", "image_path": "/a.jpg", "results": {}, "session_id": "s1"}
    )
    message = await storage.create_chat_message({"session_id": "s1", "username": "guest", "message": "hi"})
    assert analysis.id == 1
    assert message.id == 1


def test_concurrent_creates_from_threads_get_distinct_ids_and_sequences() -> None:
    storage = MemoryStorage()
    payload = {"type": "installation", "image_path": "/a.jpg", "results": {}, "user_id": 5}

    def create(_):
        return asyncio.run(storage.create_analysis(payload))

    with ThreadPoolExecutor(max_workers=8) as pool:
        created = list(pool.map(create, range(40)))

    assert len({a.id for a in created}) == 40
    assert sorted(a.user_sequence_number for a in created) == list(range(1, 41))


def test_status_and_session_store() -> None:
    storage = MemoryStorage()
    status = storage.get_storage_status()
    assert status.type == "memory"
    assert status.available is True
    assert isinstance(storage.session_store, MemorySessionStore)
