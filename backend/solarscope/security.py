# solarscope/security.py
"""
Password hashing shared by the auth service and the in-memory demo account.
"""
from __future__ import annotations

from functools import lru_cache

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Always-available demo identity, seeded into the in-memory store
DEMO_USERNAME = "test_user"
DEMO_EMAIL = "test@example.com"
DEMO_PASSWORD = "password123"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


@lru_cache(maxsize=1)
def demo_password_hash() -> str:
    """Hash once per process; every MemoryStorage reseeds with the same value."""
    return hash_password(DEMO_PASSWORD)
