# solarscope/schemas/user.py
"""
Pydantic schemas for User entity.
"""
from __future__ import annotations
from pydantic import EmailStr, Field, field_validator

from .base import BaseSchema, RecordSchema


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserCreate(BaseSchema):
    """
    Schema for creating new users. The password must already be hashed.
    Emails are stored lower-cased so lookups are case-insensitive.
    """
    username: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password_hash: str = Field(..., min_length=1, repr=False)

    @field_validator("email")
    @classmethod
    def _lowercase_email(cls, v: str) -> str:
        return normalize_email(v)


class UserRecord(RecordSchema):
    """
    Stored user. The hash is kept out of repr so records can be logged.
    """
    username: str
    email: str
    password_hash: str = Field(..., repr=False)
