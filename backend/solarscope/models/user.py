"""
User model for registered (authenticated) accounts.
"""
from sqlalchemy import Column, String
from .base import BaseModel

class User(BaseModel):
    """
    Registered account.

    Anonymous visitors never get a row here; their analyses and chat
    messages are keyed by the browser session id instead.
    """

    __tablename__ = "users"

    username = Column(String(255), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)

    # Salted hash only, never the plain password
    password_hash = Column(String(255), nullable=False)

    def __repr__(self):
        """String representation for debugging (no credentials)."""
        return f"<User(id={self.id}, username='{self.username}')>"
