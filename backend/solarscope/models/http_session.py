"""
Login-session rows for the database-backed session store.
"""

from sqlalchemy import Column, String, DateTime, JSON
from .base import Base

class HttpSession(Base):
    """Serialized login session keyed by the cookie session id."""

    __tablename__ = "http_sessions"

    sid = Column(String(255), primary_key=True)
    data = Column(JSON, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)

    def __repr__(self):
        return f"<HttpSession(sid='{self.sid}', expires_at={self.expires_at})>"
