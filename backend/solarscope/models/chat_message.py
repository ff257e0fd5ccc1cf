"""
Chat message model for the assistant conversation.
"""

from sqlalchemy import Column, String, Text, Integer
from .base import BaseModel

class ChatMessage(BaseModel):
    """
    A single user or assistant message. Owner is optional; when present it is
    either user_id or session_id.
    """

    __tablename__ = "chat_messages"

    user_id = Column(Integer, nullable=True, index=True)
    session_id = Column(Text, nullable=True, index=True)

    # Display label shown next to the message
    username = Column(Text, nullable=False)
    message = Column(Text, nullable=False)

    # 'user' | 'ai'
    type = Column(String(20), nullable=False, default="user")

    # 'installation' | 'maintenance' | 'fault' | 'general' ...
    category = Column(String(64), nullable=True, default="general")

    def __repr__(self):
        return f"<ChatMessage(id={self.id}, type='{self.type}', session_id={self.session_id!r})>"
