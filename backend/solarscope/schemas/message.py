"""
Pydantic schemas for ChatMessage entity.
Aligned with models.chat_message.ChatMessage.
"""

from typing import Literal, Optional
from pydantic import Field

from .base import OwnedSchema, RecordSchema

MessageType = Literal["user", "ai"]


class ChatMessageCreate(OwnedSchema):
    """
    Schema for creating new chat messages. Owner is optional here.
    """
    username: str = Field(..., min_length=1, description="Display label")
    message: str = Field(..., description="Message text content")
    type: MessageType = "user"
    category: Optional[str] = "general"


class ChatMessageRecord(RecordSchema):
    user_id: Optional[int] = None
    session_id: Optional[str] = None
    username: str
    message: str
    type: MessageType
    category: Optional[str] = None
