# Models package for database entities

from .base import Base, BaseModel, utcnow
from .user import User
from .analysis import Analysis
from .chat_message import ChatMessage
from .http_session import HttpSession

# Export all models for easy importing
__all__ = ["Base", "BaseModel", "utcnow", "User", "Analysis", "ChatMessage", "HttpSession"]
