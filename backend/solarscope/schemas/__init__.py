# Schemas package for storage input/output validation

# Base schemas
from .base import BaseSchema, RecordSchema, OwnedSchema

# User schemas
from .user import UserCreate, UserRecord, normalize_email

# Analysis schemas
from .analysis import AnalysisCreate, AnalysisRecord, AnalysisType

# Chat message schemas
from .message import ChatMessageCreate, ChatMessageRecord, MessageType

# Storage status
from .status import StorageStatus, StorageType

# Export all schemas for easy importing
__all__ = [
    # Base
    "BaseSchema", "RecordSchema", "OwnedSchema",

    # User
    "UserCreate", "UserRecord", "normalize_email",

    # Analysis
    "AnalysisCreate", "AnalysisRecord", "AnalysisType",

    # Chat message
    "ChatMessageCreate", "ChatMessageRecord", "MessageType",

    # Status
    "StorageStatus", "StorageType",
]
