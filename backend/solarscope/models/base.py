"""
Base model class that provides common fields for all database entities.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, Integer, DateTime
from sqlalchemy.orm import declarative_base

# Create the base class for all our models
Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every store keeps in created_at."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class BaseModel(Base):
    """
    Abstract base model that provides common fields for all entities.

    Attributes:
        id: Primary key for the entity
        created_at: Timestamp when the record was created

    Rows are written once and never updated, so there is no updated_at.
    """
    __abstract__ = True

    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    # String representation for debugging purposes
    def __repr__(self) -> str:
        cls = self.__class__.__name__
        return f"<{cls}(id={getattr(self, 'id', None)})>"
