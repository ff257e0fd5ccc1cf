"""
Base schemas that provide common fields and validation patterns.
These are used as building blocks for other schemas.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict, model_validator

class BaseSchema(BaseModel):
    """
    Base schema with common configuration for all schemas.

    Features:
    - Extra fields are ignored (security)
    - Surrounding whitespace stripped from strings
    - Automatic validation
    """

    model_config = ConfigDict(
        # Ignore extra fields (security)
        extra="ignore",
        str_strip_whitespace=True,
        # Validate on assignment
        validate_assignment=True
    )

class RecordSchema(BaseSchema):
    """
    Stored record as handed back by a storage adapter.

    Records are frozen: every store writes once and callers get a value they
    cannot mutate behind the store's back. from_attributes lets the database
    adapter validate ORM rows directly. Strings come back exactly as stored.
    """

    model_config = ConfigDict(from_attributes=True, frozen=True, str_strip_whitespace=False)

    id: int = Field(..., description="Unique identifier for the record")
    created_at: datetime = Field(..., description="When the record was created")

class OwnedSchema(BaseSchema):
    """
    Owner anchor shared by analyses and chat messages: a user id for
    authenticated callers or a session id for anonymous ones, never both.
    Values are stored verbatim, so string fields are not stripped.
    """

    model_config = ConfigDict(str_strip_whitespace=False)

    user_id: Optional[int] = Field(None, ge=1, description="Owning user, if authenticated")
    session_id: Optional[str] = Field(None, min_length=1, description="Owning browser session, if anonymous")

    @model_validator(mode="after")
    def _check_single_owner(self):
        if self.user_id is not None and self.session_id is not None:
            raise ValueError("user_id and session_id are mutually exclusive")
        return self
