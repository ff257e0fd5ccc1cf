"""
Storage status reported to health checks.
"""

from typing import Literal
from pydantic import BaseModel, ConfigDict

StorageType = Literal["database", "memory"]


class StorageStatus(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: StorageType
    available: bool = True
