# solarscope/schemas/analysis.py
"""
Pydantic schemas for Analysis entity.

`results` is the AI provider's payload. It is stored and returned untouched;
its shape is owned by whoever produces and renders it.
"""
from __future__ import annotations
from typing import Any, Literal, Optional
from pydantic import Field, model_validator

from .base import OwnedSchema, RecordSchema

AnalysisType = Literal["installation", "fault-detection"]


class AnalysisCreate(OwnedSchema):
    """
    Schema for persisting a finished analysis. The sequence number is
    assigned by the store and any value supplied here is ignored.
    """
    type: AnalysisType
    image_path: str = Field(..., min_length=1)
    results: Any
    original_image_url: Optional[str] = None
    analysis_image_url: Optional[str] = None

    @model_validator(mode="after")
    def _require_owner(self):
        if self.user_id is None and self.session_id is None:
            raise ValueError("an analysis needs either user_id or session_id")
        return self


class AnalysisRecord(RecordSchema):
    user_id: Optional[int] = None
    session_id: Optional[str] = None
    user_sequence_number: int = Field(..., ge=1)
    type: AnalysisType
    image_path: str
    results: Any
    original_image_url: Optional[str] = None
    analysis_image_url: Optional[str] = None
