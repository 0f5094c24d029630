"""Batch generation operation/result models."""
from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from .generation import CamelModel, ContentType


class BatchOperation(CamelModel):
    id: str = Field(..., min_length=1, description="Caller correlation id, echoed in the result")
    type: ContentType
    request: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, v):
        # ContentType._missing_ accepts camelCase spellings like "worldHistory"
        if isinstance(v, str):
            return ContentType(v)
        return v


class BatchResult(CamelModel):
    id: str
    type: str
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        out: dict[str, Any] = {"id": self.id, "type": self.type, "success": self.success}
        if isinstance(self.data, BaseModel):
            out["data"] = self.data.model_dump(mode="json", by_alias=True, exclude_none=True)
        elif self.data is not None:
            out["data"] = self.data
        if self.error is not None:
            out["error"] = self.error
        return out
