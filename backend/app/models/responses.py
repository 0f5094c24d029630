"""Uniform success/failure envelope returned by every orchestrator call."""
from __future__ import annotations

from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, Field, model_validator

from .generation import CamelModel

T = TypeVar("T")


class ResponseMetadata(CamelModel):
    """Optional telemetry; tokens/cache are only set when a backend reports them."""
    tokens_used: Optional[int] = None
    processing_time: Optional[float] = Field(None, description="Milliseconds")
    cache_hit: Optional[bool] = None


class ServiceResponse(CamelModel, Generic[T]):
    """success implies data and no error; failure implies error and no data."""

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    metadata: Optional[ResponseMetadata] = None

    @model_validator(mode="after")
    def _check_invariant(self) -> "ServiceResponse":
        if self.success:
            if self.data is None:
                raise ValueError("successful response requires data")
            if self.error is not None:
                raise ValueError("successful response must not carry an error")
        else:
            if not self.error:
                raise ValueError("failed response requires an error message")
            if self.data is not None:
                raise ValueError("failed response must not carry data")
        return self

    @classmethod
    def ok(cls, data: T, metadata: ResponseMetadata | None = None) -> "ServiceResponse[T]":
        return cls(success=True, data=data, metadata=metadata)

    @classmethod
    def fail(cls, error: str, metadata: ResponseMetadata | None = None) -> "ServiceResponse[T]":
        return cls(success=False, error=error or "Generation failed", metadata=metadata)

    def data_payload(self) -> Any:
        """``data`` serialized for the wire (camelCase, unset optionals dropped)."""
        if isinstance(self.data, BaseModel):
            return self.data.model_dump(mode="json", by_alias=True, exclude_none=True)
        return self.data

    def to_payload(self) -> dict[str, Any]:
        out: dict[str, Any] = {"success": self.success}
        if self.success:
            out["data"] = self.data_payload()
        else:
            out["error"] = self.error
        if self.metadata is not None:
            out["metadata"] = self.metadata.model_dump(mode="json", by_alias=True, exclude_none=True)
        return out
