"""Error taxonomy for generation requests, backend transport, and lifecycle."""
from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Closed set of failure kinds produced by the gateway layer."""

    NETWORK = "network"
    TIMEOUT = "timeout"
    HTTP_STATUS = "http_status"
    RATE_LIMITED = "rate_limited"
    DECODE = "decode"
    BACKEND_REJECTED = "backend_rejected"
    NOT_CONFIGURED = "not_configured"


class GenerationError(Exception):
    """Base class for all world-builder generation errors."""


class ValidationError(GenerationError):
    """Caller input is incomplete or malformed; raised before any remote call."""

    def __init__(
        self,
        missing_fields: list[str] | None = None,
        invalid_fields: list[str] | None = None,
        message: str | None = None,
    ):
        self.missing_fields = list(missing_fields or [])
        self.invalid_fields = list(invalid_fields or [])
        if message is None:
            parts = []
            if self.missing_fields:
                parts.append(f"Missing required fields: {', '.join(self.missing_fields)}")
            if self.invalid_fields:
                parts.append(f"Invalid fields: {', '.join(self.invalid_fields)}")
            message = "; ".join(parts) or "Invalid request"
        super().__init__(message)


class TransportError(GenerationError):
    """A remote backend call failed (network, HTTP status, decode, or rejection).

    ``str(err)`` is safe to show to users: it never contains URLs or backend
    names. ``backend`` and ``operation`` are kept as attributes for logging.
    """

    def __init__(self, message: str, backend: str, operation: str, kind: ErrorKind):
        super().__init__(message)
        self.message = message
        self.backend = backend
        self.operation = operation
        self.kind = kind

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(kind={self.kind.value!r}, backend={self.backend!r}, "
            f"operation={self.operation!r}, message={self.message!r})"
        )


class RateLimitError(TransportError):
    """Backend throttled the request; the only retryable failure."""

    def __init__(self, message: str, backend: str, operation: str):
        super().__init__(message, backend, operation, ErrorKind.RATE_LIMITED)


class LifecycleError(GenerationError):
    """One or more required backends failed to initialize."""

    def __init__(self, message: str, failed_backends: list[str] | None = None):
        super().__init__(message)
        self.failed_backends = list(failed_backends or [])


class EnrichmentError(GenerationError):
    """A secondary asset call (image/voice) failed. Always absorbed."""

    def __init__(self, message: str, asset: str):
        super().__init__(message)
        self.asset = asset
