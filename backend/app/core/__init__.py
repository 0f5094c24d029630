"""Core generation engine: normalization, retry, lifecycle, orchestration, batches."""
from .errors import (
    EnrichmentError,
    ErrorKind,
    GenerationError,
    LifecycleError,
    RateLimitError,
    TransportError,
    ValidationError,
)

__all__ = [
    "EnrichmentError",
    "ErrorKind",
    "GenerationError",
    "LifecycleError",
    "RateLimitError",
    "TransportError",
    "ValidationError",
]
