"""Error handling utilities: structured logging and error responses."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)


def log_error_with_context(
    error: Exception,
    component: str,
    content_type: str | None = None,
    backend: str | None = None,
    operation: str | None = None,
    request_id: str | None = None,
    extra_context: dict[str, Any] | None = None,
) -> None:
    """
    Log an error with full context: content type, backend/operation, request id, and stack trace.

    Args:
        error: The exception that occurred
        component: Where it happened (e.g., 'orchestrator', 'lifecycle', 'api')
        content_type: Content type being generated (e.g., 'npc', 'terrain')
        backend: Backend name the failing call targeted
        operation: Backend operation (e.g., 'npc-generator', 'scene-image')
        request_id: Caller-supplied correlation id (batch item id, etc.)
        extra_context: Additional context dict to include in log
    """
    context_parts = []
    if content_type:
        context_parts.append(f"content_type={content_type}")
    if backend:
        context_parts.append(f"backend={backend}")
    if operation:
        context_parts.append(f"operation={operation}")
    if request_id:
        context_parts.append(f"request_id={request_id}")
    context_str = ", ".join(context_parts) if context_parts else "no context"

    extra = {}
    if extra_context:
        extra.update(extra_context)
    if content_type:
        extra["content_type"] = content_type
    if backend:
        extra["backend"] = backend
    if operation:
        extra["operation"] = operation
    if request_id:
        extra["request_id"] = request_id
    extra["component"] = component

    logger.error(
        f"[{component}] Error: {type(error).__name__}: {str(error)} ({context_str})",
        exc_info=True,
        extra=extra,
    )


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp used in every API envelope."""
    return datetime.now(timezone.utc).isoformat()


def create_error_response(
    error_code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Create a structured failure envelope for API endpoints.

    Args:
        error_code: Error code (e.g., 'VALIDATION_ERROR', 'GENERATION_FAILED')
        message: Human-readable error message (never a stack trace or backend URL)
        details: Additional fields merged into the top level of the envelope

    Returns:
        ``{"success": False, "error": ..., "error_code": ..., "timestamp": ..., **details}``
    """
    response: dict[str, Any] = {
        "success": False,
        "error": message,
        "error_code": error_code,
    }
    if details:
        response.update(details)
    response["timestamp"] = utc_timestamp()
    return response
