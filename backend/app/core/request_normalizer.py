"""Request normalization: required-field checks and defaulting for generation requests.

Pure and synchronous: no I/O, the caller's mapping is never mutated.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from backend.app.core.errors import ValidationError
from backend.app.models.generation import (
    REQUEST_MODELS,
    ContentType,
    GenerationRequestBase,
    required_fields,
)

logger = logging.getLogger(__name__)


def _lookup(payload: Mapping[str, Any], camel: str) -> Any:
    """Value under the camelCase key, falling back to the snake_case key."""
    if camel in payload:
        return payload[camel]
    snake = "".join(f"_{c.lower()}" if c.isupper() else c for c in camel)
    return payload.get(snake)


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def missing_required_fields(payload: Any, content_type: ContentType) -> list[str]:
    """Required camelCase field names that are absent, None, blank or empty."""
    fields = required_fields(content_type)
    if not isinstance(payload, Mapping):
        return fields
    return [name for name in fields if _is_blank(_lookup(payload, name))]


def _pydantic_error_fields(exc: PydanticValidationError, model: type[GenerationRequestBase]) -> list[str]:
    out: list[str] = []
    for err in exc.errors():
        loc = err.get("loc") or ()
        if not loc:
            continue
        name = str(loc[0])
        info = model.model_fields.get(name)
        if info is not None and info.alias:
            name = info.alias
        if name not in out:
            out.append(name)
    return out


def normalize_request(payload: Any, content_type: ContentType | str) -> GenerationRequestBase:
    """Validate ``payload`` and return the fully-defaulted request variant.

    Raises :class:`ValidationError` listing every missing required field (in
    declaration order) or every field whose value has the wrong shape.
    """
    ctype = ContentType(content_type)
    missing = missing_required_fields(payload, ctype)
    if missing:
        raise ValidationError(missing_fields=missing)

    if ctype is ContentType.LOCATION:
        coords = _lookup(payload, "coordinates")
        if not (
            isinstance(coords, Mapping)
            and _is_number(coords.get("x"))
            and _is_number(coords.get("y"))
        ):
            raise ValidationError(invalid_fields=["coordinates"])

    model = REQUEST_MODELS[ctype]
    try:
        return model.model_validate(dict(payload))
    except PydanticValidationError as exc:
        fields = _pydantic_error_fields(exc, model)
        logger.info("Rejected %s request: invalid fields %s", ctype.value, fields)
        raise ValidationError(invalid_fields=fields or ["request"]) from exc
