"""Shared configuration helpers used by the backend and the CLI."""
from __future__ import annotations

import os


def _env_float(name: str, default: float) -> float:
    """Read a float env value; unparsable values fall back to the default."""
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int, minimum: int | None = None) -> int:
    """Read an int env value, raised to ``minimum`` when one is given."""
    raw = os.environ.get(name, "").strip()
    value = default
    if raw:
        try:
            value = int(raw)
        except ValueError:
            value = default
    if minimum is not None:
        value = max(minimum, value)
    return value


# Optional YAML file with extra/overridden backend definitions
BACKENDS_FILE = os.environ.get("WORLDBUILDER_BACKENDS_FILE", "").strip()

# Transport defaults (seconds)
HTTP_TIMEOUT = _env_float("WORLDBUILDER_HTTP_TIMEOUT", 30.0)
HEALTH_TIMEOUT = _env_float("WORLDBUILDER_HEALTH_TIMEOUT", 5.0)

# Rate-limit retry defaults
RETRY_MAX_ATTEMPTS = _env_int("WORLDBUILDER_RETRY_MAX_ATTEMPTS", 3, minimum=1)
RETRY_BASE_DELAY = _env_float("WORLDBUILDER_RETRY_BASE_DELAY", 1.0)
