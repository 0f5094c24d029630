"""Runtime env parsing helpers used by API and launch entrypoints."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

DEFAULT_DEV_CORS_ALLOW_ORIGINS: tuple[str, ...] = (
    "http://localhost",
    "http://127.0.0.1",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
)

DEFAULT_RATE_LIMIT_PER_MINUTE = 30


@dataclass(frozen=True)
class RuntimeSettings:
    """CORS/rate-limit/startup settings used by the API entrypoint."""

    dev_mode: bool
    cors_allow_origins: list[str]
    rate_limit_per_minute: int
    eager_init: bool


def env_flag(name: str, default: bool = False, environ: Mapping[str, str] | None = None) -> bool:
    """Read boolean env values from common truthy/falsey forms."""
    env = os.environ if environ is None else environ
    val = env.get(name, "").strip().lower()
    if not val:
        return default
    return val in ("1", "true", "yes", "on")


def parse_cors_allowlist(raw: str, fallback: tuple[str, ...] = DEFAULT_DEV_CORS_ALLOW_ORIGINS) -> list[str]:
    origins = [o.strip() for o in raw.split(",") if o and o.strip()]
    if origins:
        return origins
    return list(fallback)


def parse_rate_limit(raw: str, default: int = DEFAULT_RATE_LIMIT_PER_MINUTE) -> int:
    """Requests per minute per client; 0 disables, garbage falls back to default."""
    raw = (raw or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return max(value, 0)


def load_runtime_settings(environ: Mapping[str, str] | None = None) -> RuntimeSettings:
    env = os.environ if environ is None else environ
    return RuntimeSettings(
        dev_mode=env_flag("WORLDBUILDER_DEV_MODE", default=True, environ=env),
        cors_allow_origins=parse_cors_allowlist(env.get("WORLDBUILDER_CORS_ALLOW_ORIGINS", "")),
        rate_limit_per_minute=parse_rate_limit(env.get("WORLDBUILDER_RATE_LIMIT_PER_MINUTE", "")),
        eager_init=env_flag("WORLDBUILDER_EAGER_INIT", default=False, environ=env),
    )
