"""App config: generation backend registry, timeouts, retry defaults, env overrides.

Per-backend env overrides: WORLDBUILDER_{NAME}_BASE_URL, WORLDBUILDER_{NAME}_REQUIRED,
WORLDBUILDER_{NAME}_TIMEOUT (fallback: {NAME}_*).
Extra backends (or overrides) can be declared in a YAML file pointed to by
WORLDBUILDER_BACKENDS_FILE:

    backends:
      image:
        base_url: http://gpu-box:8300
        timeout: 120
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Literal

import yaml

from shared.config import (
    BACKENDS_FILE,
    HEALTH_TIMEOUT,
    HTTP_TIMEOUT,
    RETRY_BASE_DELAY,
    RETRY_MAX_ATTEMPTS,
)

logger = logging.getLogger(__name__)

BackendKind = Literal["direct", "rest"]


@dataclass(frozen=True)
class BackendConfig:
    """One remote generation backend."""

    name: str
    kind: BackendKind
    base_url: str
    required: bool = True
    timeout: float = HTTP_TIMEOUT
    health_path: str = "/health"
    description: str = ""

    def url_for(self, operation: str) -> str:
        return f"{self.base_url.rstrip('/')}/{operation.lstrip('/')}"

    @property
    def health_url(self) -> str:
        return f"{self.base_url.rstrip('/')}{self.health_path}"


def _backend_env(key: str, name: str, default: str = "") -> str:
    """Env override: WORLDBUILDER_{NAME}_{KEY} first, then {NAME}_{KEY} fallback."""
    name_upper = name.upper()
    val = os.environ.get(f"WORLDBUILDER_{name_upper}_{key}", "").strip()
    if not val:
        val = os.environ.get(f"{name_upper}_{key}", default).strip()
    return val or default


# Direct backends expose generate/voice/image operations; the REST backend
# exposes one "<type>-generator" endpoint per content type under /api.
_DEFAULT_BACKENDS: tuple[BackendConfig, ...] = (
    BackendConfig(
        name="scene",
        kind="direct",
        base_url="http://localhost:8101",
        description="Scene and terrain description generation",
    ),
    BackendConfig(
        name="adventure",
        kind="direct",
        base_url="http://localhost:8102",
        description="Adventure, story arc and quest chain generation",
    ),
    BackendConfig(
        name="voice",
        kind="direct",
        base_url="http://localhost:8103",
        description="Character voice synthesis",
    ),
    BackendConfig(
        name="image",
        kind="direct",
        base_url="http://localhost:8104",
        timeout=max(HTTP_TIMEOUT, 60.0),
        description="Portrait, scene and cover image generation",
    ),
    BackendConfig(
        name="rpg_api",
        kind="rest",
        base_url="http://localhost:8000/api",
        required=False,
        description="NPC, location, world history, monster, mission, object and map generators",
    ),
)


def _parse_bool(raw: Any, default: bool) -> bool:
    if isinstance(raw, bool):
        return raw
    if raw is None:
        return default
    text = str(raw).strip().lower()
    if not text:
        return default
    return text in ("1", "true", "yes", "on")


def _parse_timeout(raw: Any, default: float) -> float:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def _apply_overrides(cfg: BackendConfig, overrides: dict[str, Any]) -> BackendConfig:
    changes: dict[str, Any] = {}
    if overrides.get("base_url"):
        changes["base_url"] = str(overrides["base_url"]).strip()
    if "required" in overrides:
        changes["required"] = _parse_bool(overrides["required"], cfg.required)
    if "timeout" in overrides:
        changes["timeout"] = _parse_timeout(overrides["timeout"], cfg.timeout)
    if overrides.get("kind") in ("direct", "rest"):
        changes["kind"] = overrides["kind"]
    if overrides.get("health_path"):
        changes["health_path"] = "/" + str(overrides["health_path"]).lstrip("/")
    if overrides.get("description"):
        changes["description"] = str(overrides["description"])
    return replace(cfg, **changes) if changes else cfg


def load_backends_file(path: str | Path) -> dict[str, dict[str, Any]]:
    """Read the ``backends:`` mapping from a YAML file.

    Missing files and malformed entries are logged and skipped so a bad
    override file never prevents the API from starting.
    """
    p = Path(path)
    if not p.is_file():
        logger.warning("Backends file not found: %s", p)
        return {}
    with p.open("r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            logger.warning("Ignoring backends file %s: invalid YAML (%s)", p, exc)
            return {}
    raw = data.get("backends") if isinstance(data, dict) else None
    if not isinstance(raw, dict):
        logger.warning("Backends file %s has no 'backends' mapping", p)
        return {}
    out: dict[str, dict[str, Any]] = {}
    for name, entry in raw.items():
        if not isinstance(entry, dict):
            logger.warning("Ignoring backend %r in %s: expected a mapping", name, p)
            continue
        out[str(name)] = entry
    return out


def load_backend_configs(backends_file: str | Path | None = None) -> dict[str, BackendConfig]:
    """Resolve the backend registry: defaults, then YAML file, then env overrides."""
    out: dict[str, BackendConfig] = {cfg.name: cfg for cfg in _DEFAULT_BACKENDS}

    path = backends_file if backends_file is not None else BACKENDS_FILE
    if path:
        for name, entry in load_backends_file(path).items():
            if name in out:
                out[name] = _apply_overrides(out[name], entry)
            elif entry.get("base_url"):
                base = BackendConfig(
                    name=name,
                    kind="rest" if entry.get("kind") == "rest" else "direct",
                    base_url=str(entry["base_url"]).strip(),
                )
                out[name] = _apply_overrides(base, entry)
            else:
                logger.warning("Ignoring new backend %r: base_url is required", name)

    for name, cfg in list(out.items()):
        env_overrides: dict[str, Any] = {}
        url = _backend_env("BASE_URL", name)
        if url:
            env_overrides["base_url"] = url
        required = _backend_env("REQUIRED", name)
        if required:
            env_overrides["required"] = required
        timeout = _backend_env("TIMEOUT", name)
        if timeout:
            env_overrides["timeout"] = timeout
        out[name] = _apply_overrides(cfg, env_overrides)
    return out


BACKEND_CONFIG = load_backend_configs()


def _log_resolved_backend_config() -> None:
    """Log resolved backend config at startup (no URLs)."""
    lines = ["Generation backends:"]
    defaults = {cfg.name: cfg.base_url for cfg in _DEFAULT_BACKENDS}
    for name, cfg in sorted(BACKEND_CONFIG.items()):
        url_display = "default" if defaults.get(name) == cfg.base_url else "custom"
        lines.append(
            f"  {name}: kind={cfg.kind} required={cfg.required} timeout={cfg.timeout:g}s base_url={url_display}"
        )
    logger.info("\n".join(lines))


_log_resolved_backend_config()

# Re-exported so callers only import backend config from one place
HEALTH_PROBE_TIMEOUT = HEALTH_TIMEOUT
DEFAULT_RETRY_MAX_ATTEMPTS = RETRY_MAX_ATTEMPTS
DEFAULT_RETRY_BASE_DELAY = RETRY_BASE_DELAY
