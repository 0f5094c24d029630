"""Backend initialization state machine and per-backend health reporting.

UNINITIALIZED -> INITIALIZING -> READY, or INITIALIZING -> FAILED. FAILED stays
put until ``reinitialize()``. One instance is owned by the app lifespan and
shared through dependency injection.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Optional

from backend.app.config import BackendConfig
from backend.app.core.errors import LifecycleError
from backend.app.core.retry import RetryPolicy, Sleep, retry_with_policy
from backend.gateway_client import GenerationGateway, is_healthy_payload

logger = logging.getLogger(__name__)


class LifecycleState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


class ServiceLifecycle:
    """Single-flight initialization over every configured backend."""

    def __init__(
        self,
        gateway: GenerationGateway,
        backends: Optional[Mapping[str, BackendConfig]] = None,
        retry: Optional[RetryPolicy] = None,
        *,
        sleep: Sleep = asyncio.sleep,
    ):
        self.gateway = gateway
        self.backends: dict[str, BackendConfig] = dict(backends if backends is not None else gateway.backends)
        self.retry = retry or RetryPolicy()
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self.state = LifecycleState.UNINITIALIZED
        self.initialized_at: Optional[datetime] = None
        self.last_error: Optional[LifecycleError] = None
        self.skipped_backends: list[str] = []

    @property
    def is_ready(self) -> bool:
        return self.state is LifecycleState.READY

    async def initialize(self) -> None:
        """Bring every backend up; no-op when already READY.

        Raises :class:`LifecycleError` when a required backend fails, and keeps
        raising it (without re-probing) until ``reinitialize()`` is called.
        """
        if self.state is LifecycleState.READY:
            return
        async with self._lock:
            # Concurrent callers queue on the lock and see the outcome here
            if self.state is LifecycleState.READY:
                return
            if self.state is LifecycleState.FAILED and self.last_error is not None:
                raise self.last_error
            await self._initialize_locked()

    async def _initialize_locked(self) -> None:
        self.state = LifecycleState.INITIALIZING
        self.skipped_backends = []
        logger.info("Initializing %d generation backends", len(self.backends))
        for name, cfg in self.backends.items():
            try:
                await self.gateway.initialize_backend(name)
            except Exception as exc:
                if not cfg.required:
                    logger.warning("Optional backend %s failed to initialize: %s", name, exc)
                    self.skipped_backends.append(name)
                    continue
                self.state = LifecycleState.FAILED
                self.last_error = LifecycleError(
                    "Generation services are unavailable", failed_backends=[name]
                )
                logger.error("Required backend %s failed to initialize: %s", name, exc)
                raise self.last_error from exc
        self.state = LifecycleState.READY
        self.last_error = None
        self.initialized_at = datetime.now(timezone.utc)
        logger.info(
            "Generation backends ready (skipped optional: %s)",
            ", ".join(self.skipped_backends) or "none",
        )

    async def reinitialize(self) -> None:
        """Reset to UNINITIALIZED and run a fresh initialization."""
        async with self._lock:
            logger.info("Reinitializing generation backends (was %s)", self.state.value)
            self.state = LifecycleState.UNINITIALIZED
            self.last_error = None
            self.initialized_at = None
            await self._initialize_locked()

    async def _probe_one(self, name: str) -> bool:
        try:
            payload = await retry_with_policy(
                lambda: self.gateway.probe(name), self.retry, sleep=self._sleep
            )
            return is_healthy_payload(payload)
        except Exception as exc:
            logger.warning("Health probe failed for %s: %s", name, exc)
            return False

    async def check_service_health(self) -> dict[str, bool]:
        """Fresh health map with every configured backend key. Never raises."""
        names = list(self.backends)
        results = await asyncio.gather(*(self._probe_one(name) for name in names), return_exceptions=True)
        return {name: result is True for name, result in zip(names, results)}

    def status(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "initialized_at": self.initialized_at.isoformat() if self.initialized_at else None,
            "last_error": str(self.last_error) if self.last_error else None,
            "failed_backends": list(self.last_error.failed_backends) if self.last_error else [],
            "skipped_backends": list(self.skipped_backends),
            "backends": {
                name: {"kind": cfg.kind, "required": cfg.required, "description": cfg.description}
                for name, cfg in self.backends.items()
            },
        }
