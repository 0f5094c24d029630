"""Pytest setup: quiet env defaults plus an in-memory gateway for orchestration tests."""
from __future__ import annotations

import asyncio
import os
from typing import Any

import pytest

from backend.app.config import BackendConfig
from backend.app.core.errors import ErrorKind, TransportError
from backend.gateway_client import BackendResponse


def pytest_sessionstart(session) -> None:
    """Disable the HTTP rate limiter and keep backend probes local for tests."""
    os.environ["WORLDBUILDER_RATE_LIMIT_PER_MINUTE"] = "0"
    os.environ["WORLDBUILDER_EAGER_INIT"] = "0"
    os.environ.setdefault("WORLDBUILDER_HEALTH_TIMEOUT", "1")


def make_backends() -> dict[str, BackendConfig]:
    return {
        "scene": BackendConfig(name="scene", kind="direct", base_url="http://scene.test"),
        "adventure": BackendConfig(name="adventure", kind="direct", base_url="http://adventure.test"),
        "voice": BackendConfig(name="voice", kind="direct", base_url="http://voice.test"),
        "image": BackendConfig(name="image", kind="direct", base_url="http://image.test"),
        "rpg_api": BackendConfig(name="rpg_api", kind="rest", base_url="http://rpg.test/api", required=False),
    }


class FakeGateway:
    """Gateway double keyed by (backend, operation).

    ``responses`` values may be a dict (returned as data), a BackendResponse,
    an exception instance (raised), or a list of those consumed in order.
    """

    def __init__(self, backends: dict[str, BackendConfig] | None = None):
        self.backends = backends if backends is not None else make_backends()
        self.responses: dict[tuple[str, str], Any] = {}
        self.health: dict[str, Any] = {}
        self.init_failures: dict[str, Exception] = {}
        self.calls: list[tuple[str, str, dict[str, Any]]] = []
        self.init_calls: list[str] = []
        self.probe_calls: list[str] = []

    def operations(self) -> list[tuple[str, str]]:
        return [(backend, operation) for backend, operation, _ in self.calls]

    def payload_for(self, backend: str, operation: str) -> dict[str, Any]:
        for b, op, payload in self.calls:
            if (b, op) == (backend, operation):
                return payload
        raise KeyError((backend, operation))

    @staticmethod
    def _resolve(outcome: Any) -> Any:
        if isinstance(outcome, list):
            outcome = outcome.pop(0) if len(outcome) > 1 else outcome[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def call(self, backend: str, operation: str, payload: dict[str, Any]) -> BackendResponse:
        self.calls.append((backend, operation, payload))
        await asyncio.sleep(0)
        key = (backend, operation)
        if key not in self.responses:
            raise TransportError("Generation service returned HTTP 404", backend, operation, ErrorKind.HTTP_STATUS)
        outcome = self._resolve(self.responses[key])
        if isinstance(outcome, BackendResponse):
            return outcome
        return BackendResponse(data=dict(outcome))

    async def initialize_backend(self, backend: str) -> dict[str, Any]:
        self.init_calls.append(backend)
        await asyncio.sleep(0)
        if backend in self.init_failures:
            raise self.init_failures[backend]
        return {"status": "healthy"}

    async def probe(self, backend: str) -> dict[str, Any]:
        self.probe_calls.append(backend)
        await asyncio.sleep(0)
        return self._resolve(self.health.get(backend, {"status": "healthy"}))

    async def check_health(self, backend: str) -> bool:
        try:
            payload = await self.probe(backend)
        except Exception:
            return False
        return payload.get("status") == "healthy"

    async def aclose(self) -> None:
        return None


class RecordedSleep:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def backends() -> dict[str, BackendConfig]:
    return make_backends()


@pytest.fixture
def fake_gateway(backends) -> FakeGateway:
    return FakeGateway(backends)


@pytest.fixture
def recorded_sleep() -> RecordedSleep:
    return RecordedSleep()


@pytest.fixture
def services(fake_gateway, backends, recorded_sleep):
    """Gateway/lifecycle/orchestrator wired around the fake gateway."""
    from backend.app.container import build_services

    return build_services(backends=backends, gateway=fake_gateway, sleep=recorded_sleep)
