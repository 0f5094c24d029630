"""ServiceLifecycle: single-flight init, required vs optional backends, health map."""
from __future__ import annotations

import asyncio
from dataclasses import replace

import pytest

from backend.app.core.errors import ErrorKind, LifecycleError, RateLimitError, TransportError
from backend.app.core.lifecycle import LifecycleState, ServiceLifecycle


def _down(backend: str) -> TransportError:
    return TransportError("Generation service is unreachable", backend, "health", ErrorKind.NETWORK)


def _lifecycle(gateway, backends, sleep) -> ServiceLifecycle:
    return ServiceLifecycle(gateway, backends, sleep=sleep)


def test_initialize_probes_each_backend_once(fake_gateway, backends, recorded_sleep):
    lifecycle = _lifecycle(fake_gateway, backends, recorded_sleep)

    async def _run():
        await lifecycle.initialize()
        await lifecycle.initialize()

    asyncio.run(_run())
    assert lifecycle.state is LifecycleState.READY
    assert fake_gateway.init_calls == list(backends)
    assert lifecycle.initialized_at is not None


def test_concurrent_initialize_is_single_flight(fake_gateway, backends, recorded_sleep):
    lifecycle = _lifecycle(fake_gateway, backends, recorded_sleep)

    async def _run():
        await asyncio.gather(*(lifecycle.initialize() for _ in range(5)))

    asyncio.run(_run())
    assert lifecycle.is_ready
    assert sorted(fake_gateway.init_calls) == sorted(backends)


def test_required_failure_marks_failed_and_stays_failed(fake_gateway, backends, recorded_sleep):
    fake_gateway.init_failures["image"] = _down("image")
    lifecycle = _lifecycle(fake_gateway, backends, recorded_sleep)

    async def _run():
        with pytest.raises(LifecycleError) as first:
            await lifecycle.initialize()
        calls_after_first = len(fake_gateway.init_calls)
        with pytest.raises(LifecycleError) as second:
            await lifecycle.initialize()
        return first.value, second.value, calls_after_first

    first, second, calls_after_first = asyncio.run(_run())
    assert lifecycle.state is LifecycleState.FAILED
    assert first.failed_backends == ["image"]
    assert second is first
    # No re-probe while FAILED
    assert len(fake_gateway.init_calls) == calls_after_first
    assert "image.test" not in str(first)


def test_optional_failure_is_skipped(fake_gateway, backends, recorded_sleep):
    fake_gateway.init_failures["rpg_api"] = _down("rpg_api")
    lifecycle = _lifecycle(fake_gateway, backends, recorded_sleep)
    asyncio.run(lifecycle.initialize())
    assert lifecycle.is_ready
    assert lifecycle.skipped_backends == ["rpg_api"]
    assert lifecycle.status()["skipped_backends"] == ["rpg_api"]


def test_optional_backend_made_required_blocks_readiness(fake_gateway, backends, recorded_sleep):
    backends["rpg_api"] = replace(backends["rpg_api"], required=True)
    fake_gateway.init_failures["rpg_api"] = _down("rpg_api")
    lifecycle = _lifecycle(fake_gateway, backends, recorded_sleep)
    with pytest.raises(LifecycleError):
        asyncio.run(lifecycle.initialize())
    assert lifecycle.state is LifecycleState.FAILED


def test_reinitialize_recovers_after_failure(fake_gateway, backends, recorded_sleep):
    fake_gateway.init_failures["scene"] = _down("scene")
    lifecycle = _lifecycle(fake_gateway, backends, recorded_sleep)

    async def _run():
        with pytest.raises(LifecycleError):
            await lifecycle.initialize()
        fake_gateway.init_failures.clear()
        await lifecycle.reinitialize()

    asyncio.run(_run())
    assert lifecycle.is_ready
    assert lifecycle.last_error is None
    assert lifecycle.status()["failed_backends"] == []


def test_check_service_health_reports_every_backend(fake_gateway, backends, recorded_sleep):
    fake_gateway.health["voice"] = _down("voice")
    fake_gateway.health["image"] = {"status": "degraded"}
    lifecycle = _lifecycle(fake_gateway, backends, recorded_sleep)

    health = asyncio.run(lifecycle.check_service_health())
    assert set(health) == set(backends)
    assert health["voice"] is False
    assert health["image"] is False
    assert health["scene"] is True
    assert health["rpg_api"] is True


def test_check_service_health_does_not_change_state(fake_gateway, backends, recorded_sleep):
    lifecycle = _lifecycle(fake_gateway, backends, recorded_sleep)
    asyncio.run(lifecycle.check_service_health())
    assert lifecycle.state is LifecycleState.UNINITIALIZED
    assert fake_gateway.init_calls == []


def test_health_probe_retries_rate_limited(fake_gateway, backends, recorded_sleep):
    fake_gateway.health["scene"] = [
        RateLimitError("Generation service rate limit exceeded", "scene", "health"),
        {"status": "healthy"},
    ]
    lifecycle = _lifecycle(fake_gateway, {"scene": backends["scene"]}, recorded_sleep)
    health = asyncio.run(lifecycle.check_service_health())
    assert health == {"scene": True}
    assert fake_gateway.probe_calls == ["scene", "scene"]
    assert recorded_sleep.delays == [1.0]


def test_status_describes_backends(fake_gateway, backends, recorded_sleep):
    lifecycle = _lifecycle(fake_gateway, backends, recorded_sleep)
    status = lifecycle.status()
    assert status["state"] == "uninitialized"
    assert status["backends"]["rpg_api"]["required"] is False
    assert status["backends"]["scene"]["kind"] == "direct"


def test_three_of_five_backends_down(fake_gateway, backends, recorded_sleep):
    for name in ("scene", "voice", "rpg_api"):
        fake_gateway.health[name] = _down(name)
    lifecycle = _lifecycle(fake_gateway, backends, recorded_sleep)

    health = asyncio.run(lifecycle.check_service_health())

    assert len(health) == 5
    assert sorted(name for name, ok in health.items() if not ok) == ["rpg_api", "scene", "voice"]
