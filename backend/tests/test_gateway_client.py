"""GenerationGateway against httpx.MockTransport: envelopes, error mapping, health."""
from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from backend.app.core.errors import ErrorKind, RateLimitError, TransportError
from backend.gateway_client import GenerationGateway, is_healthy_payload


def _gateway(handler, backends) -> GenerationGateway:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GenerationGateway(backends, client=client)


def _call(gateway: GenerationGateway, backend: str, operation: str, payload=None):
    async def _run():
        try:
            return await gateway.call(backend, operation, payload or {})
        finally:
            await gateway.client.aclose()

    return asyncio.run(_run())


def _raise_from_call(gateway: GenerationGateway, backend: str, operation: str) -> TransportError:
    with pytest.raises(TransportError) as exc_info:
        _call(gateway, backend, operation)
    return exc_info.value


# ---------------------------------------------------------------------------
# call()
# ---------------------------------------------------------------------------


def test_call_posts_payload_to_operation_url(backends):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True, "data": {"name": "Aelar"}})

    result = _call(_gateway(handler, backends), "rpg_api", "npc-generator", {"npcType": "Elf Smith"})
    assert seen["method"] == "POST"
    assert seen["url"] == "http://rpg.test/api/npc-generator"
    assert seen["body"] == {"npcType": "Elf Smith"}
    assert result.data == {"name": "Aelar"}


def test_call_decodes_json_string_data_and_telemetry(backends):
    def handler(request):
        return httpx.Response(
            200,
            json={
                "success": True,
                "data": json.dumps({"description": "Misty pines"}),
                "metadata": {"tokensUsed": 42, "cacheHit": False},
            },
        )

    result = _call(_gateway(handler, backends), "scene", "generate")
    assert result.data == {"description": "Misty pines"}
    assert result.metadata == {"tokensUsed": 42, "cacheHit": False}


def test_call_wraps_plain_text_data(backends):
    def handler(request):
        return httpx.Response(200, json={"success": True, "data": "A quiet glade"})

    result = _call(_gateway(handler, backends), "scene", "generate")
    assert result.data == {"text": "A quiet glade"}


def test_call_without_envelope_treats_body_as_data(backends):
    def handler(request):
        return httpx.Response(200, json={"imageUrl": "https://cdn.test/p.png"})

    result = _call(_gateway(handler, backends), "image", "character-portrait")
    assert result.data == {"imageUrl": "https://cdn.test/p.png"}


def test_envelope_failure_is_backend_rejected(backends):
    def handler(request):
        return httpx.Response(200, json={"success": False, "error": "prompt too long"})

    err = _raise_from_call(_gateway(handler, backends), "adventure", "generate")
    assert err.kind is ErrorKind.BACKEND_REJECTED
    assert str(err) == "Generation failed: prompt too long"


def test_envelope_rate_limit_code_is_rate_limited(backends):
    def handler(request):
        return httpx.Response(200, json={"success": False, "error": "slow down", "code": "RATE_LIMIT_EXCEEDED"})

    err = _raise_from_call(_gateway(handler, backends), "adventure", "generate")
    assert isinstance(err, RateLimitError)
    assert err.kind is ErrorKind.RATE_LIMITED


def test_http_429_is_rate_limited(backends):
    def handler(request):
        return httpx.Response(429, json={"error": "too many"})

    err = _raise_from_call(_gateway(handler, backends), "voice", "generate")
    assert isinstance(err, RateLimitError)


def test_http_500_is_http_status_without_leaking_url(backends):
    def handler(request):
        return httpx.Response(500, text="stack trace at http://scene.test/internal")

    err = _raise_from_call(_gateway(handler, backends), "scene", "generate")
    assert err.kind is ErrorKind.HTTP_STATUS
    assert "500" in str(err)
    assert "scene.test" not in str(err)
    assert err.backend == "scene"
    assert err.operation == "generate"


def test_invalid_json_is_decode_error(backends):
    def handler(request):
        return httpx.Response(200, text="<html>oops</html>")

    err = _raise_from_call(_gateway(handler, backends), "scene", "generate")
    assert err.kind is ErrorKind.DECODE


def test_connect_error_is_network(backends):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    err = _raise_from_call(_gateway(handler, backends), "image", "scene-image")
    assert err.kind is ErrorKind.NETWORK
    assert "image.test" not in str(err)


def test_timeout_is_timeout(backends):
    def handler(request):
        raise httpx.ReadTimeout("read timed out", request=request)

    err = _raise_from_call(_gateway(handler, backends), "image", "scene-image")
    assert err.kind is ErrorKind.TIMEOUT


def test_unknown_backend_is_not_configured(backends):
    def handler(request):  # pragma: no cover - never reached
        raise AssertionError("no request expected")

    err = _raise_from_call(_gateway(handler, backends), "music", "generate")
    assert err.kind is ErrorKind.NOT_CONFIGURED


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


def _health(gateway: GenerationGateway, backend: str) -> bool:
    async def _run():
        try:
            return await gateway.check_health(backend)
        finally:
            await gateway.client.aclose()

    return asyncio.run(_run())


def test_check_health_gets_health_url(backends):
    seen = []

    def handler(request):
        seen.append((request.method, str(request.url)))
        return httpx.Response(200, json={"status": "healthy"})

    assert _health(_gateway(handler, backends), "rpg_api") is True
    assert seen == [("GET", "http://rpg.test/api/health")]


def test_check_health_false_on_unhealthy_payload(backends):
    def handler(request):
        return httpx.Response(200, json={"status": "degraded"})

    assert _health(_gateway(handler, backends), "voice") is False


def test_check_health_false_on_non_object_payload(backends):
    def handler(request):
        return httpx.Response(200, json=["ok"])

    assert _health(_gateway(handler, backends), "voice") is False


def test_check_health_never_raises(backends):
    def handler(request):
        raise httpx.ConnectError("down", request=request)

    assert _health(_gateway(handler, backends), "voice") is False
    assert _health(_gateway(handler, backends), "not-a-backend") is False


def test_initialize_backend_rejects_unhealthy(backends):
    def handler(request):
        return httpx.Response(200, json={"healthy": False})

    gateway = _gateway(handler, backends)

    async def _run():
        try:
            await gateway.initialize_backend("scene")
        finally:
            await gateway.client.aclose()

    with pytest.raises(TransportError) as exc_info:
        asyncio.run(_run())
    assert exc_info.value.kind is ErrorKind.BACKEND_REJECTED


@pytest.mark.parametrize(
    "payload,expected",
    [
        ({"status": "ok"}, True),
        ({"status": "READY"}, True),
        ({"status": "error"}, False),
        ({"healthy": True}, True),
        ({"success": False}, False),
        ({}, True),
    ],
)
def test_is_healthy_payload(payload, expected):
    assert is_healthy_payload(payload) is expected


def test_gateway_does_not_close_injected_client(backends):
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json={})))
    gateway = GenerationGateway(backends, client=client)

    async def _run():
        await gateway.aclose()
        closed = client.is_closed
        await client.aclose()
        return closed

    assert asyncio.run(_run()) is False


def test_call_passes_non_finite_json_numbers_through(backends):
    def handler(request):
        return httpx.Response(
            200,
            content=b'{"success": true, "data": {"name": "Frost Wyrm", "stats": {"health": Infinity}}}',
            headers={"content-type": "application/json"},
        )

    result = _call(_gateway(handler, backends), "rpg_api", "monster-generator")
    assert result.data["name"] == "Frost Wyrm"
    assert result.data["stats"]["health"] == float("inf")
