"""HTTP gateway to the remote generation backends (POST <base>/<operation>, GET <base>/health)."""

import json as _json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

import httpx

from backend.app.config import BACKEND_CONFIG, HEALTH_PROBE_TIMEOUT, BackendConfig
from backend.app.constants import RATE_LIMIT_CODE
from backend.app.core.errors import ErrorKind, RateLimitError, TransportError

logger = logging.getLogger(__name__)

_TELEMETRY_KEYS = ("tokensUsed", "processingTime", "cacheHit")
_HEALTHY_STATUSES = ("healthy", "ok", "up", "ready")


@dataclass
class BackendResponse:
    """Decoded backend payload: ``data`` is always a dict."""

    data: Dict[str, Any]
    metadata: Dict[str, Any] = field(default_factory=dict)


def _coerce_data(raw: Any) -> Dict[str, Any]:
    """Backends sometimes send ``data`` as a JSON string, a list, or a bare scalar."""
    if raw is None:
        return {}
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, str):
        try:
            parsed = _json.loads(raw)
        except ValueError:
            return {"text": raw}
        if isinstance(parsed, dict):
            return parsed
        raw = parsed
    if isinstance(raw, list):
        return {"items": raw}
    return {"value": raw}


def _telemetry(body: Mapping[str, Any]) -> Dict[str, Any]:
    meta: Dict[str, Any] = {}
    nested = body.get("metadata")
    if isinstance(nested, dict):
        meta.update({k: nested[k] for k in _TELEMETRY_KEYS if k in nested})
    for key in _TELEMETRY_KEYS:
        if key in body and key not in meta:
            meta[key] = body[key]
    return meta


def is_healthy_payload(payload: Mapping[str, Any]) -> bool:
    """Interpret a well-formed health payload."""
    status = payload.get("status")
    if isinstance(status, str):
        return status.strip().lower() in _HEALTHY_STATUSES
    if "healthy" in payload:
        return bool(payload["healthy"])
    if "success" in payload:
        return bool(payload["success"])
    return True


class GenerationGateway:
    """Async client for the configured generation backends.

    One outbound request per call and no retries; every failure is raised as
    :class:`TransportError` (or :class:`RateLimitError`).
    """

    def __init__(
        self,
        backends: Optional[Mapping[str, BackendConfig]] = None,
        client: Optional[httpx.AsyncClient] = None,
        health_timeout: float = HEALTH_PROBE_TIMEOUT,
    ):
        self.backends: Dict[str, BackendConfig] = dict(backends if backends is not None else BACKEND_CONFIG)
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient()
        self._health_timeout = health_timeout

    # ------------------------------------------------------------------
    # Cleanup
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this gateway created it."""
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _backend(self, backend: str, operation: str) -> BackendConfig:
        cfg = self.backends.get(backend)
        if cfg is None:
            logger.error("No backend configured under %r (operation=%s)", backend, operation)
            raise TransportError(
                "Generation service is not configured", backend, operation, ErrorKind.NOT_CONFIGURED
            )
        return cfg

    async def _send(
        self,
        method: str,
        url: str,
        backend: str,
        operation: str,
        timeout: float,
        payload: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        try:
            response = await self.client.request(method, url, json=payload, timeout=timeout)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            logger.error("Backend %s timed out on %s after %ss: %s", backend, operation, timeout, exc)
            raise TransportError(
                "Generation service timed out", backend, operation, ErrorKind.TIMEOUT
            ) from exc
        except httpx.ConnectError as exc:
            logger.error("Cannot connect to backend %s at %s: %s", backend, url, exc)
            raise TransportError(
                "Generation service is unreachable", backend, operation, ErrorKind.NETWORK
            ) from exc
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            logger.error(
                "Backend %s returned HTTP %d on %s: %s",
                backend, status_code, operation, exc.response.text[:500],
            )
            if status_code == 429 or self._envelope_code(exc.response) == RATE_LIMIT_CODE:
                raise RateLimitError(
                    "Generation service rate limit exceeded", backend, operation
                ) from exc
            raise TransportError(
                f"Generation service returned HTTP {status_code}", backend, operation, ErrorKind.HTTP_STATUS
            ) from exc
        except httpx.HTTPError as exc:
            # Catch-all for any other httpx transport/protocol errors
            logger.error("Backend %s network error on %s: %s", backend, operation, exc)
            raise TransportError(
                "Generation service network error", backend, operation, ErrorKind.NETWORK
            ) from exc
        return response

    @staticmethod
    def _envelope_code(response: httpx.Response) -> Optional[str]:
        try:
            body = response.json()
        except ValueError:
            return None
        if isinstance(body, dict):
            code = body.get("code")
            return code if isinstance(code, str) else None
        return None

    @staticmethod
    def _decode(response: httpx.Response, backend: str, operation: str) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            logger.error(
                "Backend %s response to %s was not valid JSON (status %d, first 500 chars): %s",
                backend, operation, response.status_code, response.text[:500],
            )
            raise TransportError(
                "Generation service returned an invalid response", backend, operation, ErrorKind.DECODE
            ) from exc

    # ------------------------------------------------------------------
    # Generation calls
    # ------------------------------------------------------------------

    async def call(self, backend: str, operation: str, payload: Dict[str, Any]) -> BackendResponse:
        """POST ``payload`` to ``<base_url>/<operation>`` and unwrap the envelope."""
        cfg = self._backend(backend, operation)
        response = await self._send("POST", cfg.url_for(operation), backend, operation, cfg.timeout, payload)
        body = self._decode(response, backend, operation)

        if not isinstance(body, dict):
            return BackendResponse(data=_coerce_data(body))

        if "success" in body and not body.get("success"):
            code = body.get("code")
            error = body.get("error") or "request rejected"
            logger.warning("Backend %s rejected %s: %s (code=%s)", backend, operation, error, code)
            if code == RATE_LIMIT_CODE:
                raise RateLimitError("Generation service rate limit exceeded", backend, operation)
            raise TransportError(
                f"Generation failed: {error}", backend, operation, ErrorKind.BACKEND_REJECTED
            )

        data = body.get("data") if "success" in body else body
        return BackendResponse(data=_coerce_data(data), metadata=_telemetry(body))

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    async def probe(self, backend: str) -> Dict[str, Any]:
        """GET the backend health endpoint; raises unless the payload is a JSON object."""
        cfg = self._backend(backend, "health")
        timeout = min(cfg.timeout, self._health_timeout)
        response = await self._send("GET", cfg.health_url, backend, "health", timeout)
        payload = self._decode(response, backend, "health")
        if not isinstance(payload, dict):
            raise TransportError(
                "Generation service returned a malformed health payload", backend, "health", ErrorKind.DECODE
            )
        return payload

    async def check_health(self, backend: str) -> bool:
        """True when the backend answers with a healthy payload. Never raises."""
        try:
            return is_healthy_payload(await self.probe(backend))
        except Exception as exc:
            logger.warning("Health probe failed for %s: %s", backend, exc)
            return False

    async def initialize_backend(self, backend: str) -> Dict[str, Any]:
        """Handshake used during lifecycle initialization."""
        payload = await self.probe(backend)
        if not is_healthy_payload(payload):
            raise TransportError(
                "Generation service reported itself unhealthy", backend, "initialize", ErrorKind.BACKEND_REJECTED
            )
        logger.info("Backend %s initialized", backend)
        return payload
