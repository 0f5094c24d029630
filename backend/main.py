"""FastAPI main application (World Builder AI)."""
import logging
import time as _time
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.app.api import ai as ai_api
from backend.app.container import build_services
from backend.app.core.error_handling import create_error_response, log_error_with_context
from backend.app.core.errors import LifecycleError, ValidationError
from shared.runtime_settings import load_runtime_settings

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SETTINGS = load_runtime_settings()
DEV_MODE = SETTINGS.dev_mode
CORS_ALLOW_ORIGINS = SETTINGS.cors_allow_origins


async def _collect_backend_diagnostics(app: FastAPI) -> dict:
    """Structured backend diagnostics for /health/detail."""
    services = getattr(app.state, "world_builder", None)
    if services is None:
        return {"ok": False, "checks": {}, "lifecycle": None}
    health = await services.lifecycle.check_service_health()
    backends = services.lifecycle.backends
    checks = {
        name: {"ok": ok, "required": backends[name].required, "kind": backends[name].kind}
        for name, ok in health.items()
    }
    # Optional backends degrade a feature, not the service
    overall_ok = all(c["ok"] for c in checks.values() if c["required"])
    lifecycle = {k: v for k, v in services.lifecycle.status().items() if k != "backends"}
    return {"ok": overall_ok, "checks": checks, "lifecycle": lifecycle}


@asynccontextmanager
async def lifespan(app: FastAPI):
    if not DEV_MODE and "*" in CORS_ALLOW_ORIGINS:
        raise RuntimeError(
            "Unsafe CORS config: '*' is only allowed in dev mode. "
            "Set WORLDBUILDER_CORS_ALLOW_ORIGINS to explicit origins."
        )
    services = build_services()
    app.state.world_builder = services
    if SETTINGS.eager_init:
        try:
            await services.lifecycle.initialize()
        except LifecycleError as e:
            # Startup continues; generation requests report the failure until reinitialize
            logger.warning("Generation backends not ready at startup: %s", e)
    logger.info(
        "API startup complete (dev_mode=%s, rate_limit=%s/min, eager_init=%s, backends=%d)",
        DEV_MODE,
        SETTINGS.rate_limit_per_minute or "off",
        SETTINGS.eager_init,
        len(services.lifecycle.backends),
    )
    try:
        yield
    finally:
        await services.aclose()
        app.state.world_builder = None


app = FastAPI(title="World Builder AI API", version="2.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


_RATE_LIMITS: dict[str, list[float]] = {}
_RATE_LIMIT_WINDOW = 60  # seconds


def _prune_rate_limits(now: float) -> None:
    """Drop expired timestamps and forget clients with none left in the window."""
    for ip in list(_RATE_LIMITS):
        recent = [t for t in _RATE_LIMITS[ip] if now - t < _RATE_LIMIT_WINDOW]
        if recent:
            _RATE_LIMITS[ip] = recent
        else:
            del _RATE_LIMITS[ip]


@app.middleware("http")
async def rate_limit_middleware(request: Request, call_next):
    """Simple per-IP rate limiting for generation endpoints."""
    limit = SETTINGS.rate_limit_per_minute
    path = request.url.path or ""
    if not limit or request.method.upper() != "POST" or not path.startswith("/ai/generate"):
        return await call_next(request)
    client_ip = request.client.host if request.client else "unknown"
    now = _time.monotonic()
    _prune_rate_limits(now)
    if len(_RATE_LIMITS.get(client_ip, ())) >= limit:
        return JSONResponse(
            status_code=429,
            content=create_error_response(
                "RATE_LIMIT",
                f"Rate limit exceeded. Max {limit} generation requests per minute.",
            ),
        )
    _RATE_LIMITS.setdefault(client_ip, []).append(now)
    return await call_next(request)


def _node_for(path: str) -> str:
    if "/generate" in path:
        return "generation"
    if path.startswith("/ai"):
        return "ai"
    return "api"


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTPExceptions with structured error responses."""
    node = _node_for(request.url.path)
    error_response = create_error_response(
        error_code=f"{node.upper()}_HTTP_{exc.status_code}",
        message=str(exc.detail),
        details={"path": request.url.path},
    )
    return JSONResponse(status_code=exc.status_code, content=error_response)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are a 400, same as missing fields."""
    fields = sorted({str(err["loc"][-1]) for err in exc.errors() if err.get("loc")})
    error_response = create_error_response(
        error_code="VALIDATION_ERROR",
        message="Request body is not valid JSON for this endpoint",
        details={"invalidFields": fields},
    )
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=error_response)


@app.exception_handler(ValidationError)
async def generation_validation_handler(request: Request, exc: ValidationError):
    error_response = create_error_response(
        error_code="VALIDATION_ERROR",
        message=str(exc),
        details={"missingFields": exc.missing_fields, "invalidFields": exc.invalid_fields},
    )
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=error_response)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler: log full context, return a generic message."""
    node = _node_for(request.url.path)

    # Log error with full context and stack trace
    log_error_with_context(
        error=exc,
        component=node,
        extra_context={
            "method": request.method,
            "path": request.url.path,
            "query_params": dict(request.query_params),
        },
    )

    # Exception text may carry backend URLs; never echo it
    error_response = create_error_response(
        error_code=f"{node.upper()}_ERROR",
        message="An internal error occurred",
        details={"path": request.url.path},
    )
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=error_response)


app.include_router(ai_api.router)


@app.get("/")
async def root():
    return {"message": "World Builder AI API", "version": "2.0.0"}


@app.get("/health")
async def health():
    return {"status": "healthy"}


@app.get("/health/detail")
async def health_detail(request: Request):
    """Structured readiness diagnostics for deployment checks."""
    diag = await _collect_backend_diagnostics(request.app)
    return {"status": "healthy" if diag.get("ok") else "degraded", **diag}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
