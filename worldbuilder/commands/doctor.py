"""``worldbuilder doctor`` - environment and backend health check.

Checks: Python version, deps installed, backend config resolved,
every generation backend reachable through its health endpoint.
"""
from __future__ import annotations

import asyncio
import importlib.util
import sys

# ANSI helpers (no-op on dumb terminals)
_COLOR = hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _ok(msg: str) -> str:
    return f"  [OK]   {msg}" if not _COLOR else f"  \033[32m[OK]\033[0m   {msg}"


def _warn(msg: str) -> str:
    return f"  [WARN] {msg}" if not _COLOR else f"  \033[33m[WARN]\033[0m {msg}"


def _fail(msg: str) -> str:
    return f"  [FAIL] {msg}" if not _COLOR else f"  \033[31m[FAIL]\033[0m {msg}"


def _section(title: str) -> str:
    return f"\n{'=' * 60}\n  {title}\n{'=' * 60}"


def register(subparsers) -> None:
    p = subparsers.add_parser("doctor", help="Check environment and backend health")
    p.add_argument(
        "--skip-backends",
        action="store_true",
        help="Only check the local environment; do not contact generation backends",
    )
    p.set_defaults(func=run)


def _check_python() -> bool:
    v = sys.version_info
    ok = v >= (3, 11)
    line = f"Python {v.major}.{v.minor}.{v.micro}"
    print(_ok(line) if ok else _fail(f"{line} - need 3.11+"))
    return ok


def _check_deps() -> list[str]:
    required = ["fastapi", "uvicorn", "pydantic", "yaml", "httpx"]
    missing = []
    for mod in required:
        try:
            if importlib.util.find_spec(mod) is None:
                missing.append(mod)
        except (ImportError, ValueError):
            missing.append(mod)
    if missing:
        print(_fail(f"Missing packages: {', '.join(missing)}"))
        print("         Run: pip install -e .")
    else:
        print(_ok(f"All {len(required)} required packages installed"))
    return missing


async def _probe_all(backends) -> dict[str, bool]:
    from backend.gateway_client import GenerationGateway

    async with GenerationGateway(backends) as gateway:
        names = list(backends)
        results = await asyncio.gather(*(gateway.check_health(name) for name in names))
    return dict(zip(names, results))


def _check_backends() -> int:
    """Probe every backend; returns the number of unhealthy required backends."""
    from backend.app.config import BACKEND_CONFIG

    health = asyncio.run(_probe_all(BACKEND_CONFIG))
    errors = 0
    for name in sorted(BACKEND_CONFIG):
        cfg = BACKEND_CONFIG[name]
        target = f"{name} ({cfg.health_url})"
        if health.get(name):
            print(_ok(f"{target} healthy"))
        elif cfg.required:
            print(_fail(f"{target} unreachable or unhealthy"))
            print(f"         Set WORLDBUILDER_{name.upper()}_BASE_URL if it runs elsewhere")
            errors += 1
        else:
            print(_warn(f"{target} unreachable (optional, generation that needs it will fail)"))
    return errors


def run(args) -> int:
    print(_section("World Builder Doctor"))
    errors = 0

    print("\n  Environment")
    if not _check_python():
        errors += 1
    missing = _check_deps()
    if missing:
        errors += 1

    if getattr(args, "skip_backends", False):
        print("\n  Backends")
        print(_warn("Skipped (--skip-backends)"))
    elif missing:
        print("\n  Backends")
        print(_warn("Skipped until missing packages are installed"))
    else:
        print("\n  Backends")
        errors += _check_backends()

    print()
    if errors:
        print(_fail(f"{errors} issue(s) found. Fix the items above and re-run."))
        return 1
    print(_ok("All checks passed. Ready to serve."))
    return 0
