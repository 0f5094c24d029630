"""`worldbuilder backends` - show effective generation backend configuration."""
from __future__ import annotations

from backend.app.config import BACKEND_CONFIG
from backend.app.constants import PORTRAIT_ROUTE, PRIMARY_ROUTES, SCENE_IMAGE_ROUTE, VOICE_ROUTE


def register(subparsers) -> None:
    p = subparsers.add_parser("backends", help="Show effective backend config and routing")
    p.set_defaults(func=run)


def run(args) -> int:
    print("Effective generation backends (after YAML/env overrides):")
    print()
    for name in sorted(BACKEND_CONFIG):
        cfg = BACKEND_CONFIG[name]
        line = f"- {name}: kind={cfg.kind} required={cfg.required} timeout={cfg.timeout:g}s url={cfg.base_url}"
        print(line)

    print("\nRouting:")
    for content_type, (backend, operation) in PRIMARY_ROUTES.items():
        print(f"  {content_type}: {backend}/{operation}")
    for label, (backend, operation) in (
        ("portrait", PORTRAIT_ROUTE),
        ("scene image", SCENE_IMAGE_ROUTE),
        ("voice", VOICE_ROUTE),
    ):
        print(f"  {label}: {backend}/{operation}")

    print("\nOverride pattern:")
    print("  WORLDBUILDER_<NAME>_BASE_URL, WORLDBUILDER_<NAME>_REQUIRED, WORLDBUILDER_<NAME>_TIMEOUT")
    print("  WORLDBUILDER_BACKENDS_FILE=<path to YAML with a 'backends:' mapping>")
    print("Example (image backend on a GPU box):")
    print("  WORLDBUILDER_IMAGE_BASE_URL=http://gpu-box:8300")
    print("  WORLDBUILDER_IMAGE_TIMEOUT=120")
    return 0
