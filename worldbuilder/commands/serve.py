"""`worldbuilder serve` - run the FastAPI generation service."""
from __future__ import annotations


def register(subparsers) -> None:
    p = subparsers.add_parser("serve", help="Run the World Builder AI API with uvicorn")
    p.add_argument("--host", default="0.0.0.0", help="Bind address (default: 0.0.0.0)")
    p.add_argument("--port", type=int, default=8000, help="Port (default: 8000)")
    p.add_argument("--reload", action="store_true", help="Auto-reload on code changes")
    p.set_defaults(func=run)


def run(args) -> int:
    import uvicorn

    print(f"  Starting World Builder AI on http://{args.host}:{args.port}")
    uvicorn.run("backend.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0
