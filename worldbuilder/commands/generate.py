"""`worldbuilder generate` - run a single generation request from the shell.

Examples:
    worldbuilder generate npc --json '{"race": "Elf", "occupation": "Blacksmith"}'
    worldbuilder generate location --file request.json
"""
from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

from backend.app.models.generation import ContentType

CONTENT_TYPES = [ct.value for ct in ContentType]


def register(subparsers) -> None:
    p = subparsers.add_parser("generate", help="Generate one asset and print the response envelope")
    p.add_argument("type", choices=CONTENT_TYPES, help="Content type to generate")
    src = p.add_mutually_exclusive_group()
    src.add_argument("--json", dest="payload", default=None, help="Request body as a JSON object")
    src.add_argument("--file", default=None, help="Path to a JSON file with the request body")
    p.set_defaults(func=run)


def _load_payload(args) -> dict:
    if args.file:
        raw = Path(args.file).read_text(encoding="utf-8")
    else:
        raw = args.payload or "{}"
    payload = json.loads(raw)
    if not isinstance(payload, dict):
        raise ValueError("request body must be a JSON object")
    return payload


async def _generate(content_type: ContentType, request) -> dict:
    from backend.app.container import build_services

    services = build_services()
    try:
        response = await services.orchestrator.generate(content_type, request)
    finally:
        await services.aclose()
    return response.to_payload()


def run(args) -> int:
    from backend.app.core.errors import ValidationError
    from backend.app.core.request_normalizer import normalize_request

    content_type = ContentType(args.type)
    try:
        payload = _load_payload(args)
    except (OSError, ValueError) as e:
        print(f"  [FAIL] Could not read request: {e}", file=sys.stderr)
        return 2

    # Validate locally so bad input never reaches a backend
    try:
        request = normalize_request(payload, content_type)
    except ValidationError as e:
        print(f"  [FAIL] {e}", file=sys.stderr)
        return 2

    result = asyncio.run(_generate(content_type, request))
    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0 if result.get("success") else 1
