"""
FastAPI endpoints for AI world-building generation.
Generation (one route per content type), usage docs, batches, and backend health/lifecycle actions.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from backend.app import constants as C
from backend.app.container import WorldBuilderServices, get_world_builder
from backend.app.core.error_handling import create_error_response, utc_timestamp
from backend.app.core.errors import LifecycleError, ValidationError
from backend.app.core.request_normalizer import normalize_request
from backend.app.models.generation import ContentType, optional_fields, required_fields

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["ai"])

AVAILABLE_ACTIONS: List[str] = ["health-check", "reinitialize", "detailed-status"]

GENERATE_PATHS: Dict[ContentType, str] = {
    ContentType.NPC: "/generate-npc",
    ContentType.LOCATION: "/generate-location",
    ContentType.ADVENTURE: "/generate-adventure",
    ContentType.TERRAIN: "/generate-terrain",
    ContentType.WORLD_HISTORY: "/generate-world-history",
    ContentType.MONSTER: "/generate-monster",
    ContentType.MISSION: "/generate-mission",
    ContentType.OBJECT: "/generate-object",
    ContentType.MAP: "/generate-map",
}

_DESCRIPTIONS: Dict[ContentType, str] = {
    ContentType.NPC: "Generate NPCs with personalities, backstories, and optional portraits/voices",
    ContentType.LOCATION: "Generate detailed locations with descriptions and optional images",
    ContentType.ADVENTURE: "Generate complete adventures with story arcs and quest chains",
    ContentType.TERRAIN: "Generate terrain descriptions with geographical features",
    ContentType.WORLD_HISTORY: "Generate a world's timeline, geography, cultures and major events",
    ContentType.MONSTER: "Generate monsters with stats, abilities and an optional illustration",
    ContentType.MISSION: "Generate missions with objectives and rewards",
    ContentType.OBJECT: "Generate items with properties, value and rarity",
    ContentType.MAP: "Generate map layouts and features with an optional image",
}

_EXAMPLES: Dict[ContentType, Dict[str, Any]] = {
    ContentType.NPC: {
        "race": "elf",
        "occupation": "librarian",
        "personality": "wise and mysterious",
        "background": "keeper of ancient knowledge",
        "setting": "magical library",
        "knowledgeAreas": ["ancient history", "magical artifacts"],
        "includePortrait": True,
        "includeVoice": True,
    },
    ContentType.LOCATION: {
        "mapId": "map_123",
        "name": "The Whispering Archive",
        "type": "library",
        "coordinates": {"x": 100, "y": 200},
        "description": "A vast magical library",
        "atmosphere": "mysterious and scholarly",
        "includeImage": True,
        "mood": "mysterious",
        "style": "fantasy",
    },
    ContentType.ADVENTURE: {
        "worldId": "world_456",
        "title": "The Lost Codex",
        "description": "A quest to find an ancient magical tome",
        "genre": "fantasy",
        "theme": "knowledge vs ignorance",
        "difficulty": "medium",
        "includeImage": True,
    },
    ContentType.TERRAIN: {
        "biome": "forest",
        "size": "large",
        "climate": "temperate",
        "features": ["ancient ruins", "hidden springs", "old growth trees"],
        "includeImage": True,
    },
    ContentType.WORLD_HISTORY: {"worldName": "Eldoria", "prompt": "A realm rebuilt after a war of mages", "language": "EN"},
    ContentType.MONSTER: {"monsterType": "dragon", "prompt": "An ancient frost dragon", "language": "EN", "includeImage": False},
    ContentType.MISSION: {"missionType": "rescue", "prompt": "Free the captured scholars", "language": "EN"},
    ContentType.OBJECT: {"objectType": "weapon", "prompt": "A sword forged from starlight", "language": "EN"},
    ContentType.MAP: {"mapType": "dungeon", "prompt": "A flooded dwarven mine", "language": "EN"},
}

_SUPPORTED_VALUES: Dict[ContentType, Dict[str, Any]] = {
    ContentType.LOCATION: {
        "locationTypes": list(C.SUPPORTED_LOCATION_TYPES),
        "moods": list(C.SUPPORTED_MOODS),
        "styles": list(C.SUPPORTED_STYLES),
    },
    ContentType.ADVENTURE: {
        "supportedGenres": list(C.SUPPORTED_GENRES),
        "supportedDifficulties": list(C.SUPPORTED_DIFFICULTIES),
    },
    ContentType.TERRAIN: {
        "supportedBiomes": list(C.SUPPORTED_BIOMES),
        "supportedSizes": list(C.SUPPORTED_SIZES),
        "supportedClimates": list(C.SUPPORTED_CLIMATES),
        "exampleFeatures": list(C.EXAMPLE_TERRAIN_FEATURES),
    },
    ContentType.WORLD_HISTORY: {"supportedLanguages": list(C.SUPPORTED_LANGUAGES)},
    ContentType.MONSTER: {"supportedLanguages": list(C.SUPPORTED_LANGUAGES)},
    ContentType.MISSION: {"supportedLanguages": list(C.SUPPORTED_LANGUAGES)},
    ContentType.OBJECT: {
        "supportedLanguages": list(C.SUPPORTED_LANGUAGES),
        "rarities": list(C.SUPPORTED_RARITIES),
    },
    ContentType.MAP: {"supportedLanguages": list(C.SUPPORTED_LANGUAGES)},
}

# Per-backend features advertised by GET /ai and detailed-status
SERVICE_FEATURES: Dict[str, List[str]] = {
    "scene": ["Terrain Generation", "Environment Design", "Scene Description"],
    "adventure": ["Story Arc Creation", "Quest Chains", "Educational Objectives"],
    "voice": ["Voice Generation", "Character Voice Matching"],
    "image": ["Character Portraits", "Scene Images", "Terrain Maps"],
    "rpg_api": [
        "NPC Generation", "Location Generation", "World History", "Monster Generation",
        "Mission Generation", "Object Generation", "Map Generation",
    ],
}


def health_summary(health: Dict[str, bool]) -> Dict[str, Any]:
    healthy = sum(1 for ok in health.values() if ok)
    total = len(health)
    return {
        "overallHealth": healthy > 0,
        "healthyServices": healthy,
        "totalServices": total,
        "healthPercentage": round(healthy / total * 100) if total else 0,
    }


def _capabilities() -> Dict[str, Any]:
    return {
        ctype.value: {
            "endpoint": f"{router.prefix}{path}",
            "method": "POST",
            "description": _DESCRIPTIONS[ctype],
            "parameters": {
                "required": required_fields(ctype),
                "optional": optional_fields(ctype),
            },
        }
        for ctype, path in GENERATE_PATHS.items()
    }


def usage_doc(content_type: ContentType) -> Dict[str, Any]:
    """Static usage documentation served by GET on each generate route."""
    doc: Dict[str, Any] = {
        "endpoint": f"{router.prefix}{GENERATE_PATHS[content_type]}",
        "method": "POST",
        "description": _DESCRIPTIONS[content_type],
        "requiredFields": required_fields(content_type),
        "optionalFields": optional_fields(content_type),
        "example": {"request": _EXAMPLES[content_type]},
    }
    doc.update(_SUPPORTED_VALUES.get(content_type, {}))
    doc["timestamp"] = utc_timestamp()
    return doc


def _validation_response(content_type: ContentType, exc: ValidationError) -> JSONResponse:
    details: Dict[str, Any] = {
        "requiredFields": required_fields(content_type),
        "optionalFields": optional_fields(content_type),
    }
    if exc.missing_fields:
        details["missingFields"] = exc.missing_fields
    if exc.invalid_fields:
        details["invalidFields"] = exc.invalid_fields
    return JSONResponse(
        status_code=400,
        content=create_error_response("VALIDATION_ERROR", str(exc), details),
    )


async def _generate(content_type: ContentType, payload: Any, services: WorldBuilderServices):
    try:
        request = normalize_request(payload, content_type)
    except ValidationError as exc:
        return _validation_response(content_type, exc)

    response = await services.orchestrator.generate(content_type, request)
    if not response.success:
        return JSONResponse(
            status_code=500,
            content=create_error_response("GENERATION_FAILED", response.error or "Generation failed"),
        )
    body = response.to_payload()
    body["timestamp"] = utc_timestamp()
    return body


def _make_generate_endpoint(content_type: ContentType):
    async def endpoint(
        payload: Any = Body(default=None),
        services: WorldBuilderServices = Depends(get_world_builder),
    ):
        return await _generate(content_type, payload, services)

    endpoint.__name__ = f"generate_{content_type.value}"
    endpoint.__doc__ = _DESCRIPTIONS[content_type]
    return endpoint


def _make_usage_endpoint(content_type: ContentType):
    async def endpoint():
        return usage_doc(content_type)

    endpoint.__name__ = f"generate_{content_type.value}_usage"
    endpoint.__doc__ = f"Usage documentation for {GENERATE_PATHS[content_type]}."
    return endpoint


for _ctype, _path in GENERATE_PATHS.items():
    router.add_api_route(_path, _make_generate_endpoint(_ctype), methods=["POST"])
    router.add_api_route(_path, _make_usage_endpoint(_ctype), methods=["GET"])


@router.post("/generate-batch")
async def generate_batch(
    payload: Any = Body(default=None),
    services: WorldBuilderServices = Depends(get_world_builder),
):
    """Run a mixed batch sequentially; individual failures never abort the batch."""
    operations = payload.get("operations") if isinstance(payload, dict) else None
    if not isinstance(operations, list):
        return JSONResponse(
            status_code=400,
            content=create_error_response(
                "VALIDATION_ERROR",
                "operations must be a list of {id, type, request}",
                {"requiredFields": ["operations"]},
            ),
        )
    runner = services.new_batch_runner()
    results = await runner.generate_batch(operations)
    return {
        "success": True,
        "results": [r.to_payload() for r in results],
        "progress": runner.progress,
        "errors": list(runner.errors),
        "timestamp": utc_timestamp(),
    }


@router.get("")
async def ai_status(services: WorldBuilderServices = Depends(get_world_builder)):
    """Per-backend health summary plus static capability documentation."""
    health = await services.lifecycle.check_service_health()
    summary = health_summary(health)
    backends = services.lifecycle.backends
    return {
        "success": True,
        "status": "healthy" if summary["overallHealth"] else "unhealthy",
        "timestamp": utc_timestamp(),
        "summary": summary,
        "lifecycle": services.lifecycle.state.value,
        "services": {
            name: {
                "healthy": health.get(name, False),
                "description": backends[name].description if name in backends else "",
                "features": SERVICE_FEATURES.get(name, []),
            }
            for name in health
        },
        "capabilities": _capabilities(),
        "examples": {ctype.value: {"request": example} for ctype, example in _EXAMPLES.items()},
    }


@router.post("")
async def ai_action(
    payload: Any = Body(default=None),
    services: WorldBuilderServices = Depends(get_world_builder),
):
    """Health/lifecycle actions: health-check, reinitialize, detailed-status."""
    action = payload.get("action") if isinstance(payload, dict) else None
    lifecycle = services.lifecycle

    if action == "health-check":
        health = await lifecycle.check_service_health()
        summary = health_summary(health)
        return {
            "success": True,
            "status": "healthy" if summary["overallHealth"] else "unhealthy",
            "services": health,
            "summary": summary,
            "timestamp": utc_timestamp(),
        }

    if action == "reinitialize":
        try:
            await lifecycle.reinitialize()
        except LifecycleError as exc:
            health = await lifecycle.check_service_health()
            logger.error("Reinitialize failed: %s", exc)
            return JSONResponse(
                status_code=503,
                content=create_error_response(
                    "LIFECYCLE_FAILED",
                    str(exc),
                    {"status": lifecycle.state.value, "services": health},
                ),
            )
        health = await lifecycle.check_service_health()
        return {
            "success": True,
            "status": "reinitialized",
            "services": health,
            "overallHealth": health_summary(health)["overallHealth"],
            "timestamp": utc_timestamp(),
        }

    if action == "detailed-status":
        health = await lifecycle.check_service_health()
        checked_at = utc_timestamp()
        status = lifecycle.status()
        return {
            "success": True,
            "timestamp": checked_at,
            "lifecycle": {k: v for k, v in status.items() if k != "backends"},
            "services": {
                name: {
                    "healthy": ok,
                    "lastChecked": checked_at,
                    "required": status["backends"].get(name, {}).get("required", False),
                    "capabilities": SERVICE_FEATURES.get(name, []),
                }
                for name, ok in health.items()
            },
        }

    return JSONResponse(
        status_code=400,
        content=create_error_response(
            "INVALID_ACTION",
            f"Invalid action. Supported actions: {', '.join(AVAILABLE_ACTIONS)}",
            {"availableActions": AVAILABLE_ACTIONS},
        ),
    )
