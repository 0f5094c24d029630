"""Prompt and payload builders for primary and enrichment backend calls."""
from __future__ import annotations

from typing import Any

from backend.app.models.generation import (
    AdventureRequest,
    LocalizedRequest,
    LocationRequest,
    NPCRequest,
    TerrainRequest,
)

_FLAG_FIELDS = {"include_image", "include_portrait", "include_voice"}


def _join(items: list[str]) -> str:
    return ", ".join(i for i in items if i)


# ---------------------------------------------------------------------------
# Primary calls
# ---------------------------------------------------------------------------


def npc_payload(req: NPCRequest) -> dict[str, Any]:
    return {
        "npcType": f"{req.race} {req.occupation}",
        "prompt": (
            f"Create a {req.race} {req.occupation} with personality: {req.personality}, "
            f"background: {req.background}, in setting: {req.setting}. "
            f"Knowledge areas: {_join(req.knowledge_areas)}"
        ),
    }


def location_payload(req: LocationRequest) -> dict[str, Any]:
    return {
        "locationType": req.type,
        "prompt": f'Create location "{req.name}": {req.description}. Atmosphere: {req.atmosphere}',
    }


def adventure_prompt(req: AdventureRequest) -> str:
    return (
        f'Create an adventure titled "{req.title}":\n'
        f"- Description: {req.description}\n"
        f"- Genre: {req.genre}\n"
        f"- Theme: {req.theme}\n"
        f"- Difficulty: {req.difficulty}\n"
        "\n"
        "Please provide story arcs, quest chains, and educational objectives."
    )


def terrain_prompt(req: TerrainRequest) -> str:
    return (
        f"Create a {req.biome} terrain with the following characteristics:\n"
        f"- Size: {req.size}\n"
        f"- Climate: {req.climate}\n"
        f"- Features: {_join(req.features) or 'none specified'}\n"
        "\n"
        "Please provide detailed terrain description and geographical features."
    )


def localized_payload(req: LocalizedRequest) -> dict[str, Any]:
    """REST generators take the request as-is, minus enrichment flags."""
    return req.model_dump(by_alias=True, exclude=_FLAG_FIELDS)


# ---------------------------------------------------------------------------
# Enrichment calls
# ---------------------------------------------------------------------------


def portrait_prompt(req: NPCRequest) -> str:
    return f"Portrait of a {req.race} {req.occupation}, {req.personality}, fantasy style"


def voice_characteristics(req: NPCRequest) -> dict[str, Any]:
    return {"race": req.race, "personality": req.personality, "occupation": req.occupation}


def location_image_prompt(req: LocationRequest) -> str:
    return f"{req.name}, {req.type}, {req.atmosphere}, {req.mood or 'atmospheric'}, {req.style or 'fantasy'} style"


def adventure_cover_prompt(req: AdventureRequest) -> str:
    return f"{req.title}, {req.genre} adventure, {req.theme}, epic fantasy art style"


def terrain_image_prompt(req: TerrainRequest) -> str:
    parts = [f"{req.biome} terrain", f"{req.climate} climate"]
    if req.features:
        parts.append(_join(req.features))
    parts += ["aerial view", "fantasy map style"]
    return ", ".join(parts)


def asset_image_prompt(name: str, kind: str, description: str) -> str:
    """Image prompt for monsters, objects and maps, built from the primary result."""
    subject = f"{name}, {kind}" if name else kind
    if description:
        return f"{subject}: {description}, fantasy illustration"
    return f"{subject}, fantasy illustration"
