"""Asset builders: merge primary backend data, enrichment results and the request.

Backend payloads are loosely shaped. Every field is read defensively and falls
back to a value derived from the request, so a sparse or malformed payload
still yields a complete asset.
"""
from __future__ import annotations

import math
import time
from typing import Any, Mapping, Optional
from uuid import uuid4

from backend.app.constants import (
    DIRECT_GENERATOR_VERSION,
    KNOWLEDGE_DEFAULT_EXPERTISE,
    LOCATION_DEFAULT_LIGHT_LEVEL,
    MONSTER_DEFAULT_STATS,
    NPC_DEFAULT_ALIGNMENT,
    REST_GENERATOR_VERSION,
    SUPPORTED_RARITIES,
)
from backend.app.models.assets import (
    EnvironmentSettings,
    GeneratedAdventure,
    GeneratedLocation,
    GeneratedMap,
    GeneratedMission,
    GeneratedMonster,
    GeneratedNPC,
    GeneratedObject,
    GeneratedTerrain,
    GeneratedWorldHistory,
    GenerationMetadata,
    KnowledgeEntry,
    MonsterStats,
    PersonalityTraits,
    QuestChain,
    StoryArc,
)
from backend.app.models.generation import (
    AdventureRequest,
    LocationRequest,
    MapRequest,
    MissionRequest,
    MonsterRequest,
    NPCRequest,
    ObjectRequest,
    TerrainRequest,
    WorldHistoryRequest,
)
from backend.app.prompts.generation import adventure_prompt, terrain_prompt

_LIST_ITEM_KEYS = ("name", "title", "description", "text")


def new_id(prefix: str) -> str:
    """``<prefix>_<epoch ms>_<random>``; unique even within the same millisecond."""
    return f"{prefix}_{int(time.time() * 1000)}_{uuid4().hex[:8]}"


def _text(data: Mapping[str, Any], key: str, fallback: Optional[str]) -> Optional[str]:
    value = data.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return fallback


def _text_list(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if not isinstance(value, list):
        return []
    out: list[str] = []
    for item in value:
        if isinstance(item, str):
            if item.strip():
                out.append(item.strip())
        elif isinstance(item, Mapping):
            label = next((item[k] for k in _LIST_ITEM_KEYS if isinstance(item.get(k), str) and item[k].strip()), None)
            if label:
                out.append(label.strip())
        elif isinstance(item, (int, float)) and not isinstance(item, bool):
            out.append(str(item))
    return out


def _int(value: Any, fallback: int) -> int:
    if isinstance(value, bool):
        return fallback
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return fallback
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        # JSON decoding accepts Infinity and NaN
        return int(value) if math.isfinite(value) else fallback
    return fallback


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _metadata(prompt: str, version: str) -> GenerationMetadata:
    return GenerationMetadata(prompt=prompt, version=version)


# ---------------------------------------------------------------------------
# Direct + REST backed assets with enrichment
# ---------------------------------------------------------------------------


def _personality(raw: Any, fallback: str) -> PersonalityTraits:
    if isinstance(raw, Mapping):
        return PersonalityTraits(
            alignment=_text(raw, "alignment", NPC_DEFAULT_ALIGNMENT),
            ideals=_text_list(raw.get("ideals")) or [fallback],
            bonds=_text_list(raw.get("bonds")),
            flaws=_text_list(raw.get("flaws")),
            mannerisms=_text_list(raw.get("mannerisms")),
        )
    ideal = raw.strip() if isinstance(raw, str) and raw.strip() else fallback
    return PersonalityTraits(alignment=NPC_DEFAULT_ALIGNMENT, ideals=[ideal])


def build_npc(
    req: NPCRequest,
    data: Mapping[str, Any],
    image_url: Optional[str] = None,
    voice_id: Optional[str] = None,
) -> GeneratedNPC:
    knowledge = _mapping(data.get("knowledge"))
    return GeneratedNPC(
        id=new_id("npc"),
        name=_text(data, "name", f"{req.race} {req.occupation}"),
        race=req.race,
        occupation=req.occupation,
        personality=_personality(data.get("personality"), req.personality),
        backstory=_text(data, "backstory", req.background or ""),
        knowledge=[
            KnowledgeEntry(
                topic=area,
                expertise=KNOWLEDGE_DEFAULT_EXPERTISE,
                facts=_text_list(knowledge.get(area)),
            )
            for area in req.knowledge_areas
        ],
        dialogue_tree=[d for d in _list(data.get("dialogueTree")) if isinstance(d, dict)],
        relationships=[],
        stats=dict(_mapping(data.get("stats"))),
        voice_id=voice_id,
        image_url=image_url,
        generation_metadata=_metadata(f"{req.race} {req.occupation}", REST_GENERATOR_VERSION),
    )


def _environment(raw: Any, atmosphere: str) -> EnvironmentSettings:
    if isinstance(raw, Mapping):
        light = max(0, min(100, _int(raw.get("lightLevel"), LOCATION_DEFAULT_LIGHT_LEVEL)))
        return EnvironmentSettings(
            time_of_day=_text(raw, "timeOfDay", "noon"),
            weather=_text(raw, "weather", "clear"),
            ambient_sounds=_text_list(raw.get("ambientSounds")) or [atmosphere],
            light_level=light,
        )
    sound = raw.strip() if isinstance(raw, str) and raw.strip() else atmosphere
    return EnvironmentSettings(ambient_sounds=[sound], light_level=LOCATION_DEFAULT_LIGHT_LEVEL)


def build_location(req: LocationRequest, data: Mapping[str, Any], image_url: Optional[str] = None) -> GeneratedLocation:
    return GeneratedLocation(
        id=new_id("location"),
        map_id=req.map_id,
        name=req.name,
        type=req.type,
        coordinates=req.coordinates,
        description=_text(data, "description", req.description or ""),
        environment=_environment(data.get("environment"), req.atmosphere),
        images=[image_url] if image_url else [],
        generation_metadata=_metadata(f"{req.type} location: {req.name}", REST_GENERATOR_VERSION),
    )


def build_adventure(req: AdventureRequest, data: Mapping[str, Any], image_url: Optional[str] = None) -> GeneratedAdventure:
    arcs = [
        StoryArc(
            id=new_id("arc"),
            name=_text(arc, "name", "Untitled Arc"),
            description=_text(arc, "description", ""),
            chapters=_list(arc.get("chapters")),
        )
        for arc in _list(data.get("storyArcs"))
        if isinstance(arc, Mapping)
    ]
    chains = [
        QuestChain(
            id=new_id("chain"),
            name=_text(chain, "name", "Untitled Quest Chain"),
            quests=_list(chain.get("quests")),
            rewards=_list(chain.get("rewards")),
        )
        for chain in _list(data.get("questChains"))
        if isinstance(chain, Mapping)
    ]
    return GeneratedAdventure(
        id=new_id("adventure"),
        world_id=req.world_id,
        name=req.title,
        description=_text(data, "description", req.description or ""),
        story_arcs=arcs,
        quest_chains=chains,
        educational_objectives=_text_list(data.get("educationalObjectives")) or list(req.educational_objectives),
        gm_notes=_text(data, "gmNotes", ""),
        image_url=image_url,
        generation_metadata=_metadata(adventure_prompt(req), DIRECT_GENERATOR_VERSION),
    )


def build_terrain(req: TerrainRequest, data: Mapping[str, Any], image_url: Optional[str] = None) -> GeneratedTerrain:
    return GeneratedTerrain(
        id=new_id("terrain"),
        biome=req.biome,
        size=req.size,
        climate=req.climate,
        features=list(req.features),
        description=_text(data, "description", f"A {req.biome} terrain in {req.climate} climate"),
        image_url=image_url,
        map_data=data.get("mapData"),
        generation_metadata=_metadata(terrain_prompt(req), DIRECT_GENERATOR_VERSION),
    )


# ---------------------------------------------------------------------------
# REST generator assets
# ---------------------------------------------------------------------------


def build_world_history(req: WorldHistoryRequest, data: Mapping[str, Any]) -> GeneratedWorldHistory:
    return GeneratedWorldHistory(
        id=new_id("history"),
        world_name=req.world_name,
        timeline=_text(data, "timeline", "Ancient times to present"),
        geography=_text(data, "geography", "Diverse landscapes"),
        cultures=_text(data, "cultures", "Rich cultural diversity"),
        major_events=_text_list(data.get("majorEvents")),
        generation_metadata=_metadata(req.prompt, REST_GENERATOR_VERSION),
    )


def _monster_stats(raw: Any) -> MonsterStats:
    stats = _mapping(raw)
    return MonsterStats(**{key: _int(stats.get(key), default) for key, default in MONSTER_DEFAULT_STATS.items()})


def build_monster(req: MonsterRequest, data: Mapping[str, Any], image_url: Optional[str] = None) -> GeneratedMonster:
    return GeneratedMonster(
        id=new_id("monster"),
        name=_text(data, "name", f"Generated {req.monster_type}"),
        type=req.monster_type,
        stats=_monster_stats(data.get("stats")),
        abilities=_text_list(data.get("abilities")),
        description=_text(data, "description", f"A {req.monster_type} creature"),
        image_url=image_url or _text(data, "imageUrl", None),
        generation_metadata=_metadata(req.prompt, REST_GENERATOR_VERSION),
    )


def build_mission(req: MissionRequest, data: Mapping[str, Any]) -> GeneratedMission:
    return GeneratedMission(
        id=new_id("mission"),
        title=_text(data, "title", f"Generated {req.mission_type} Mission"),
        type=req.mission_type,
        objectives=_text_list(data.get("objectives")),
        rewards=_text_list(data.get("rewards")),
        description=_text(data, "description", f"A {req.mission_type} mission"),
        difficulty=_text(data, "difficulty", "medium"),
        generation_metadata=_metadata(req.prompt, REST_GENERATOR_VERSION),
    )


def build_object(req: ObjectRequest, data: Mapping[str, Any], image_url: Optional[str] = None) -> GeneratedObject:
    rarity = (_text(data, "rarity", "common") or "common").lower()
    return GeneratedObject(
        id=new_id("object"),
        name=_text(data, "name", f"Generated {req.object_type}"),
        type=req.object_type,
        properties=_text_list(data.get("properties")),
        description=_text(data, "description", f"A {req.object_type} object"),
        value=max(0, _int(data.get("value"), 0)),
        rarity=rarity if rarity in SUPPORTED_RARITIES else "common",
        image_url=image_url or _text(data, "imageUrl", None),
        generation_metadata=_metadata(req.prompt, REST_GENERATOR_VERSION),
    )


def build_map(req: MapRequest, data: Mapping[str, Any], image_url: Optional[str] = None) -> GeneratedMap:
    return GeneratedMap(
        id=new_id("map"),
        name=_text(data, "name", f"Generated {req.map_type} Map"),
        type=req.map_type,
        layout=_text(data, "layout", "Generated layout"),
        features=_text_list(data.get("features")),
        description=_text(data, "description", f"A {req.map_type} map"),
        image_url=image_url or _text(data, "imageUrl", None),
        generation_metadata=_metadata(req.prompt, REST_GENERATOR_VERSION),
    )
