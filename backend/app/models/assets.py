"""
Generated asset models returned to callers.
Every asset carries a unique id, the aiGenerated tag and a frozen provenance record.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import ConfigDict, Field

from .generation import CamelModel, Coordinates


class GenerationMetadata(CamelModel):
    """Provenance record; immutable once built."""
    model_config = ConfigDict(frozen=True)

    prompt: str
    version: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class GeneratedAssetBase(CamelModel):
    id: str
    ai_generated: Literal[True] = True
    generation_metadata: GenerationMetadata


class PersonalityTraits(CamelModel):
    alignment: str = "Neutral Good"
    ideals: List[str] = Field(default_factory=list)
    bonds: List[str] = Field(default_factory=list)
    flaws: List[str] = Field(default_factory=list)
    mannerisms: List[str] = Field(default_factory=list)


class KnowledgeEntry(CamelModel):
    topic: str
    expertise: str = "intermediate"
    facts: List[str] = Field(default_factory=list)


class GeneratedNPC(GeneratedAssetBase):
    name: str
    race: str
    occupation: str
    personality: PersonalityTraits
    backstory: str
    knowledge: List[KnowledgeEntry] = Field(default_factory=list)
    dialogue_tree: List[Dict[str, Any]] = Field(default_factory=list)
    relationships: List[Dict[str, Any]] = Field(default_factory=list)
    stats: Dict[str, Any] = Field(default_factory=dict)
    voice_id: Optional[str] = None
    image_url: Optional[str] = None


class EnvironmentSettings(CamelModel):
    time_of_day: str = "noon"
    weather: str = "clear"
    ambient_sounds: List[str] = Field(default_factory=list)
    light_level: int = Field(75, ge=0, le=100)


class GeneratedLocation(GeneratedAssetBase):
    map_id: str
    name: str
    type: str
    coordinates: Coordinates
    description: str
    npcs: List[str] = Field(default_factory=list)
    items: List[str] = Field(default_factory=list)
    quests: List[str] = Field(default_factory=list)
    environment: EnvironmentSettings = Field(default_factory=EnvironmentSettings)
    images: List[str] = Field(default_factory=list)


class StoryArc(CamelModel):
    id: str
    name: str = "Untitled Arc"
    description: str = ""
    chapters: List[Any] = Field(default_factory=list)
    status: str = "planned"


class QuestChain(CamelModel):
    id: str
    name: str = "Untitled Quest Chain"
    quests: List[Any] = Field(default_factory=list)
    rewards: List[Any] = Field(default_factory=list)


class GeneratedAdventure(GeneratedAssetBase):
    world_id: str
    name: str
    description: str
    story_arcs: List[StoryArc] = Field(default_factory=list)
    quest_chains: List[QuestChain] = Field(default_factory=list)
    educational_objectives: List[str] = Field(default_factory=list)
    sessions: List[Any] = Field(default_factory=list)
    gm_notes: str = ""
    image_url: Optional[str] = None


class GeneratedTerrain(GeneratedAssetBase):
    biome: str
    size: str
    climate: str
    features: List[str] = Field(default_factory=list)
    description: str
    image_url: Optional[str] = None
    map_data: Optional[Any] = None


class GeneratedWorldHistory(GeneratedAssetBase):
    world_name: str
    timeline: str
    geography: str
    cultures: str
    major_events: List[str] = Field(default_factory=list)


class MonsterStats(CamelModel):
    health: int = 100
    attack: int = 20
    defense: int = 15
    speed: int = 10


class GeneratedMonster(GeneratedAssetBase):
    name: str
    type: str
    stats: MonsterStats = Field(default_factory=MonsterStats)
    abilities: List[str] = Field(default_factory=list)
    description: str
    image_url: Optional[str] = None


class GeneratedMission(GeneratedAssetBase):
    title: str
    type: str
    objectives: List[str] = Field(default_factory=list)
    rewards: List[str] = Field(default_factory=list)
    description: str
    difficulty: str = "medium"


class GeneratedObject(GeneratedAssetBase):
    name: str
    type: str
    properties: List[str] = Field(default_factory=list)
    description: str
    value: int = 0
    rarity: Literal["common", "uncommon", "rare", "epic", "legendary"] = "common"
    image_url: Optional[str] = None


class GeneratedMap(GeneratedAssetBase):
    name: str
    type: str
    layout: str
    features: List[str] = Field(default_factory=list)
    description: str
    image_url: Optional[str] = None
