"""
Generation request models, one per content type.
Wire format is camelCase; snake_case names are accepted too.
"""
from __future__ import annotations

import re
from enum import Enum
from typing import Annotated, ClassVar, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator, model_validator
from pydantic.alias_generators import to_camel

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
Language = Literal["EN", "ES"]


class ContentType(str, Enum):
    """World-building asset kinds the service can generate."""

    NPC = "npc"
    LOCATION = "location"
    ADVENTURE = "adventure"
    TERRAIN = "terrain"
    WORLD_HISTORY = "world_history"
    MONSTER = "monster"
    MISSION = "mission"
    OBJECT = "object"
    MAP = "map"

    @classmethod
    def _missing_(cls, value):
        # Accept "NPC", "worldHistory", "world-history"
        if not isinstance(value, str):
            return None
        raw = value.strip()
        candidates = (
            raw.lower(),
            re.sub(r"(?<!^)(?=[A-Z])", "_", raw).lower(),
            raw.lower().replace("-", "_"),
        )
        for candidate in candidates:
            for member in cls:
                if member.value == candidate:
                    return member
        return None


class CamelModel(BaseModel):
    """Base for models exchanged with callers and backends in camelCase."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Coordinates(CamelModel):
    x: float
    y: float


class GenerationRequestBase(CamelModel):
    """Common base; ``content_type`` tags the variant."""
    content_type: ClassVar[ContentType]


class LocalizedRequest(GenerationRequestBase):
    """REST-backed generators take a free-text prompt plus a response language."""
    language: Language = "EN"

    @field_validator("language", mode="before")
    @classmethod
    def _upper_language(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v


class NPCRequest(GenerationRequestBase):
    content_type: ClassVar[ContentType] = ContentType.NPC

    race: NonEmptyStr
    occupation: NonEmptyStr
    personality: str = "neutral"
    background: Optional[str] = Field(None, description="Defaults to 'A typical {race} {occupation}'")
    setting: str = "fantasy world"
    knowledge_areas: List[str] = Field(default_factory=list, description="Defaults to [occupation]")
    include_portrait: bool = False
    include_voice: bool = False

    @model_validator(mode="after")
    def _derived_defaults(self) -> "NPCRequest":
        if not (self.background or "").strip():
            self.background = f"A typical {self.race} {self.occupation}"
        if not self.knowledge_areas:
            self.knowledge_areas = [self.occupation]
        return self


class LocationRequest(GenerationRequestBase):
    content_type: ClassVar[ContentType] = ContentType.LOCATION

    map_id: NonEmptyStr
    name: NonEmptyStr
    type: NonEmptyStr
    coordinates: Coordinates
    description: Optional[str] = Field(None, description="Defaults to 'A {type} called {name}'")
    atmosphere: str = "mysterious"
    include_image: bool = False
    mood: str = "atmospheric"
    style: str = "fantasy"

    @model_validator(mode="after")
    def _derived_defaults(self) -> "LocationRequest":
        if not (self.description or "").strip():
            self.description = f"A {self.type} called {self.name}"
        return self


class AdventureRequest(GenerationRequestBase):
    content_type: ClassVar[ContentType] = ContentType.ADVENTURE

    world_id: NonEmptyStr
    title: NonEmptyStr
    description: Optional[str] = None
    genre: str = "fantasy"
    theme: str = "adventure"
    difficulty: Literal["easy", "medium", "hard"] = "medium"
    educational_objectives: List[str] = Field(default_factory=list)
    include_image: bool = False

    @field_validator("difficulty", mode="before")
    @classmethod
    def _lower_difficulty(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @model_validator(mode="after")
    def _derived_defaults(self) -> "AdventureRequest":
        if not (self.description or "").strip():
            self.description = f'An adventure titled "{self.title}"'
        return self


class TerrainRequest(GenerationRequestBase):
    content_type: ClassVar[ContentType] = ContentType.TERRAIN

    biome: NonEmptyStr
    size: NonEmptyStr
    climate: NonEmptyStr
    features: List[str] = Field(default_factory=list)
    include_image: bool = False


class WorldHistoryRequest(LocalizedRequest):
    content_type: ClassVar[ContentType] = ContentType.WORLD_HISTORY

    world_name: NonEmptyStr
    prompt: NonEmptyStr


class MonsterRequest(LocalizedRequest):
    content_type: ClassVar[ContentType] = ContentType.MONSTER

    monster_type: NonEmptyStr
    prompt: NonEmptyStr
    include_image: bool = False


class MissionRequest(LocalizedRequest):
    content_type: ClassVar[ContentType] = ContentType.MISSION

    mission_type: NonEmptyStr
    prompt: NonEmptyStr


class ObjectRequest(LocalizedRequest):
    content_type: ClassVar[ContentType] = ContentType.OBJECT

    object_type: NonEmptyStr
    prompt: NonEmptyStr
    include_image: bool = False


class MapRequest(LocalizedRequest):
    content_type: ClassVar[ContentType] = ContentType.MAP

    map_type: NonEmptyStr
    prompt: NonEmptyStr
    include_image: bool = False


REQUEST_MODELS: dict[ContentType, type[GenerationRequestBase]] = {
    model.content_type: model
    for model in (
        NPCRequest,
        LocationRequest,
        AdventureRequest,
        TerrainRequest,
        WorldHistoryRequest,
        MonsterRequest,
        MissionRequest,
        ObjectRequest,
        MapRequest,
    )
}


def required_fields(content_type: ContentType) -> list[str]:
    """Required wire (camelCase) field names, in declaration order."""
    model = REQUEST_MODELS[content_type]
    return [
        info.alias or name
        for name, info in model.model_fields.items()
        if info.is_required()
    ]


def optional_fields(content_type: ContentType) -> list[str]:
    model = REQUEST_MODELS[content_type]
    return [
        info.alias or name
        for name, info in model.model_fields.items()
        if not info.is_required()
    ]
