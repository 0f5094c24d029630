"""Application models (generation requests, generated assets, envelopes, batches)."""
from .generation import (
    AdventureRequest,
    ContentType,
    Coordinates,
    GenerationRequestBase,
    LocationRequest,
    MapRequest,
    MissionRequest,
    MonsterRequest,
    NPCRequest,
    ObjectRequest,
    REQUEST_MODELS,
    TerrainRequest,
    WorldHistoryRequest,
)
from .assets import (
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
)
from .responses import ResponseMetadata, ServiceResponse
from .batch import BatchOperation, BatchResult

__all__ = [
    "AdventureRequest",
    "ContentType",
    "Coordinates",
    "GenerationRequestBase",
    "LocationRequest",
    "MapRequest",
    "MissionRequest",
    "MonsterRequest",
    "NPCRequest",
    "ObjectRequest",
    "REQUEST_MODELS",
    "TerrainRequest",
    "WorldHistoryRequest",
    "GeneratedAdventure",
    "GeneratedLocation",
    "GeneratedMap",
    "GeneratedMission",
    "GeneratedMonster",
    "GeneratedNPC",
    "GeneratedObject",
    "GeneratedTerrain",
    "GeneratedWorldHistory",
    "GenerationMetadata",
    "ResponseMetadata",
    "ServiceResponse",
    "BatchOperation",
    "BatchResult",
]
