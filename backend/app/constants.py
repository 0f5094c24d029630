"""Centralized generation constants shared across the app."""
from __future__ import annotations

# Generator versions stamped into generationMetadata
REST_GENERATOR_VERSION = "2.0.0"
DIRECT_GENERATOR_VERSION = "1.0.0"

# Error code some backends put in their envelope when throttling
RATE_LIMIT_CODE = "RATE_LIMIT_EXCEEDED"

# Primary routes: content type value -> (backend, operation)
PRIMARY_ROUTES: dict[str, tuple[str, str]] = {
    "npc": ("rpg_api", "npc-generator"),
    "location": ("rpg_api", "location-generator"),
    "adventure": ("adventure", "generate"),
    "terrain": ("scene", "generate"),
    "world_history": ("rpg_api", "world-history-generator"),
    "monster": ("rpg_api", "monster-generator"),
    "mission": ("rpg_api", "mission-generator"),
    "object": ("rpg_api", "object-generator"),
    "map": ("rpg_api", "map-generator"),
}

# Enrichment routes
PORTRAIT_ROUTE: tuple[str, str] = ("image", "character-portrait")
SCENE_IMAGE_ROUTE: tuple[str, str] = ("image", "scene-image")
VOICE_ROUTE: tuple[str, str] = ("voice", "generate")

# Asset fallbacks
LOCATION_DEFAULT_LIGHT_LEVEL = 75
MONSTER_DEFAULT_STATS = {"health": 100, "attack": 20, "defense": 15, "speed": 10}
NPC_DEFAULT_ALIGNMENT = "Neutral Good"
KNOWLEDGE_DEFAULT_EXPERTISE = "intermediate"

# Supported values advertised by the usage docs
SUPPORTED_LANGUAGES: tuple[str, ...] = ("EN", "ES")
SUPPORTED_DIFFICULTIES: tuple[str, ...] = ("easy", "medium", "hard")
SUPPORTED_RARITIES: tuple[str, ...] = ("common", "uncommon", "rare", "epic", "legendary")
SUPPORTED_GENRES: tuple[str, ...] = ("fantasy", "scifi", "historical", "educational", "custom")
SUPPORTED_BIOMES: tuple[str, ...] = (
    "forest", "grassland", "desert", "tundra", "mountains",
    "swamp", "jungle", "coastal", "volcanic", "arctic",
    "savanna", "wetlands", "plateau", "canyon", "valley",
)
SUPPORTED_SIZES: tuple[str, ...] = ("small", "medium", "large", "vast", "continental")
SUPPORTED_CLIMATES: tuple[str, ...] = (
    "arctic", "cold", "temperate", "warm", "tropical",
    "arid", "humid", "maritime", "continental",
)
EXAMPLE_TERRAIN_FEATURES: tuple[str, ...] = (
    "rivers", "lakes", "caves", "cliffs", "waterfalls",
    "ruins", "roads", "bridges", "settlements", "resources",
)
SUPPORTED_LOCATION_TYPES: tuple[str, ...] = (
    "city", "town", "village", "castle", "fort",
    "dungeon", "cave", "ruin", "temple", "shrine",
    "forest", "mountain", "lake", "river", "coast",
    "school", "library", "museum", "laboratory",
    "custom",
)
SUPPORTED_MOODS: tuple[str, ...] = (
    "mysterious", "peaceful", "ominous", "magical", "ancient", "bustling", "serene", "haunted",
)
SUPPORTED_STYLES: tuple[str, ...] = (
    "fantasy", "realistic", "gothic", "steampunk", "medieval", "modern", "futuristic",
)
