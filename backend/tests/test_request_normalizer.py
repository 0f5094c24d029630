"""Request normalization: required fields, derived defaults, coordinate shape."""
from __future__ import annotations

import pytest

from backend.app.core.errors import ValidationError
from backend.app.core.request_normalizer import missing_required_fields, normalize_request
from backend.app.models.generation import (
    ContentType,
    LocationRequest,
    NPCRequest,
    optional_fields,
    required_fields,
)


def _location(**overrides):
    payload = {
        "mapId": "map_1",
        "name": "Whispering Archive",
        "type": "library",
        "coordinates": {"x": 10, "y": 20.5},
    }
    payload.update(overrides)
    return payload


# ---------------------------------------------------------------------------
# NPC
# ---------------------------------------------------------------------------


def test_npc_defaults_are_derived_from_race_and_occupation():
    req = normalize_request({"race": "Elf", "occupation": "Blacksmith"}, ContentType.NPC)
    assert isinstance(req, NPCRequest)
    assert req.personality == "neutral"
    assert req.background == "A typical Elf Blacksmith"
    assert req.setting == "fantasy world"
    assert req.knowledge_areas == ["Blacksmith"]
    assert req.include_portrait is False
    assert req.include_voice is False


def test_npc_missing_occupation_names_only_that_field():
    with pytest.raises(ValidationError) as exc_info:
        normalize_request({"race": "Elf"}, ContentType.NPC)
    assert exc_info.value.missing_fields == ["occupation"]
    assert "occupation" in str(exc_info.value)


def test_npc_blank_strings_count_as_missing():
    with pytest.raises(ValidationError) as exc_info:
        normalize_request({"race": "  ", "occupation": ""}, ContentType.NPC)
    assert exc_info.value.missing_fields == ["race", "occupation"]


def test_npc_explicit_values_are_kept():
    req = normalize_request(
        {
            "race": "Dwarf",
            "occupation": "Miner",
            "background": "Lost his clan",
            "knowledgeAreas": ["gems", "tunnels"],
            "includePortrait": True,
        },
        "npc",
    )
    assert req.background == "Lost his clan"
    assert req.knowledge_areas == ["gems", "tunnels"]
    assert req.include_portrait is True


def test_snake_case_keys_are_accepted():
    req = normalize_request({"race": "Elf", "occupation": "Scribe", "include_voice": True}, ContentType.NPC)
    assert req.include_voice is True


def test_non_mapping_payload_reports_every_required_field():
    with pytest.raises(ValidationError) as exc_info:
        normalize_request(None, ContentType.NPC)
    assert exc_info.value.missing_fields == ["race", "occupation"]


def test_input_mapping_is_not_mutated():
    payload = {"race": "Elf", "occupation": "Blacksmith"}
    normalize_request(payload, ContentType.NPC)
    assert payload == {"race": "Elf", "occupation": "Blacksmith"}


def test_wrong_type_for_flag_is_reported_as_invalid():
    with pytest.raises(ValidationError) as exc_info:
        normalize_request({"race": "Elf", "occupation": "Smith", "includePortrait": "sometimes"}, ContentType.NPC)
    assert exc_info.value.invalid_fields == ["includePortrait"]
    assert exc_info.value.missing_fields == []


# ---------------------------------------------------------------------------
# Location
# ---------------------------------------------------------------------------


def test_location_description_default():
    req = normalize_request(_location(), ContentType.LOCATION)
    assert isinstance(req, LocationRequest)
    assert req.description == "A library called Whispering Archive"
    assert req.atmosphere == "mysterious"
    assert req.mood == "atmospheric"
    assert req.style == "fantasy"
    assert req.coordinates.x == 10
    assert req.coordinates.y == 20.5


def test_location_missing_fields_in_declaration_order():
    with pytest.raises(ValidationError) as exc_info:
        normalize_request({"type": "tavern"}, ContentType.LOCATION)
    assert exc_info.value.missing_fields == ["mapId", "name", "coordinates"]


@pytest.mark.parametrize(
    "coords",
    [
        {"x": "10", "y": 20},
        {"x": 10},
        {"x": True, "y": 1},
        [10, 20],
        "10,20",
    ],
)
def test_location_coordinates_must_have_numeric_x_and_y(coords):
    with pytest.raises(ValidationError) as exc_info:
        normalize_request(_location(coordinates=coords), ContentType.LOCATION)
    assert exc_info.value.invalid_fields == ["coordinates"]


# ---------------------------------------------------------------------------
# Adventure / terrain / REST-backed types
# ---------------------------------------------------------------------------


def test_adventure_defaults_and_difficulty_case():
    req = normalize_request({"worldId": "w1", "title": "The Lost Codex", "difficulty": "HARD"}, ContentType.ADVENTURE)
    assert req.description == 'An adventure titled "The Lost Codex"'
    assert req.genre == "fantasy"
    assert req.theme == "adventure"
    assert req.difficulty == "hard"
    assert req.educational_objectives == []


def test_adventure_unknown_difficulty_is_invalid():
    with pytest.raises(ValidationError) as exc_info:
        normalize_request({"worldId": "w1", "title": "T", "difficulty": "nightmare"}, ContentType.ADVENTURE)
    assert exc_info.value.invalid_fields == ["difficulty"]


def test_terrain_requires_biome_size_climate():
    with pytest.raises(ValidationError) as exc_info:
        normalize_request({"biome": "forest"}, ContentType.TERRAIN)
    assert exc_info.value.missing_fields == ["size", "climate"]


def test_localized_request_language_defaults_and_uppercases():
    req = normalize_request({"monsterType": "dragon", "prompt": "frost"}, ContentType.MONSTER)
    assert req.language == "EN"
    req = normalize_request({"missionType": "rescue", "prompt": "save", "language": "es"}, ContentType.MISSION)
    assert req.language == "ES"


def test_unsupported_language_is_invalid():
    with pytest.raises(ValidationError) as exc_info:
        normalize_request({"worldName": "Eldoria", "prompt": "p", "language": "FR"}, ContentType.WORLD_HISTORY)
    assert exc_info.value.invalid_fields == ["language"]


def test_content_type_accepts_string_spellings():
    req = normalize_request({"worldName": "Eldoria", "prompt": "p"}, "worldHistory")
    assert req.content_type is ContentType.WORLD_HISTORY


def test_missing_required_fields_helper():
    assert missing_required_fields({"objectType": "sword"}, ContentType.OBJECT) == ["prompt"]
    assert missing_required_fields({"map_type": "dungeon", "prompt": "p"}, ContentType.MAP) == []


def test_field_listings_use_wire_names():
    assert required_fields(ContentType.NPC) == ["race", "occupation"]
    assert "knowledgeAreas" in optional_fields(ContentType.NPC)
    assert required_fields(ContentType.LOCATION) == ["mapId", "name", "type", "coordinates"]
    assert "language" in optional_fields(ContentType.MAP)
