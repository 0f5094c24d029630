"""Generation orchestrator: primary call, optional enrichment, merge, envelope.

Per request:
  1. normalize raw input (ValidationError -> failure envelope, no remote call)
  2. ensure the lifecycle is READY (single attempt)
  3. primary backend call, retried only on rate limits
  4. enrichment calls in order image -> voice; failures are logged and absorbed
  5. merge into the asset model and wrap it in a ServiceResponse

Public ``generate_*`` methods never raise.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from backend.app.constants import PORTRAIT_ROUTE, PRIMARY_ROUTES, SCENE_IMAGE_ROUTE, VOICE_ROUTE
from backend.app.core.error_handling import log_error_with_context
from backend.app.core.errors import EnrichmentError, LifecycleError, TransportError, ValidationError
from backend.app.core.lifecycle import ServiceLifecycle
from backend.app.core.request_normalizer import normalize_request
from backend.app.core.retry import RetryPolicy, Sleep, retry_with_policy
from backend.app.models.assets import (
    GeneratedAdventure,
    GeneratedLocation,
    GeneratedMap,
    GeneratedMission,
    GeneratedMonster,
    GeneratedNPC,
    GeneratedObject,
    GeneratedTerrain,
    GeneratedWorldHistory,
)
from backend.app.models.generation import (
    AdventureRequest,
    ContentType,
    GenerationRequestBase,
    LocationRequest,
    MapRequest,
    MissionRequest,
    MonsterRequest,
    NPCRequest,
    ObjectRequest,
    TerrainRequest,
    WorldHistoryRequest,
)
from backend.app.models.responses import ResponseMetadata, ServiceResponse
from backend.app.prompts.generation import (
    adventure_cover_prompt,
    adventure_prompt,
    asset_image_prompt,
    localized_payload,
    location_image_prompt,
    location_payload,
    npc_payload,
    portrait_prompt,
    terrain_image_prompt,
    terrain_prompt,
    voice_characteristics,
)
from backend.app.world import assets as builders
from backend.gateway_client import BackendResponse, GenerationGateway

logger = logging.getLogger(__name__)

RawRequest = Union[GenerationRequestBase, Mapping[str, Any]]
_Built = tuple[Any, dict[str, Any]]

_LABELS = {
    ContentType.NPC: "NPC",
    ContentType.LOCATION: "location",
    ContentType.ADVENTURE: "adventure",
    ContentType.TERRAIN: "terrain",
    ContentType.WORLD_HISTORY: "world history",
    ContentType.MONSTER: "monster",
    ContentType.MISSION: "mission",
    ContentType.OBJECT: "object",
    ContentType.MAP: "map",
}


def _first_text(data: Mapping[str, Any], *keys: str) -> Optional[str]:
    for key in keys:
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _response_metadata(started: float, telemetry: Mapping[str, Any]) -> ResponseMetadata:
    tokens = telemetry.get("tokensUsed")
    cache_hit = telemetry.get("cacheHit")
    return ResponseMetadata(
        processing_time=round((time.perf_counter() - started) * 1000, 2),
        tokens_used=tokens if isinstance(tokens, int) and not isinstance(tokens, bool) else None,
        cache_hit=cache_hit if isinstance(cache_hit, bool) else None,
    )


class GenerationOrchestrator:
    """Turns generation requests into ServiceResponse-wrapped assets."""

    def __init__(
        self,
        gateway: GenerationGateway,
        lifecycle: ServiceLifecycle,
        retry: Optional[RetryPolicy] = None,
        *,
        sleep: Sleep = asyncio.sleep,
    ):
        self.gateway = gateway
        self.lifecycle = lifecycle
        self.retry = retry or RetryPolicy()
        self._sleep = sleep
        self._builders: dict[ContentType, Callable[[Any], Awaitable[_Built]]] = {
            ContentType.NPC: self._build_npc,
            ContentType.LOCATION: self._build_location,
            ContentType.ADVENTURE: self._build_adventure,
            ContentType.TERRAIN: self._build_terrain,
            ContentType.WORLD_HISTORY: self._build_world_history,
            ContentType.MONSTER: self._build_monster,
            ContentType.MISSION: self._build_mission,
            ContentType.OBJECT: self._build_object,
            ContentType.MAP: self._build_map,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def generate(self, content_type: ContentType | str, request: RawRequest) -> ServiceResponse:
        """Dispatch on content type; unknown types become a failure envelope."""
        try:
            ctype = ContentType(content_type)
        except ValueError:
            return ServiceResponse.fail(f"Unsupported content type: {content_type}")
        return await self._run(ctype, request)

    async def generate_npc(self, request: RawRequest) -> ServiceResponse[GeneratedNPC]:
        return await self._run(ContentType.NPC, request)

    async def generate_location(self, request: RawRequest) -> ServiceResponse[GeneratedLocation]:
        return await self._run(ContentType.LOCATION, request)

    async def generate_adventure(self, request: RawRequest) -> ServiceResponse[GeneratedAdventure]:
        return await self._run(ContentType.ADVENTURE, request)

    async def generate_terrain(self, request: RawRequest) -> ServiceResponse[GeneratedTerrain]:
        return await self._run(ContentType.TERRAIN, request)

    async def generate_world_history(self, request: RawRequest) -> ServiceResponse[GeneratedWorldHistory]:
        return await self._run(ContentType.WORLD_HISTORY, request)

    async def generate_monster(self, request: RawRequest) -> ServiceResponse[GeneratedMonster]:
        return await self._run(ContentType.MONSTER, request)

    async def generate_mission(self, request: RawRequest) -> ServiceResponse[GeneratedMission]:
        return await self._run(ContentType.MISSION, request)

    async def generate_object(self, request: RawRequest) -> ServiceResponse[GeneratedObject]:
        return await self._run(ContentType.OBJECT, request)

    async def generate_map(self, request: RawRequest) -> ServiceResponse[GeneratedMap]:
        return await self._run(ContentType.MAP, request)

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    @staticmethod
    def _coerce(content_type: ContentType, request: RawRequest) -> GenerationRequestBase:
        if isinstance(request, GenerationRequestBase):
            if request.content_type is not content_type:
                raise ValidationError(
                    invalid_fields=["type"],
                    message=f"Expected a {content_type.value} request, got {request.content_type.value}",
                )
            return request
        return normalize_request(request, content_type)

    async def _run(self, content_type: ContentType, request: RawRequest) -> ServiceResponse:
        label = _LABELS[content_type]
        started = time.perf_counter()
        try:
            req = self._coerce(content_type, request)
            await self.lifecycle.initialize()
            asset, telemetry = await self._builders[content_type](req)
            metadata = _response_metadata(started, telemetry)
        except ValidationError as exc:
            logger.info("Rejected %s request: %s", label, exc)
            return ServiceResponse.fail(str(exc))
        except LifecycleError as exc:
            logger.error("Cannot generate %s: %s", label, exc)
            return ServiceResponse.fail(str(exc))
        except TransportError as exc:
            logger.error("Primary %s generation failed: %r", label, exc)
            return ServiceResponse.fail(exc.message)
        except Exception as exc:
            log_error_with_context(
                error=exc,
                component="orchestrator",
                content_type=content_type.value,
            )
            return ServiceResponse.fail(f"Failed to generate {label}")

        logger.info("Generated %s %s in %.0fms", label, asset.id, metadata.processing_time)
        return ServiceResponse.ok(asset, metadata)

    async def _call(self, route: tuple[str, str], payload: dict[str, Any]) -> BackendResponse:
        backend, operation = route
        return await retry_with_policy(
            lambda: self.gateway.call(backend, operation, payload), self.retry, sleep=self._sleep
        )

    async def _primary(self, content_type: ContentType, payload: dict[str, Any]) -> BackendResponse:
        return await self._call(PRIMARY_ROUTES[content_type.value], payload)

    async def _enrich_image(self, route: tuple[str, str], prompt: str, label: str) -> Optional[str]:
        """Image URL, or None when the image call fails in any way."""
        try:
            result = await self._call(route, {"prompt": prompt})
            url = _first_text(result.data, "imageUrl", "url", "image_url")
            if not url:
                raise EnrichmentError("Image service returned no image URL", asset="image")
            return url
        except Exception as exc:
            logger.warning("Image enrichment for %s failed, continuing without it: %r", label, exc)
            return None

    async def _enrich_voice(self, characteristics: dict[str, Any], label: str) -> Optional[str]:
        try:
            result = await self._call(VOICE_ROUTE, characteristics)
            voice_id = _first_text(result.data, "voiceId", "id", "voice_id")
            if not voice_id:
                raise EnrichmentError("Voice service returned no voice id", asset="voice")
            return voice_id
        except Exception as exc:
            logger.warning("Voice enrichment for %s failed, continuing without it: %r", label, exc)
            return None

    # ------------------------------------------------------------------
    # Per-type builders
    # ------------------------------------------------------------------

    async def _build_npc(self, req: NPCRequest) -> _Built:
        primary = await self._primary(ContentType.NPC, npc_payload(req))
        image_url = voice_id = None
        if req.include_portrait:
            image_url = await self._enrich_image(PORTRAIT_ROUTE, portrait_prompt(req), "NPC")
        if req.include_voice:
            voice_id = await self._enrich_voice(voice_characteristics(req), "NPC")
        return builders.build_npc(req, primary.data, image_url=image_url, voice_id=voice_id), primary.metadata

    async def _build_location(self, req: LocationRequest) -> _Built:
        primary = await self._primary(ContentType.LOCATION, location_payload(req))
        image_url = None
        if req.include_image:
            image_url = await self._enrich_image(SCENE_IMAGE_ROUTE, location_image_prompt(req), "location")
        return builders.build_location(req, primary.data, image_url=image_url), primary.metadata

    async def _build_adventure(self, req: AdventureRequest) -> _Built:
        primary = await self._primary(ContentType.ADVENTURE, {"prompt": adventure_prompt(req)})
        image_url = None
        if req.include_image:
            image_url = await self._enrich_image(SCENE_IMAGE_ROUTE, adventure_cover_prompt(req), "adventure")
        return builders.build_adventure(req, primary.data, image_url=image_url), primary.metadata

    async def _build_terrain(self, req: TerrainRequest) -> _Built:
        primary = await self._primary(ContentType.TERRAIN, {"prompt": terrain_prompt(req)})
        image_url = None
        if req.include_image:
            image_url = await self._enrich_image(SCENE_IMAGE_ROUTE, terrain_image_prompt(req), "terrain")
        return builders.build_terrain(req, primary.data, image_url=image_url), primary.metadata

    async def _build_world_history(self, req: WorldHistoryRequest) -> _Built:
        primary = await self._primary(ContentType.WORLD_HISTORY, localized_payload(req))
        return builders.build_world_history(req, primary.data), primary.metadata

    async def _build_mission(self, req: MissionRequest) -> _Built:
        primary = await self._primary(ContentType.MISSION, localized_payload(req))
        return builders.build_mission(req, primary.data), primary.metadata

    async def _with_scene_image(self, asset: Any, include_image: bool, label: str) -> Any:
        """Add an illustration unless the generator already supplied one."""
        if not include_image or asset.image_url:
            return asset
        prompt = asset_image_prompt(asset.name, asset.type, asset.description)
        image_url = await self._enrich_image(SCENE_IMAGE_ROUTE, prompt, label)
        if image_url is None:
            return asset
        return asset.model_copy(update={"image_url": image_url})

    async def _build_monster(self, req: MonsterRequest) -> _Built:
        primary = await self._primary(ContentType.MONSTER, localized_payload(req))
        asset = builders.build_monster(req, primary.data)
        return await self._with_scene_image(asset, req.include_image, "monster"), primary.metadata

    async def _build_object(self, req: ObjectRequest) -> _Built:
        primary = await self._primary(ContentType.OBJECT, localized_payload(req))
        asset = builders.build_object(req, primary.data)
        return await self._with_scene_image(asset, req.include_image, "object"), primary.metadata

    async def _build_map(self, req: MapRequest) -> _Built:
        primary = await self._primary(ContentType.MAP, localized_payload(req))
        asset = builders.build_map(req, primary.data)
        return await self._with_scene_image(asset, req.include_image, "map"), primary.metadata
