"""Composition root: builds the shared gateway/lifecycle/orchestrator set.

The FastAPI lifespan stores one instance on ``app.state.world_builder``; route
handlers reach it through :func:`get_world_builder`.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Mapping, Optional

import httpx
from fastapi import HTTPException, Request

from backend.app.config import BACKEND_CONFIG, BackendConfig
from backend.app.core.batch_runner import BatchRunner
from backend.app.core.lifecycle import ServiceLifecycle
from backend.app.core.orchestrator import GenerationOrchestrator
from backend.app.core.retry import RetryPolicy, Sleep
from backend.gateway_client import GenerationGateway


@dataclass
class WorldBuilderServices:
    gateway: GenerationGateway
    lifecycle: ServiceLifecycle
    orchestrator: GenerationOrchestrator

    def new_batch_runner(self) -> BatchRunner:
        return BatchRunner(self.orchestrator)

    async def aclose(self) -> None:
        await self.gateway.aclose()


def build_services(
    client: Optional[httpx.AsyncClient] = None,
    backends: Optional[Mapping[str, BackendConfig]] = None,
    retry: Optional[RetryPolicy] = None,
    gateway: Optional[GenerationGateway] = None,
    *,
    sleep: Sleep = asyncio.sleep,
) -> WorldBuilderServices:
    """Wire gateway -> lifecycle -> orchestrator around one HTTP client."""
    resolved = dict(backends if backends is not None else BACKEND_CONFIG)
    retry = retry or RetryPolicy()
    gateway = gateway or GenerationGateway(resolved, client=client)
    lifecycle = ServiceLifecycle(gateway, resolved, retry, sleep=sleep)
    orchestrator = GenerationOrchestrator(gateway, lifecycle, retry, sleep=sleep)
    return WorldBuilderServices(gateway=gateway, lifecycle=lifecycle, orchestrator=orchestrator)


def get_world_builder(request: Request) -> WorldBuilderServices:
    """FastAPI dependency: the services created by the app lifespan."""
    services = getattr(request.app.state, "world_builder", None)
    if services is None:
        raise HTTPException(status_code=503, detail="Generation services are not started")
    return services
