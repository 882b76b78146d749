"""
Health check endpoints.

Provides liveness and readiness probes.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from sealedarena.dependencies import get_catalog, get_hub
from sealedarena.services.catalog import CatalogCache
from sealedarena.services.relay_session import SessionHub

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    sessions: int | None = None
    cached_sets: list[str] | None = None


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """
    Liveness probe.

    Returns healthy if the service is running.
    Does not check dependencies.
    """
    return HealthResponse(status="healthy")


@router.get("/ready", response_model=HealthResponse)
async def ready(
    hub: Annotated[SessionHub, Depends(get_hub)],
    catalog: Annotated[CatalogCache, Depends(get_catalog)],
) -> HealthResponse:
    """
    Readiness probe.

    Reports live sessions and the sets already held in the catalog cache.
    """
    return HealthResponse(status="ready", sessions=len(hub), cached_sets=catalog.cached_sets)
