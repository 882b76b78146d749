"""
Set list endpoint.

Lists the sets that can be opened as sealed pools.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from sealedarena.dependencies import get_catalog
from sealedarena.services.catalog import CatalogCache

router = APIRouter(prefix="/sets", tags=["sets"])


class SetResponse(BaseModel):
    """A set that can be selected in the lobby."""

    code: str
    name: str
    released_at: str | None = None


class SetListResponse(BaseModel):
    sets: list[SetResponse]
    count: int


@router.get("", response_model=SetListResponse)
async def list_sets(
    catalog: Annotated[CatalogCache, Depends(get_catalog)],
) -> SetListResponse:
    """
    Get expansion and core sets, newest first.

    Falls back to a short built-in list when the catalog is unreachable.
    """
    sets = [SetResponse(**s) for s in await catalog.list_sets()]
    return SetListResponse(sets=sets, count=len(sets))
