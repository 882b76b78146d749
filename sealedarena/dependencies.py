"""
Process-wide singletons and their FastAPI dependencies.

The catalog cache is shared by every session; sessions live in the hub.
Nothing here outlives the process.
"""

from sealedarena.services.catalog import CatalogCache
from sealedarena.services.pack_generator import PackGenerator
from sealedarena.services.relay_session import SessionHub

catalog = CatalogCache()

hub = SessionHub(PackGenerator(catalog))


def get_catalog() -> CatalogCache:
    """
    Dependency that provides the catalog cache.

    Usage in FastAPI:
        @router.get("/sets")
        async def sets(catalog: CatalogCache = Depends(get_catalog)):
            ...
    """
    return catalog


def get_hub() -> SessionHub:
    """Dependency that provides the session hub."""
    return hub
