from sealedarena.api.health import router as health_router
from sealedarena.api.relay import router as relay_router
from sealedarena.api.sets import router as sets_router

__all__ = [
    "health_router",
    "relay_router",
    "sets_router",
]
