import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sealedarena.api import health_router, relay_router, sets_router
from sealedarena.config import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    logger.info("%s relay starting", settings.app_name)
    yield
    logger.info("%s relay stopped", settings.app_name)


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("sealedarena"),
    lifespan=lifespan,
)

app.include_router(health_router)
app.include_router(relay_router)
app.include_router(sets_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Tighten in production
    allow_credentials=False,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)
