from __future__ import annotations
"""Empire: FastAPI application entry point.

Mounts the page/cell API and the page WebSocket, configures CORS, and owns
the page registry and generation client for the process lifetime.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from empire.api.router import api_router
from empire.api.ws import router as ws_router
from empire.config import get_settings
from empire.services.media_gen import build_generation_client
from empire.services.page_session import PageSessionRegistry
from empire.services.providers.gemini_image import close_http_client

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: build the registry and client, tear pages down on shutdown."""
    logger.info("%s starting up...", settings.APP_NAME)
    logger.info("USE_MOCK_API: %s", settings.USE_MOCK_API)
    logger.info("Media provider: %s (model=%s)", settings.MEDIA_PROVIDER, settings.IMAGE_MODEL)

    app.state.pages = PageSessionRegistry(connect_timeout=settings.page_connect_timeout)
    if not hasattr(app.state, "media_client"):
        app.state.media_client = build_generation_client(settings)

    yield

    app.state.pages.close_all()
    await close_http_client()
    logger.info("%s shut down", settings.APP_NAME)


app = FastAPI(
    title="Empire Media API",
    description="On-demand studio imagery and viewport reveal coordination",
    version="0.1.0",
    lifespan=lifespan,
    redirect_slashes=False,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)
app.include_router(ws_router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "service": settings.APP_NAME,
        "status": "healthy",
        "mock_mode": settings.USE_MOCK_API,
        "open_pages": len(app.state.pages) if hasattr(app.state, "pages") else 0,
    }
