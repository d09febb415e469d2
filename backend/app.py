"""
FastAPI application -- market directory API server.

Run locally:
    uvicorn backend.app:app --reload --port 8000
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from backend.database import init_db
from backend.routes import listings, reference, search
from config_env import get_settings

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Initialise database schema
    await init_db()
    logger.info(
        "Directory API ready (page size %d, visual search %s)",
        settings.default_page_size,
        "enabled" if settings.vision_enabled else "disabled",
    )
    yield


app = FastAPI(
    title="Market Directory API",
    version="1.0.0",
    description="Regional business and market directory -- listings, markets, visual product search",
    lifespan=lifespan,
)

app.include_router(listings.router)
app.include_router(reference.router)
app.include_router(search.router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "ok",
        "visual_search": settings.vision_enabled,
    }
