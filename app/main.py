"""
Standalone FastAPI app wiring for FeedGate.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

import feedgate.config as config
from feedgate.db import dispose_db, init_db
from app.middleware import configure_middleware
from app.routes.feed import router as feed_router
from app.routes.health import router as health_router
from app.routes.root import router as root_router
from app.routes.storage import router as storage_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize on startup, cleanup on shutdown."""
    init_db()
    config.logger.info("FeedGate started (backend=%s)", config.DB_BACKEND_EFFECTIVE)
    try:
        yield
    finally:
        dispose_db()


app = FastAPI(title="FeedGate", redirect_slashes=False, lifespan=lifespan)
configure_middleware(app)

# Health and root endpoints
app.include_router(health_router)
app.include_router(root_router)

# Feed data and storage authorization
app.include_router(feed_router)
app.include_router(storage_router)
