"""
Root endpoint with service metadata.
"""

from __future__ import annotations

from fastapi import APIRouter

import feedgate.config as config


router = APIRouter()


@router.get("/")
async def root():
    """Root endpoint with service info."""
    return {
        "service": "FeedGate",
        "version": "0.1.0",
        "description": "Data and access-control core for the photo feed",
        "identity_header": config.IDENTITY_HEADER,
        "endpoints": {
            "health": "/health",
            "health_deps": "/health/deps",
            "profiles": "/profiles",
            "posts": "/posts",
            "stories": "/stories",
            "follows": "/follows",
            "saves": "/saves",
            "messages": "/messages",
            "storage_authorize": "/storage/authorize",
        },
    }
