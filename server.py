"""
FeedGate - data and access-control core for the photo feed.
Runs the FastAPI app with uvicorn.
"""

import os

import uvicorn

from app.main import app


if __name__ == "__main__":
    print("FeedGate starting...")
    uvicorn.run(
        app,
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "8080")),
    )
