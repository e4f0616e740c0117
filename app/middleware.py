"""
Middleware configuration for the standalone FastAPI app.
"""

from __future__ import annotations

import time
import uuid

from fastapi import Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware

import feedgate.config as config


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Ensure every request carries a request id and echo it on the response."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(config.REQUEST_ID_HEADER)
        if not request_id:
            request_id = uuid.uuid4().hex
            # Downstream dependencies read the id from the headers
            request.scope["headers"] = [
                *request.scope["headers"],
                (config.REQUEST_ID_HEADER.lower().encode("latin-1"), request_id.encode("latin-1")),
            ]
        started = time.monotonic()
        response = await call_next(request)
        response.headers[config.REQUEST_ID_HEADER] = request_id
        config.logger.debug(
            "http_request",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round((time.monotonic() - started) * 1000, 2),
            },
        )
        return response


def configure_middleware(app) -> None:
    """Configure request ids, host allowlist and CORS for the FastAPI app."""
    app.add_middleware(RequestIdMiddleware)

    # Optional host allowlist for production deployments
    if config.TRUSTED_HOSTS:
        app.add_middleware(
            TrustedHostMiddleware,
            allowed_hosts=config.TRUSTED_HOSTS,
        )

    # CORS stays outermost so rejections still carry its headers
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=[config.IDENTITY_HEADER, config.REQUEST_ID_HEADER, "Content-Type"],
        expose_headers=[config.REQUEST_ID_HEADER],
    )
