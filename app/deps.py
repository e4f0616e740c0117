"""
Dependency helpers for the standalone FastAPI app.
"""

from __future__ import annotations

from fastapi import Depends, Request

import feedgate.config as config
from feedgate.context import ANONYMOUS_ACTOR, AuthContext, RequestContext


async def get_auth_context(request: Request) -> AuthContext:
    # The identity gateway in front of us has already verified the caller.
    identity = (request.headers.get(config.IDENTITY_HEADER) or "").strip()
    if identity:
        return AuthContext(user_id=identity, actor="user")
    return AuthContext(actor=ANONYMOUS_ACTOR)


async def get_request_context(
    request: Request,
    auth: AuthContext = Depends(get_auth_context),
) -> RequestContext:
    return RequestContext(
        auth=auth,
        request_id=request.headers.get(config.REQUEST_ID_HEADER),
        source="http",
    )
