"""
Request-scoped context objects for core services.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
import contextvars

SYSTEM_ACTOR = "system"
ANONYMOUS_ACTOR = "anonymous"


@dataclass(frozen=True)
class AuthContext:
    user_id: Optional[str] = None
    actor: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id)


@dataclass(frozen=True)
class RequestContext:
    auth: AuthContext
    request_id: Optional[str] = None
    source: Optional[str] = None


_CURRENT_REQUEST_CONTEXT: contextvars.ContextVar[Optional["RequestContext"]] = contextvars.ContextVar(
    "feedgate_request_context",
    default=None,
)


def get_current_request_context() -> Optional["RequestContext"]:
    return _CURRENT_REQUEST_CONTEXT.get()


def set_current_request_context(context: Optional["RequestContext"]) -> contextvars.Token:
    return _CURRENT_REQUEST_CONTEXT.set(context)


def reset_current_request_context(token: contextvars.Token) -> None:
    _CURRENT_REQUEST_CONTEXT.reset(token)


def for_identity(user_id: Optional[str], *, request_id: Optional[str] = None) -> RequestContext:
    """Build a context for an asserted identity (None means unauthenticated)."""
    if user_id:
        return RequestContext(auth=AuthContext(user_id=str(user_id), actor="user"), request_id=request_id)
    return RequestContext(auth=AuthContext(actor=ANONYMOUS_ACTOR), request_id=request_id)


def system_context(*, request_id: Optional[str] = None, source: Optional[str] = None) -> RequestContext:
    return RequestContext(auth=AuthContext(actor=SYSTEM_ACTOR), request_id=request_id, source=source)


def resolve_requester_id(context: Optional[RequestContext]) -> Optional[str]:
    """Return the caller identity, falling back to the ambient request context."""
    if context is None:
        context = get_current_request_context()
    if context is None or context.auth is None:
        return None
    if not context.auth.user_id:
        return None
    return str(context.auth.user_id)


def is_system_context(context: Optional[RequestContext]) -> bool:
    if context is None:
        context = get_current_request_context()
    return bool(context and context.auth and context.auth.actor == SYSTEM_ACTOR)


__all__ = [
    "AuthContext",
    "RequestContext",
    "SYSTEM_ACTOR",
    "ANONYMOUS_ACTOR",
    "get_current_request_context",
    "set_current_request_context",
    "reset_current_request_context",
    "for_identity",
    "system_context",
    "resolve_requester_id",
    "is_system_context",
]
