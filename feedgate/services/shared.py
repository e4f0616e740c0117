"""
Shared helpers and configuration for feed services.
"""

from __future__ import annotations

from functools import wraps
from typing import Optional, Callable

from sqlalchemy import delete

import feedgate.config as config
from feedgate.errors import NotFoundError, ServiceError, ValidationIssue
from feedgate.models import (
    AuditEvent,
    Comment,
    Follow,
    Like,
    Message,
    Post,
    Profile,
    Save,
    Story,
    as_utc,
)
from feedgate.validators import (
    validate_required_text as _validate_required_text,
    validate_optional_text as _validate_optional_text,
    validate_limit as _validate_limit,
    validate_username as _validate_username,
    validate_url as _validate_url,
    validate_identifier as _validate_identifier,
    validate_future_datetime as _validate_future_datetime,
)

# =============================================================================
# Configuration
# =============================================================================

logger = config.logger

MAX_RESULT_LIMIT = config.MAX_RESULT_LIMIT
DEFAULT_RESULT_LIMIT = config.DEFAULT_RESULT_LIMIT
MAX_FULL_NAME_LENGTH = config.MAX_FULL_NAME_LENGTH
MAX_BIO_LENGTH = config.MAX_BIO_LENGTH
MAX_CAPTION_LENGTH = config.MAX_CAPTION_LENGTH
MAX_COMMENT_LENGTH = config.MAX_COMMENT_LENGTH
MAX_MESSAGE_LENGTH = config.MAX_MESSAGE_LENGTH
STORY_TTL_SECONDS = config.STORY_TTL_SECONDS


# =============================================================================
# Error handling
# =============================================================================

def _tool_error_payload(tool_name: str, exc: ValidationIssue) -> dict:
    return {
        "status": "error",
        "error_type": "validation_error",
        "tool": tool_name,
        "field": exc.field,
        "message": str(exc),
    }


def _service_error_payload(tool_name: str, exc: ServiceError) -> dict:
    payload = {
        "status": exc.status,
        "error_type": exc.status,
        "tool": tool_name,
        "entity": exc.entity,
        "message": str(exc),
    }
    if exc.data:
        payload["detail"] = exc.data
    return payload


def _log_validation_issue(tool_name: str, exc: ValidationIssue, warn: bool = False) -> None:
    payload = {
        "tool": tool_name,
        "field": exc.field,
        "error_type": exc.error_type,
        "detail": str(exc),
    }
    if warn:
        logger.warning("tool_validation_error", extra=payload)
    else:
        logger.info("tool_validation_error", extra=payload)


def _log_service_error(tool_name: str, exc: ServiceError) -> None:
    logger.info(
        "tool_rejected",
        extra={
            "tool": tool_name,
            "status": exc.status,
            "entity": exc.entity,
            "detail": str(exc),
        },
    )


def _tool_error_handler(fn: Callable[..., dict]) -> Callable[..., dict]:
    @wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except ServiceError as exc:
            _log_service_error(fn.__name__, exc)
            return _service_error_payload(fn.__name__, exc)
        except ValidationIssue as exc:
            _log_validation_issue(fn.__name__, exc, warn=False)
            return _tool_error_payload(fn.__name__, exc)
        except ValueError as exc:
            issue = ValidationIssue(str(exc), field="unknown", error_type="value_error")
            _log_validation_issue(fn.__name__, issue, warn=True)
            return _tool_error_payload(fn.__name__, issue)
    return wrapper


def service_tool(fn: Callable[..., dict]) -> Callable[..., dict]:
    return _tool_error_handler(fn)


# =============================================================================
# Helper Functions
# =============================================================================

def _get_or_404(db, model, row_id, entity: str):
    if row_id is None:
        raise NotFoundError(f"{entity} not found", entity=entity)
    row = db.get(model, row_id)
    if row is None:
        raise NotFoundError(f"{entity} not found: {row_id}", entity=entity, data={"id": str(row_id)})
    return row


def _delete_by_id(db, model, row_id) -> bool:
    """Delete one row by primary key; False when another writer got there first."""
    result = db.execute(
        delete(model)
        .where(model.id == row_id)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def _iso(value) -> Optional[str]:
    value = as_utc(value)
    return value.isoformat() if value else None


def _serialize_profile(record: Profile) -> dict:
    return {
        "id": record.id,
        "username": record.username,
        "full_name": record.full_name,
        "avatar_url": record.avatar_url,
        "bio": record.bio,
        "website": record.website,
        "followers_count": record.followers_count,
        "following_count": record.following_count,
        "posts_count": record.posts_count,
        "created_at": _iso(record.created_at),
        "updated_at": _iso(record.updated_at),
    }


def _serialize_post(record: Post) -> dict:
    return {
        "id": record.id,
        "user_id": record.user_id,
        "caption": record.caption,
        "image_url": record.image_url,
        "is_reel": bool(record.is_reel),
        "likes_count": record.likes_count,
        "comments_count": record.comments_count,
        "created_at": _iso(record.created_at),
        "updated_at": _iso(record.updated_at),
    }


def _serialize_story(record: Story) -> dict:
    return {
        "id": record.id,
        "user_id": record.user_id,
        "image_url": record.image_url,
        "expires_at": _iso(record.expires_at),
        "created_at": _iso(record.created_at),
    }


def _serialize_like(record: Like) -> dict:
    return {
        "id": record.id,
        "user_id": record.user_id,
        "post_id": record.post_id,
        "created_at": _iso(record.created_at),
    }


def _serialize_comment(record: Comment) -> dict:
    return {
        "id": record.id,
        "user_id": record.user_id,
        "post_id": record.post_id,
        "content": record.content,
        "created_at": _iso(record.created_at),
    }


def _serialize_save(record: Save) -> dict:
    return {
        "id": record.id,
        "user_id": record.user_id,
        "post_id": record.post_id,
        "created_at": _iso(record.created_at),
    }


def _serialize_follow(record: Follow) -> dict:
    return {
        "id": record.id,
        "follower_id": record.follower_id,
        "following_id": record.following_id,
        "created_at": _iso(record.created_at),
    }


def _serialize_message(record: Message) -> dict:
    return {
        "id": record.id,
        "sender_id": record.sender_id,
        "receiver_id": record.receiver_id,
        "content": record.content,
        "created_at": _iso(record.created_at),
    }


def _serialize_audit_event(record: AuditEvent) -> dict:
    return {
        "event_id": str(record.event_id),
        "event_type": record.event_type,
        "event_version": record.event_version,
        "created_at": _iso(record.created_at),
        "actor_type": record.actor_type,
        "actor_id": record.actor_id,
        "target_type": record.target_type,
        "target_ids": record.target_ids,
        "count_affected": record.count_affected,
        "reason": record.reason,
        "request_id": record.request_id,
        "metadata": record.metadata_,
    }


__all__ = [
    "logger",
    "service_tool",
    "_get_or_404",
    "_delete_by_id",
    "_validate_required_text",
    "_validate_optional_text",
    "_validate_limit",
    "_validate_username",
    "_validate_url",
    "_validate_identifier",
    "_validate_future_datetime",
]
