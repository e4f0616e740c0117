"""
Audit trail for destructive operations.

Events are added to the caller's session so they commit or roll back with
the delete they describe. Metadata carries ids and counts only: user-authored
text such as captions, comments and messages never lands in the trail.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import and_, or_

from feedgate.audit_constants import EVENT_TARGETS
from feedgate.errors import ValidationIssue
from feedgate.models import AuditEvent, as_utc, utcnow

ACTOR_TYPES = ("user", "system")

# Column names that hold user-authored content anywhere in the schema.
CONTENT_FIELDS = frozenset(
    {"content", "caption", "bio", "full_name", "website", "image_url", "avatar_url"}
)
MAX_METADATA_DEPTH = 2
MAX_METADATA_STRING_LENGTH = 255


def _check_metadata(metadata: dict, depth: int = 1) -> None:
    if depth > MAX_METADATA_DEPTH:
        raise ValidationIssue("metadata is nested too deeply", field="metadata")
    for key, value in metadata.items():
        if not isinstance(key, str) or not key:
            raise ValidationIssue("metadata keys must be non-empty strings", field="metadata")
        if key.lower().replace("-", "_") in CONTENT_FIELDS:
            raise ValidationIssue(f"metadata key '{key}' would record content", field="metadata")
        if isinstance(value, dict):
            _check_metadata(value, depth + 1)
        elif isinstance(value, str):
            if len(value) > MAX_METADATA_STRING_LENGTH:
                raise ValidationIssue(f"metadata value for '{key}' is too long", field="metadata")
        elif value is not None and not isinstance(value, (int, float)):
            raise ValidationIssue(
                f"metadata value for '{key}' must be an id, a number or a mapping",
                field="metadata",
                error_type="invalid_type",
            )


def log_event(
    db,
    *,
    event_type: str,
    actor_type: str,
    actor_id: Optional[str] = None,
    target_type: str,
    target_ids: list[str],
    count_affected: Optional[int] = None,
    reason: Optional[str] = None,
    request_id: Optional[str] = None,
    metadata: Optional[dict] = None,
) -> AuditEvent:
    """Stage an audit event on ``db``; nothing is written until the caller commits."""
    expected_target = EVENT_TARGETS.get(event_type)
    if expected_target is None:
        raise ValidationIssue(f"unknown audit event: {event_type!r}", field="event_type")
    if target_type != expected_target:
        raise ValidationIssue(
            f"{event_type} targets {expected_target}, not {target_type!r}",
            field="target_type",
        )
    if actor_type not in ACTOR_TYPES:
        raise ValidationIssue(f"unknown actor type: {actor_type!r}", field="actor_type")
    if actor_type == "user" and not actor_id:
        raise ValidationIssue("user events need an actor_id", field="actor_id", error_type="required")
    if not target_ids or not all(isinstance(item, str) and item for item in target_ids):
        raise ValidationIssue("target_ids must be a non-empty list of ids", field="target_ids")
    if metadata is not None:
        if not isinstance(metadata, dict):
            raise ValidationIssue("metadata must be a mapping", field="metadata", error_type="invalid_type")
        _check_metadata(metadata)

    event = AuditEvent(
        created_at=utcnow(),
        event_type=event_type,
        actor_type=actor_type,
        actor_id=actor_id,
        target_type=target_type,
        target_ids=list(target_ids),
        count_affected=count_affected,
        reason=reason,
        request_id=request_id,
        metadata_=metadata,
    )
    db.add(event)
    return event


def recent_events(
    db,
    *,
    limit: int,
    event_type: Optional[str] = None,
    actor_id: Optional[str] = None,
    since: Optional[datetime] = None,
    until: Optional[datetime] = None,
    after_event_id: Optional[str] = None,
) -> list[AuditEvent]:
    """
    Newest-first page of audit events.

    ``after_event_id`` continues from the last event of a previous page.
    Raises ``ValidationIssue`` when that event does not exist.
    """
    query = db.query(AuditEvent)
    if event_type:
        query = query.filter(AuditEvent.event_type == event_type)
    if actor_id:
        query = query.filter(AuditEvent.actor_id == actor_id)
    # Stored timestamps are naive UTC on SQLite
    if since is not None:
        query = query.filter(AuditEvent.created_at >= as_utc(since))
    if until is not None:
        query = query.filter(AuditEvent.created_at <= as_utc(until))
    if after_event_id:
        anchor = db.get(AuditEvent, after_event_id)
        if anchor is None:
            raise ValidationIssue("cursor does not match an audit event", field="cursor")
        query = query.filter(
            or_(
                AuditEvent.created_at < anchor.created_at,
                and_(AuditEvent.created_at == anchor.created_at, AuditEvent.event_id < anchor.event_id),
            )
        )
    return (
        query.order_by(AuditEvent.created_at.desc(), AuditEvent.event_id.desc())
        .limit(limit)
        .all()
    )


__all__ = [
    "ACTOR_TYPES",
    "CONTENT_FIELDS",
    "log_event",
    "recent_events",
]
