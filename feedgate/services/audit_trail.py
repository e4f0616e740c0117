"""
Audit trail reads for operators.

Only system callers may read the trail; end users never see it, not even for
their own deletes.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from feedgate.audit import recent_events
from feedgate.audit_constants import EVENT_TARGETS
from feedgate.context import RequestContext, is_system_context
from feedgate.db import DB
from feedgate.errors import AccessDenied, ValidationIssue
from feedgate.services.shared import (
    _serialize_audit_event,
    _validate_identifier,
    _validate_limit,
    DEFAULT_RESULT_LIMIT,
    MAX_RESULT_LIMIT,
    service_tool,
)


def _validate_window(since: Optional[datetime], until: Optional[datetime]) -> None:
    for field, value in (("since", since), ("until", until)):
        if value is not None and (not isinstance(value, datetime) or value.tzinfo is None):
            raise ValidationIssue(f"{field} must be a timezone-aware datetime", field=field, error_type="invalid_type")
    if since is not None and until is not None and since > until:
        raise ValidationIssue("since must not be after until", field="since", error_type="out_of_range")


@service_tool
def list_audit_events(
    event_type: Optional[str] = None,
    actor_id: Optional[str] = None,
    since: Optional[datetime] = None,
    until: Optional[datetime] = None,
    limit: int = DEFAULT_RESULT_LIMIT,
    cursor: Optional[str] = None,
    context: Optional[RequestContext] = None,
) -> dict:
    """
    Page through audit events, newest first.

    Args:
        event_type: Restrict to one event type
        actor_id: Restrict to events performed by one user
        since: Earliest ``created_at`` (inclusive)
        until: Latest ``created_at`` (inclusive)
        limit: Page size
        cursor: ``next_cursor`` from the previous page

    Returns:
        The events and a ``next_cursor`` that is None on the last page
    """
    if not is_system_context(context):
        raise AccessDenied("Audit trail requires a system context", entity="audit_event")
    _validate_limit(limit, "limit", MAX_RESULT_LIMIT)
    if event_type is not None and event_type not in EVENT_TARGETS:
        raise ValidationIssue(f"unknown audit event: {event_type!r}", field="event_type")
    if actor_id is not None:
        actor_id = _validate_identifier(actor_id, "actor_id")
    if cursor is not None:
        cursor = _validate_identifier(cursor, "cursor")
        try:
            uuid.UUID(cursor)
        except ValueError:
            raise ValidationIssue("cursor is not an audit event id", field="cursor")
    _validate_window(since, until)

    db = DB.SessionLocal()
    try:
        # One extra row tells us whether another page exists.
        rows = recent_events(
            db,
            limit=limit + 1,
            event_type=event_type,
            actor_id=actor_id,
            since=since,
            until=until,
            after_event_id=cursor,
        )
        page = rows[:limit]
        return {
            "status": "ok",
            "count": len(page),
            "events": [_serialize_audit_event(row) for row in page],
            "next_cursor": str(page[-1].event_id) if len(rows) > limit else None,
        }
    finally:
        db.close()
