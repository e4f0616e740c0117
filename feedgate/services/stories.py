"""
Story services.

Stories stay in the table after ``expires_at``; reads hide them unless the
caller explicitly asks for expired rows.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from feedgate.audit import log_event
from feedgate.audit_constants import EVENT_STORY_DELETED
from feedgate.context import RequestContext, resolve_requester_id
from feedgate.db import DB
from feedgate.errors import NotFoundError
from feedgate.models import Profile, Story, as_utc, utcnow
from feedgate.policy import Operation, require, visible_rows
from feedgate.services.shared import (
    _delete_by_id,
    _get_or_404,
    _serialize_story,
    _validate_future_datetime,
    _validate_identifier,
    _validate_limit,
    _validate_url,
    DEFAULT_RESULT_LIMIT,
    MAX_RESULT_LIMIT,
    STORY_TTL_SECONDS,
    service_tool,
)


def is_expired(story: Story, now: Optional[datetime] = None) -> bool:
    now = now or utcnow()
    return as_utc(story.expires_at) <= now


@service_tool
def create_story(
    image_url: str,
    expires_at: Optional[datetime] = None,
    context: Optional[RequestContext] = None,
) -> dict:
    """Publish a story; without ``expires_at`` it lives for the configured TTL."""
    _validate_url(image_url, "image_url", required=True)
    now = utcnow()
    _validate_future_datetime(expires_at, "expires_at", now)
    expires_at = as_utc(expires_at)

    requester_id = resolve_requester_id(context)
    story = Story(
        user_id=requester_id,
        image_url=image_url,
        expires_at=expires_at or now + timedelta(seconds=STORY_TTL_SECONDS),
        created_at=now,
    )
    require("story", Operation.create, requester_id, story)

    db = DB.SessionLocal()
    try:
        _get_or_404(db, Profile, requester_id, "profile")
        db.add(story)
        db.commit()
        db.refresh(story)
        return {
            "status": "created",
            "story": _serialize_story(story),
        }
    finally:
        db.close()


@service_tool
def delete_story(
    story_id: str,
    context: Optional[RequestContext] = None,
) -> dict:
    story_id = _validate_identifier(story_id, "story_id")
    requester_id = resolve_requester_id(context)
    db = DB.SessionLocal()
    try:
        story = _get_or_404(db, Story, story_id, "story")
        require("story", Operation.delete, requester_id, story)
        if not _delete_by_id(db, Story, story.id):
            raise NotFoundError(f"story not found: {story_id}", entity="story")
        log_event(
            db,
            event_type=EVENT_STORY_DELETED,
            actor_type="user",
            actor_id=requester_id,
            target_type="story",
            target_ids=[story_id],
            count_affected=1,
            request_id=context.request_id if context else None,
        )
        db.commit()
        return {
            "status": "deleted",
            "story_id": story_id,
        }
    finally:
        db.close()


@service_tool
def list_stories(
    user_id: Optional[str] = None,
    include_expired: bool = False,
    limit: int = DEFAULT_RESULT_LIMIT,
    context: Optional[RequestContext] = None,
) -> dict:
    """
    List stories newest first.

    Args:
        user_id: Restrict to one author
        include_expired: Also return stories past ``expires_at``
        limit: Maximum results
    """
    _validate_limit(limit, "limit", MAX_RESULT_LIMIT)
    if user_id is not None:
        user_id = _validate_identifier(user_id, "user_id")

    requester_id = resolve_requester_id(context)
    now = utcnow()
    db = DB.SessionLocal()
    try:
        query = db.query(Story)
        if user_id:
            query = query.filter(Story.user_id == user_id)
        if not include_expired:
            query = query.filter(Story.expires_at > now)
        rows = query.order_by(Story.created_at.desc(), Story.id.desc()).limit(limit).all()
        stories = visible_rows("story", requester_id, rows)
        return {
            "status": "ok",
            "count": len(stories),
            "stories": [
                {**_serialize_story(story), "expired": is_expired(story, now)}
                for story in stories
            ],
        }
    finally:
        db.close()
