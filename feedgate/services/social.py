"""
Follow graph services.

Self-follows are accepted: the schema has never forbidden them and no
product rule says otherwise.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.exc import IntegrityError

from feedgate.context import RequestContext, resolve_requester_id
from feedgate.db import DB
from feedgate.errors import ConflictError, NotFoundError, ValidationIssue
from feedgate.models import Follow, Profile, utcnow
from feedgate.policy import Operation, require, visible_rows
from feedgate.services.counters import record_edge_created, record_edge_removed
from feedgate.services.shared import (
    _delete_by_id,
    _get_or_404,
    _serialize_follow,
    _validate_identifier,
    _validate_limit,
    DEFAULT_RESULT_LIMIT,
    MAX_RESULT_LIMIT,
    service_tool,
)

FOLLOW_DIRECTIONS = {"followers", "following"}


@service_tool
def create_follow(
    following_id: str,
    context: Optional[RequestContext] = None,
) -> dict:
    """Follow another profile as the caller."""
    following_id = _validate_identifier(following_id, "following_id")

    requester_id = resolve_requester_id(context)
    follow = Follow(follower_id=requester_id, following_id=following_id, created_at=utcnow())
    require("follow", Operation.create, requester_id, follow)

    db = DB.SessionLocal()
    try:
        _get_or_404(db, Profile, requester_id, "profile")
        _get_or_404(db, Profile, following_id, "profile")
        existing = (
            db.query(Follow.id)
            .filter(Follow.follower_id == requester_id, Follow.following_id == following_id)
            .first()
        )
        if existing:
            raise ConflictError("Already following", entity="follow", data={"follow_id": existing[0]})
        try:
            db.add(follow)
            record_edge_created(db, follow)
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            if db.get(Profile, following_id) is None:
                raise NotFoundError(f"profile not found: {following_id}", entity="profile") from exc
            raise ConflictError("Already following", entity="follow") from exc
        db.refresh(follow)
        return {
            "status": "created",
            "follow": _serialize_follow(follow),
        }
    finally:
        db.close()


@service_tool
def delete_follow(
    follow_id: str,
    context: Optional[RequestContext] = None,
) -> dict:
    """Unfollow. Only the follower may remove the edge."""
    follow_id = _validate_identifier(follow_id, "follow_id")

    requester_id = resolve_requester_id(context)
    db = DB.SessionLocal()
    try:
        follow = _get_or_404(db, Follow, follow_id, "follow")
        require("follow", Operation.delete, requester_id, follow)
        if not _delete_by_id(db, Follow, follow.id):
            raise NotFoundError(f"follow not found: {follow_id}", entity="follow")
        record_edge_removed(db, follow)
        db.commit()
        return {
            "status": "deleted",
            "follow_id": follow_id,
        }
    finally:
        db.close()


@service_tool
def list_follows(
    profile_id: str,
    direction: str = "followers",
    limit: int = DEFAULT_RESULT_LIMIT,
    context: Optional[RequestContext] = None,
) -> dict:
    """
    List follow edges around a profile.

    Args:
        profile_id: Profile at the centre of the listing
        direction: "followers" (edges pointing at the profile) or "following"
        limit: Maximum results
    """
    profile_id = _validate_identifier(profile_id, "profile_id")
    if direction not in FOLLOW_DIRECTIONS:
        raise ValidationIssue(
            "direction must be 'followers' or 'following'",
            field="direction",
            error_type="invalid_value",
        )
    _validate_limit(limit, "limit", MAX_RESULT_LIMIT)

    requester_id = resolve_requester_id(context)
    db = DB.SessionLocal()
    try:
        _get_or_404(db, Profile, profile_id, "profile")
        column = Follow.following_id if direction == "followers" else Follow.follower_id
        rows = (
            db.query(Follow)
            .filter(column == profile_id)
            .order_by(Follow.created_at.desc(), Follow.id.desc())
            .limit(limit)
            .all()
        )
        follows = visible_rows("follow", requester_id, rows)
        return {
            "status": "ok",
            "direction": direction,
            "count": len(follows),
            "follows": [_serialize_follow(follow) for follow in follows],
        }
    finally:
        db.close()
