"""
Denormalized counter maintenance.

``record_edge_created`` and ``record_edge_removed`` are the only writers of
the aggregate columns on ``posts`` and ``profiles``. Every service that
inserts or deletes a counted row calls one of them inside the same session
before committing, so the counter change and the row change commit or roll
back together.

Counters move through a single ``UPDATE ... SET col = col + :delta``
statement. The database serializes concurrent updates to the same row, so no
value is ever read into Python and written back.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import func, update

from feedgate.context import RequestContext
from feedgate.db import DB
from feedgate.errors import InvariantViolation
from feedgate.models import Comment, Follow, Like, Post, Profile
from feedgate.services.shared import (
    _get_or_404,
    _validate_identifier,
    logger,
    service_tool,
)


@dataclass(frozen=True)
class CounterRef:
    model: type
    column: str
    edge_field: str


EDGE_COUNTERS: dict[type, tuple[CounterRef, ...]] = {
    Like: (CounterRef(Post, "likes_count", "post_id"),),
    Comment: (CounterRef(Post, "comments_count", "post_id"),),
    Follow: (
        CounterRef(Profile, "followers_count", "following_id"),
        CounterRef(Profile, "following_count", "follower_id"),
    ),
    Post: (CounterRef(Profile, "posts_count", "user_id"),),
}


def _apply_delta(db, edge, delta: int) -> int:
    refs = EDGE_COUNTERS.get(type(edge))
    if refs is None:
        raise ValueError(f"{type(edge).__name__} rows do not drive any counter")
    applied = 0
    for ref in refs:
        target_id = getattr(edge, ref.edge_field)
        column = getattr(ref.model, ref.column)
        stmt = (
            update(ref.model)
            .where(ref.model.id == target_id)
            .values({ref.column: column + delta})
            .execution_options(synchronize_session=False)
        )
        result = db.execute(stmt)
        if result.rowcount == 0:
            # Parent already gone (cascade in flight); nothing left to keep in sync.
            logger.debug(
                "counter_target_missing",
                extra={"table": ref.model.__tablename__, "column": ref.column, "target_id": target_id},
            )
            continue
        applied += 1
    return applied


def record_edge_created(db, edge) -> int:
    """Increment every counter driven by ``edge``. Returns the number of rows touched."""
    db.flush()
    return _apply_delta(db, edge, 1)


def record_edge_removed(db, edge) -> int:
    """Decrement every counter driven by ``edge``. Returns the number of rows touched."""
    return _apply_delta(db, edge, -1)


# =============================================================================
# Invariant checks
# =============================================================================

def _count(db, column, value) -> int:
    return int(db.query(func.count(column)).filter(column == value).scalar() or 0)


def check_post_counters(db, post_id: str) -> Optional[dict]:
    """Recount a post's likes and comments; raise ``InvariantViolation`` on drift."""
    post = db.get(Post, post_id)
    if post is None:
        return None
    db.refresh(post)
    actual_likes = _count(db, Like.post_id, post_id)
    actual_comments = _count(db, Comment.post_id, post_id)
    report = {
        "post_id": post_id,
        "likes_count": post.likes_count,
        "likes_actual": actual_likes,
        "comments_count": post.comments_count,
        "comments_actual": actual_comments,
    }
    if post.likes_count != actual_likes or post.comments_count != actual_comments:
        logger.error("counter_drift", extra=report)
        raise InvariantViolation(f"Counter drift on post {post_id}: {report}")
    return report


def check_profile_counters(db, profile_id: str) -> Optional[dict]:
    """Recount a profile's posts and follow edges; raise ``InvariantViolation`` on drift."""
    profile = db.get(Profile, profile_id)
    if profile is None:
        return None
    db.refresh(profile)
    report = {
        "profile_id": profile_id,
        "posts_count": profile.posts_count,
        "posts_actual": _count(db, Post.user_id, profile_id),
        "followers_count": profile.followers_count,
        "followers_actual": _count(db, Follow.following_id, profile_id),
        "following_count": profile.following_count,
        "following_actual": _count(db, Follow.follower_id, profile_id),
    }
    drifted = [
        name for name in ("posts", "followers", "following")
        if report[f"{name}_count"] != report[f"{name}_actual"]
    ]
    if drifted:
        logger.error("counter_drift", extra=report)
        raise InvariantViolation(f"Counter drift on profile {profile_id}: {', '.join(drifted)}")
    return report


def check_no_orphaned_edges(db) -> None:
    """Raise ``InvariantViolation`` if any like or comment outlived its post."""
    for model in (Like, Comment):
        orphans = (
            db.query(func.count(model.id))
            .select_from(model)
            .outerjoin(Post, model.post_id == Post.id)
            .filter(Post.id.is_(None))
            .scalar()
        )
        if orphans:
            raise InvariantViolation(f"{orphans} orphaned {model.__tablename__} rows")


@service_tool
def counter_report(
    post_id: str,
    context: Optional[RequestContext] = None,
) -> dict:
    """Verify a post's counters against its edge rows."""
    post_id = _validate_identifier(post_id, "post_id")
    db = DB.SessionLocal()
    try:
        post = _get_or_404(db, Post, post_id, "post")
        report = check_post_counters(db, post.id)
        owner_report = check_profile_counters(db, post.user_id)
        return {
            "status": "ok",
            "post": report,
            "owner": owner_report,
        }
    finally:
        db.close()
