"""
Engagement edge services: likes, comments and saves.

Likes and comments drive ``posts.likes_count`` / ``posts.comments_count``.
Each create or delete here runs the edge write and the counter update in the
same session and commits once, so either both land or neither does.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.exc import IntegrityError

from feedgate.audit import log_event
from feedgate.audit_constants import EVENT_COMMENT_DELETED
from feedgate.context import RequestContext, resolve_requester_id
from feedgate.db import DB
from feedgate.errors import ConflictError, NotFoundError
from feedgate.models import Comment, Like, Post, Profile, Save, utcnow
from feedgate.policy import Operation, require, visible_rows
from feedgate.services.counters import record_edge_created, record_edge_removed
from feedgate.services.shared import (
    _delete_by_id,
    _get_or_404,
    _serialize_comment,
    _serialize_like,
    _serialize_post,
    _serialize_save,
    _validate_identifier,
    _validate_limit,
    _validate_required_text,
    DEFAULT_RESULT_LIMIT,
    MAX_COMMENT_LENGTH,
    MAX_RESULT_LIMIT,
    logger,
    service_tool,
)


def _raise_edge_integrity_error(
    db,
    exc: IntegrityError,
    *,
    entity: str,
    user_id: str,
    post_id: str,
    message: Optional[str] = None,
) -> None:
    """Map a failed edge insert onto the parent that vanished, else a duplicate."""
    db.rollback()
    if db.get(Profile, user_id) is None:
        raise NotFoundError(f"profile not found: {user_id}", entity="profile") from exc
    if db.get(Post, post_id) is None:
        raise NotFoundError(f"post not found: {post_id}", entity="post") from exc
    if message is None:
        # No unique constraint on this edge, so the failure is not a duplicate.
        raise exc
    raise ConflictError(message, entity=entity) from exc


def _post_snapshot(db, post_id: str) -> Optional[dict]:
    post = db.get(Post, post_id)
    if post is None:
        return None
    db.refresh(post)
    return _serialize_post(post)


# =============================================================================
# Likes
# =============================================================================

@service_tool
def create_like(
    post_id: str,
    context: Optional[RequestContext] = None,
) -> dict:
    """Like a post as the caller. A second like on the same post is a conflict."""
    post_id = _validate_identifier(post_id, "post_id")

    requester_id = resolve_requester_id(context)
    like = Like(user_id=requester_id, post_id=post_id, created_at=utcnow())
    require("like", Operation.create, requester_id, like)

    db = DB.SessionLocal()
    try:
        _get_or_404(db, Profile, requester_id, "profile")
        _get_or_404(db, Post, post_id, "post")
        existing = (
            db.query(Like.id)
            .filter(Like.user_id == requester_id, Like.post_id == post_id)
            .first()
        )
        if existing:
            raise ConflictError("Post already liked", entity="like", data={"like_id": existing[0]})
        try:
            db.add(like)
            record_edge_created(db, like)
            db.commit()
        except IntegrityError as exc:
            _raise_edge_integrity_error(
                db, exc, entity="like", user_id=requester_id, post_id=post_id, message="Post already liked"
            )
        db.refresh(like)
        return {
            "status": "created",
            "like": _serialize_like(like),
            "post": _post_snapshot(db, post_id),
        }
    finally:
        db.close()


@service_tool
def delete_like(
    like_id: str,
    context: Optional[RequestContext] = None,
) -> dict:
    """Remove a like. Only the user who liked may unlike."""
    like_id = _validate_identifier(like_id, "like_id")

    requester_id = resolve_requester_id(context)
    db = DB.SessionLocal()
    try:
        like = _get_or_404(db, Like, like_id, "like")
        require("like", Operation.delete, requester_id, like)
        post_id = like.post_id
        if not _delete_by_id(db, Like, like.id):
            raise NotFoundError(f"like not found: {like_id}", entity="like")
        record_edge_removed(db, like)
        db.commit()
        return {
            "status": "deleted",
            "like_id": like_id,
            "post": _post_snapshot(db, post_id),
        }
    finally:
        db.close()


# =============================================================================
# Comments
# =============================================================================

@service_tool
def create_comment(
    post_id: str,
    content: str,
    context: Optional[RequestContext] = None,
) -> dict:
    """
    Comment on a post as the caller.

    Args:
        post_id: Post being commented on
        content: Comment text

    Returns:
        The created comment and the post's updated counters
    """
    post_id = _validate_identifier(post_id, "post_id")
    _validate_required_text(content, "content", MAX_COMMENT_LENGTH)

    requester_id = resolve_requester_id(context)
    comment = Comment(user_id=requester_id, post_id=post_id, content=content, created_at=utcnow())
    require("comment", Operation.create, requester_id, comment)

    db = DB.SessionLocal()
    try:
        _get_or_404(db, Profile, requester_id, "profile")
        _get_or_404(db, Post, post_id, "post")
        try:
            db.add(comment)
            record_edge_created(db, comment)
            db.commit()
        except IntegrityError as exc:
            _raise_edge_integrity_error(db, exc, entity="comment", user_id=requester_id, post_id=post_id)
        db.refresh(comment)
        return {
            "status": "created",
            "comment": _serialize_comment(comment),
            "post": _post_snapshot(db, post_id),
        }
    finally:
        db.close()


@service_tool
def update_comment(
    comment_id: str,
    content: str,
    context: Optional[RequestContext] = None,
) -> dict:
    comment_id = _validate_identifier(comment_id, "comment_id")
    _validate_required_text(content, "content", MAX_COMMENT_LENGTH)

    requester_id = resolve_requester_id(context)
    db = DB.SessionLocal()
    try:
        comment = _get_or_404(db, Comment, comment_id, "comment")
        require("comment", Operation.update, requester_id, comment)
        comment.content = content
        db.commit()
        db.refresh(comment)
        return {
            "status": "updated",
            "comment": _serialize_comment(comment),
        }
    finally:
        db.close()


@service_tool
def delete_comment(
    comment_id: str,
    context: Optional[RequestContext] = None,
) -> dict:
    comment_id = _validate_identifier(comment_id, "comment_id")

    requester_id = resolve_requester_id(context)
    db = DB.SessionLocal()
    try:
        comment = _get_or_404(db, Comment, comment_id, "comment")
        require("comment", Operation.delete, requester_id, comment)
        post_id = comment.post_id
        if not _delete_by_id(db, Comment, comment.id):
            raise NotFoundError(f"comment not found: {comment_id}", entity="comment")
        record_edge_removed(db, comment)
        log_event(
            db,
            event_type=EVENT_COMMENT_DELETED,
            actor_type="user",
            actor_id=requester_id,
            target_type="comment",
            target_ids=[comment_id],
            count_affected=1,
            request_id=context.request_id if context else None,
            metadata={"post_id": post_id},
        )
        db.commit()
        return {
            "status": "deleted",
            "comment_id": comment_id,
            "post": _post_snapshot(db, post_id),
        }
    finally:
        db.close()


@service_tool
def list_comments(
    post_id: str,
    limit: int = DEFAULT_RESULT_LIMIT,
    context: Optional[RequestContext] = None,
) -> dict:
    """List a post's comments oldest first."""
    post_id = _validate_identifier(post_id, "post_id")
    _validate_limit(limit, "limit", MAX_RESULT_LIMIT)

    requester_id = resolve_requester_id(context)
    db = DB.SessionLocal()
    try:
        _get_or_404(db, Post, post_id, "post")
        rows = (
            db.query(Comment)
            .filter(Comment.post_id == post_id)
            .order_by(Comment.created_at.asc(), Comment.id.asc())
            .limit(limit)
            .all()
        )
        comments = visible_rows("comment", requester_id, rows)
        return {
            "status": "ok",
            "count": len(comments),
            "comments": [_serialize_comment(comment) for comment in comments],
        }
    finally:
        db.close()


# =============================================================================
# Saves
# =============================================================================

@service_tool
def create_save(
    post_id: str,
    context: Optional[RequestContext] = None,
) -> dict:
    """Bookmark a post for the caller. Saves are private and drive no counter."""
    post_id = _validate_identifier(post_id, "post_id")

    requester_id = resolve_requester_id(context)
    save = Save(user_id=requester_id, post_id=post_id, created_at=utcnow())
    require("save", Operation.create, requester_id, save)

    db = DB.SessionLocal()
    try:
        _get_or_404(db, Profile, requester_id, "profile")
        _get_or_404(db, Post, post_id, "post")
        existing = (
            db.query(Save.id)
            .filter(Save.user_id == requester_id, Save.post_id == post_id)
            .first()
        )
        if existing:
            raise ConflictError("Post already saved", entity="save", data={"save_id": existing[0]})
        try:
            db.add(save)
            db.commit()
        except IntegrityError as exc:
            _raise_edge_integrity_error(
                db, exc, entity="save", user_id=requester_id, post_id=post_id, message="Post already saved"
            )
        db.refresh(save)
        return {
            "status": "created",
            "save": _serialize_save(save),
        }
    finally:
        db.close()


@service_tool
def delete_save(
    save_id: str,
    context: Optional[RequestContext] = None,
) -> dict:
    save_id = _validate_identifier(save_id, "save_id")

    requester_id = resolve_requester_id(context)
    db = DB.SessionLocal()
    try:
        save = _get_or_404(db, Save, save_id, "save")
        require("save", Operation.delete, requester_id, save)
        if not _delete_by_id(db, Save, save.id):
            raise NotFoundError(f"save not found: {save_id}", entity="save")
        db.commit()
        return {
            "status": "deleted",
            "save_id": save_id,
        }
    finally:
        db.close()


@service_tool
def list_saves(
    limit: int = DEFAULT_RESULT_LIMIT,
    context: Optional[RequestContext] = None,
) -> dict:
    """List the caller's saved posts, newest save first."""
    _validate_limit(limit, "limit", MAX_RESULT_LIMIT)

    requester_id = resolve_requester_id(context)
    db = DB.SessionLocal()
    try:
        if not requester_id:
            rows = []
        else:
            rows = (
                db.query(Save)
                .filter(Save.user_id == requester_id)
                .order_by(Save.created_at.desc(), Save.id.desc())
                .limit(limit)
                .all()
            )
        saves = visible_rows("save", requester_id, rows)
        logger.debug("saves_listed", extra={"user_id": requester_id, "count": len(saves)})
        return {
            "status": "ok",
            "count": len(saves),
            "saves": [
                {**_serialize_save(save), "post": _serialize_post(save.post)}
                for save in saves
            ],
        }
    finally:
        db.close()
