"""
Post services.
"""

from __future__ import annotations

from typing import Optional

from feedgate.audit import log_event
from feedgate.audit_constants import EVENT_POST_DELETED
from feedgate.context import RequestContext, resolve_requester_id
from feedgate.db import DB
from feedgate.errors import NotFoundError
from feedgate.models import Post, Profile, utcnow
from feedgate.policy import Operation, require, visible_rows
from feedgate.services.counters import record_edge_created, record_edge_removed
from feedgate.services.shared import (
    _delete_by_id,
    _get_or_404,
    _serialize_post,
    _validate_identifier,
    _validate_limit,
    _validate_optional_text,
    _validate_url,
    DEFAULT_RESULT_LIMIT,
    MAX_CAPTION_LENGTH,
    MAX_RESULT_LIMIT,
    logger,
    service_tool,
)


@service_tool
def create_post(
    image_url: str,
    caption: Optional[str] = None,
    is_reel: bool = False,
    context: Optional[RequestContext] = None,
) -> dict:
    """
    Publish a post owned by the caller.

    Args:
        image_url: Public URL of the uploaded media object
        caption: Optional caption text
        is_reel: True for short-form video posts

    Returns:
        The created post
    """
    _validate_url(image_url, "image_url", required=True)
    _validate_optional_text(caption, "caption", MAX_CAPTION_LENGTH)

    requester_id = resolve_requester_id(context)
    now = utcnow()
    post = Post(
        user_id=requester_id,
        caption=caption,
        image_url=image_url,
        is_reel=bool(is_reel),
        likes_count=0,
        comments_count=0,
        created_at=now,
        updated_at=now,
    )
    require("post", Operation.create, requester_id, post)

    db = DB.SessionLocal()
    try:
        _get_or_404(db, Profile, requester_id, "profile")
        db.add(post)
        record_edge_created(db, post)
        db.commit()
        db.refresh(post)
        logger.info("post_created", extra={"post_id": post.id, "user_id": requester_id})
        return {
            "status": "created",
            "post": _serialize_post(post),
        }
    finally:
        db.close()


@service_tool
def update_post(
    post_id: str,
    caption: Optional[str] = None,
    image_url: Optional[str] = None,
    is_reel: Optional[bool] = None,
    context: Optional[RequestContext] = None,
) -> dict:
    """Edit a post's caption, media or reel flag. Counters are not editable."""
    post_id = _validate_identifier(post_id, "post_id")
    _validate_optional_text(caption, "caption", MAX_CAPTION_LENGTH)
    if image_url is not None:
        _validate_url(image_url, "image_url", required=True)

    requester_id = resolve_requester_id(context)
    db = DB.SessionLocal()
    try:
        post = _get_or_404(db, Post, post_id, "post")
        require("post", Operation.update, requester_id, post)
        if caption is not None:
            post.caption = caption
        if image_url is not None:
            post.image_url = image_url
        if is_reel is not None:
            post.is_reel = bool(is_reel)
        post.updated_at = utcnow()
        db.commit()
        db.refresh(post)
        return {
            "status": "updated",
            "post": _serialize_post(post),
        }
    finally:
        db.close()


@service_tool
def delete_post(
    post_id: str,
    context: Optional[RequestContext] = None,
) -> dict:
    """Delete a post; its likes, comments and saves go with it."""
    post_id = _validate_identifier(post_id, "post_id")

    requester_id = resolve_requester_id(context)
    db = DB.SessionLocal()
    try:
        post = _get_or_404(db, Post, post_id, "post")
        require("post", Operation.delete, requester_id, post)
        if not _delete_by_id(db, Post, post.id):
            raise NotFoundError(f"post not found: {post_id}", entity="post")
        record_edge_removed(db, post)
        log_event(
            db,
            event_type=EVENT_POST_DELETED,
            actor_type="user",
            actor_id=requester_id,
            target_type="post",
            target_ids=[post_id],
            count_affected=1,
            request_id=context.request_id if context else None,
            metadata={"likes_count": post.likes_count, "comments_count": post.comments_count},
        )
        db.commit()
        logger.info("post_deleted", extra={"post_id": post_id, "user_id": requester_id})
        return {
            "status": "deleted",
            "post_id": post_id,
        }
    finally:
        db.close()


@service_tool
def get_post(
    post_id: str,
    context: Optional[RequestContext] = None,
) -> dict:
    post_id = _validate_identifier(post_id, "post_id")
    requester_id = resolve_requester_id(context)
    db = DB.SessionLocal()
    try:
        post = _get_or_404(db, Post, post_id, "post")
        require("post", Operation.read, requester_id, post)
        return {
            "status": "ok",
            "post": _serialize_post(post),
        }
    finally:
        db.close()


@service_tool
def list_posts(
    user_id: Optional[str] = None,
    reels_only: bool = False,
    limit: int = DEFAULT_RESULT_LIMIT,
    context: Optional[RequestContext] = None,
) -> dict:
    """List posts newest first, optionally for one author or reels only."""
    _validate_limit(limit, "limit", MAX_RESULT_LIMIT)
    if user_id is not None:
        user_id = _validate_identifier(user_id, "user_id")

    requester_id = resolve_requester_id(context)
    db = DB.SessionLocal()
    try:
        query = db.query(Post)
        if user_id:
            query = query.filter(Post.user_id == user_id)
        if reels_only:
            query = query.filter(Post.is_reel.is_(True))
        rows = query.order_by(Post.created_at.desc(), Post.id.desc()).limit(limit).all()
        posts = visible_rows("post", requester_id, rows)
        return {
            "status": "ok",
            "count": len(posts),
            "posts": [_serialize_post(post) for post in posts],
        }
    finally:
        db.close()
