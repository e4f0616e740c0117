"""
Profile services.

Provides functionality for managing user profiles:
- Create the caller's profile (once per identity, at first sign-in)
- Update the caller's profile
- Look up a profile by id or username
- Purge an account on behalf of the identity provider
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from feedgate.audit import log_event
from feedgate.audit_constants import EVENT_ACCOUNT_PURGED
from feedgate.context import RequestContext, is_system_context, resolve_requester_id
from feedgate.db import DB
from feedgate.errors import AccessDenied, ConflictError, NotFoundError, ValidationIssue
from feedgate.models import Comment, Follow, Like, Profile, utcnow
from feedgate.policy import Operation, require
from feedgate.services.counters import record_edge_removed
from feedgate.services.shared import (
    _delete_by_id,
    _get_or_404,
    _serialize_profile,
    _validate_identifier,
    _validate_optional_text,
    _validate_url,
    _validate_username,
    MAX_BIO_LENGTH,
    MAX_FULL_NAME_LENGTH,
    logger,
    service_tool,
)


def _username_taken(db, username: str, exclude_id: Optional[str] = None) -> bool:
    query = db.query(Profile.id).filter(Profile.username == username)
    if exclude_id:
        query = query.filter(Profile.id != exclude_id)
    return query.first() is not None


@service_tool
def create_profile(
    username: str,
    full_name: Optional[str] = None,
    avatar_url: Optional[str] = None,
    bio: Optional[str] = None,
    website: Optional[str] = None,
    context: Optional[RequestContext] = None,
) -> dict:
    """
    Create the profile row for the calling identity.

    Args:
        username: Unique handle
        full_name: Display name
        avatar_url: Public URL of the avatar object
        bio: Free-form profile text
        website: Personal link

    Returns:
        The created profile
    """
    _validate_username(username)
    _validate_optional_text(full_name, "full_name", MAX_FULL_NAME_LENGTH)
    _validate_optional_text(bio, "bio", MAX_BIO_LENGTH)
    _validate_url(avatar_url, "avatar_url")
    _validate_url(website, "website")

    requester_id = resolve_requester_id(context)
    now = utcnow()
    profile = Profile(
        id=requester_id,
        username=username,
        full_name=full_name,
        avatar_url=avatar_url,
        bio=bio,
        website=website,
        followers_count=0,
        following_count=0,
        posts_count=0,
        created_at=now,
        updated_at=now,
    )
    require("profile", Operation.create, requester_id, profile)

    db = DB.SessionLocal()
    try:
        if db.get(Profile, requester_id) is not None:
            raise ConflictError("Profile already exists for this identity", entity="profile")
        if _username_taken(db, username):
            raise ConflictError(f"Username already taken: {username}", entity="profile")
        db.add(profile)
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            raise ConflictError("Profile creation conflict", entity="profile") from exc
        db.refresh(profile)
        logger.info("profile_created", extra={"profile_id": profile.id})
        return {
            "status": "created",
            "profile": _serialize_profile(profile),
        }
    finally:
        db.close()


@service_tool
def update_profile(
    username: Optional[str] = None,
    full_name: Optional[str] = None,
    avatar_url: Optional[str] = None,
    bio: Optional[str] = None,
    website: Optional[str] = None,
    profile_id: Optional[str] = None,
    context: Optional[RequestContext] = None,
) -> dict:
    """Update profile fields. ``None`` leaves a field unchanged."""
    if username is not None:
        _validate_username(username)
    _validate_optional_text(full_name, "full_name", MAX_FULL_NAME_LENGTH)
    _validate_optional_text(bio, "bio", MAX_BIO_LENGTH)
    _validate_url(avatar_url, "avatar_url")
    _validate_url(website, "website")

    requester_id = resolve_requester_id(context)
    target_id = _validate_identifier(profile_id, "profile_id") if profile_id is not None else requester_id
    if not target_id:
        raise AccessDenied("Authentication required to update profile", entity="profile")

    db = DB.SessionLocal()
    try:
        profile = _get_or_404(db, Profile, target_id, "profile")
        require("profile", Operation.update, requester_id, profile)

        if username is not None and username != profile.username:
            if _username_taken(db, username, exclude_id=profile.id):
                raise ConflictError(f"Username already taken: {username}", entity="profile")
            profile.username = username
        if full_name is not None:
            profile.full_name = full_name
        if avatar_url is not None:
            profile.avatar_url = avatar_url or None
        if bio is not None:
            profile.bio = bio
        if website is not None:
            profile.website = website or None
        profile.updated_at = utcnow()
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            raise ConflictError("Profile update conflict", entity="profile") from exc
        db.refresh(profile)
        return {
            "status": "updated",
            "profile": _serialize_profile(profile),
        }
    finally:
        db.close()


@service_tool
def get_profile(
    profile_id: Optional[str] = None,
    username: Optional[str] = None,
    context: Optional[RequestContext] = None,
) -> dict:
    """Fetch a profile by id or by username."""
    if profile_id is None and username is None:
        raise ValidationIssue("profile_id or username is required", field="profile_id", error_type="required")

    requester_id = resolve_requester_id(context)
    db = DB.SessionLocal()
    try:
        if profile_id is not None:
            profile = _get_or_404(db, Profile, _validate_identifier(profile_id, "profile_id"), "profile")
        else:
            profile = db.query(Profile).filter(Profile.username == username).first()
            if profile is None:
                raise NotFoundError(f"profile not found: {username}", entity="profile")
        require("profile", Operation.read, requester_id, profile)
        return {
            "status": "ok",
            "profile": _serialize_profile(profile),
        }
    finally:
        db.close()


@service_tool
def purge_account(
    profile_id: str,
    reason: Optional[str] = None,
    context: Optional[RequestContext] = None,
) -> dict:
    """
    Remove an account and everything that depends on it.

    Called by the identity provider's account deletion flow, never by end
    users. Edges that feed counters on other people's rows are removed through
    the counter maintainer first; the profile delete then cascades the rest.
    """
    if not is_system_context(context):
        raise AccessDenied("Account purge requires a system context", entity="profile")
    profile_id = _validate_identifier(profile_id, "profile_id")

    db = DB.SessionLocal()
    try:
        profile = _get_or_404(db, Profile, profile_id, "profile")

        removed = {"likes": 0, "comments": 0, "follows": 0}
        for like in db.query(Like).filter(Like.user_id == profile.id).all():
            if _delete_by_id(db, Like, like.id):
                record_edge_removed(db, like)
                removed["likes"] += 1
        for comment in db.query(Comment).filter(Comment.user_id == profile.id).all():
            if _delete_by_id(db, Comment, comment.id):
                record_edge_removed(db, comment)
                removed["comments"] += 1
        follows = (
            db.query(Follow)
            .filter(or_(Follow.follower_id == profile.id, Follow.following_id == profile.id))
            .all()
        )
        for follow in follows:
            if _delete_by_id(db, Follow, follow.id):
                record_edge_removed(db, follow)
                removed["follows"] += 1

        if not _delete_by_id(db, Profile, profile.id):
            raise NotFoundError(f"profile not found: {profile_id}", entity="profile")

        log_event(
            db,
            event_type=EVENT_ACCOUNT_PURGED,
            actor_type="system",
            target_type="profile",
            target_ids=[profile_id],
            count_affected=sum(removed.values()) + 1,
            reason=reason,
            request_id=context.request_id if context else None,
            metadata={"removed": removed},
        )
        db.commit()
        logger.info("account_purged", extra={"profile_id": profile_id, **removed})
        return {
            "status": "deleted",
            "profile_id": profile_id,
            "removed": removed,
        }
    finally:
        db.close()
