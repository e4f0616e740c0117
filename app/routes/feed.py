"""
HTTP surface over the feed services.

Every route delegates to a ``feedgate.services.feed`` operation and maps its
status payload onto an HTTP status code.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from feedgate.context import RequestContext
from feedgate.services import feed
from app.deps import get_request_context


router = APIRouter(tags=["feed"])

_STATUS_CODES = {
    "denied": status.HTTP_403_FORBIDDEN,
    "not_found": status.HTTP_404_NOT_FOUND,
    "conflict": status.HTTP_409_CONFLICT,
    "error": status.HTTP_422_UNPROCESSABLE_ENTITY,
}


def _respond(result: dict) -> dict:
    code = _STATUS_CODES.get(result.get("status"))
    if code is not None:
        raise HTTPException(status_code=code, detail=result)
    return result


# =============================================================================
# Request bodies
# =============================================================================

class ProfileCreate(BaseModel):
    username: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    website: Optional[str] = None


class ProfileUpdate(BaseModel):
    username: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    website: Optional[str] = None


class PostCreate(BaseModel):
    image_url: str
    caption: Optional[str] = None
    is_reel: bool = False


class PostUpdate(BaseModel):
    caption: Optional[str] = None
    image_url: Optional[str] = None
    is_reel: Optional[bool] = None


class StoryCreate(BaseModel):
    image_url: str
    expires_at: Optional[datetime] = None


class CommentBody(BaseModel):
    content: str


class FollowCreate(BaseModel):
    following_id: str


class MessageCreate(BaseModel):
    receiver_id: str
    content: str


# =============================================================================
# Profiles
# =============================================================================

@router.post("/profiles", status_code=status.HTTP_201_CREATED)
def create_profile(body: ProfileCreate, ctx: RequestContext = Depends(get_request_context)):
    return _respond(feed.create_profile(**body.model_dump(), context=ctx))


@router.patch("/profiles/me")
def update_my_profile(body: ProfileUpdate, ctx: RequestContext = Depends(get_request_context)):
    return _respond(feed.update_profile(**body.model_dump(), context=ctx))


@router.get("/profiles/{profile_id}")
def get_profile(profile_id: str, ctx: RequestContext = Depends(get_request_context)):
    return _respond(feed.get_profile(profile_id=profile_id, context=ctx))


@router.get("/profiles")
def find_profile(username: str, ctx: RequestContext = Depends(get_request_context)):
    return _respond(feed.get_profile(username=username, context=ctx))


@router.get("/profiles/{profile_id}/follows")
def list_follows(
    profile_id: str,
    direction: str = "followers",
    limit: int = Query(20, ge=1),
    ctx: RequestContext = Depends(get_request_context),
):
    return _respond(feed.list_follows(profile_id, direction=direction, limit=limit, context=ctx))


# =============================================================================
# Posts
# =============================================================================

@router.post("/posts", status_code=status.HTTP_201_CREATED)
def create_post(body: PostCreate, ctx: RequestContext = Depends(get_request_context)):
    return _respond(feed.create_post(**body.model_dump(), context=ctx))


@router.get("/posts")
def list_posts(
    user_id: Optional[str] = None,
    reels_only: bool = False,
    limit: int = Query(20, ge=1),
    ctx: RequestContext = Depends(get_request_context),
):
    return _respond(feed.list_posts(user_id=user_id, reels_only=reels_only, limit=limit, context=ctx))


@router.get("/posts/{post_id}")
def get_post(post_id: str, ctx: RequestContext = Depends(get_request_context)):
    return _respond(feed.get_post(post_id, context=ctx))


@router.patch("/posts/{post_id}")
def update_post(post_id: str, body: PostUpdate, ctx: RequestContext = Depends(get_request_context)):
    return _respond(feed.update_post(post_id, **body.model_dump(), context=ctx))


@router.delete("/posts/{post_id}")
def delete_post(post_id: str, ctx: RequestContext = Depends(get_request_context)):
    return _respond(feed.delete_post(post_id, context=ctx))


@router.get("/posts/{post_id}/counters")
def post_counters(post_id: str, ctx: RequestContext = Depends(get_request_context)):
    return _respond(feed.counter_report(post_id, context=ctx))


# =============================================================================
# Likes, comments and saves
# =============================================================================

@router.post("/posts/{post_id}/likes", status_code=status.HTTP_201_CREATED)
def create_like(post_id: str, ctx: RequestContext = Depends(get_request_context)):
    return _respond(feed.create_like(post_id, context=ctx))


@router.delete("/likes/{like_id}")
def delete_like(like_id: str, ctx: RequestContext = Depends(get_request_context)):
    return _respond(feed.delete_like(like_id, context=ctx))


@router.get("/posts/{post_id}/comments")
def list_comments(
    post_id: str,
    limit: int = Query(20, ge=1),
    ctx: RequestContext = Depends(get_request_context),
):
    return _respond(feed.list_comments(post_id, limit=limit, context=ctx))


@router.post("/posts/{post_id}/comments", status_code=status.HTTP_201_CREATED)
def create_comment(post_id: str, body: CommentBody, ctx: RequestContext = Depends(get_request_context)):
    return _respond(feed.create_comment(post_id, body.content, context=ctx))


@router.patch("/comments/{comment_id}")
def update_comment(comment_id: str, body: CommentBody, ctx: RequestContext = Depends(get_request_context)):
    return _respond(feed.update_comment(comment_id, body.content, context=ctx))


@router.delete("/comments/{comment_id}")
def delete_comment(comment_id: str, ctx: RequestContext = Depends(get_request_context)):
    return _respond(feed.delete_comment(comment_id, context=ctx))


@router.post("/posts/{post_id}/saves", status_code=status.HTTP_201_CREATED)
def create_save(post_id: str, ctx: RequestContext = Depends(get_request_context)):
    return _respond(feed.create_save(post_id, context=ctx))


@router.get("/saves")
def list_saves(limit: int = Query(20, ge=1), ctx: RequestContext = Depends(get_request_context)):
    return _respond(feed.list_saves(limit=limit, context=ctx))


@router.delete("/saves/{save_id}")
def delete_save(save_id: str, ctx: RequestContext = Depends(get_request_context)):
    return _respond(feed.delete_save(save_id, context=ctx))


# =============================================================================
# Stories
# =============================================================================

@router.post("/stories", status_code=status.HTTP_201_CREATED)
def create_story(body: StoryCreate, ctx: RequestContext = Depends(get_request_context)):
    return _respond(feed.create_story(body.image_url, expires_at=body.expires_at, context=ctx))


@router.get("/stories")
def list_stories(
    user_id: Optional[str] = None,
    include_expired: bool = False,
    limit: int = Query(20, ge=1),
    ctx: RequestContext = Depends(get_request_context),
):
    return _respond(
        feed.list_stories(user_id=user_id, include_expired=include_expired, limit=limit, context=ctx)
    )


@router.delete("/stories/{story_id}")
def delete_story(story_id: str, ctx: RequestContext = Depends(get_request_context)):
    return _respond(feed.delete_story(story_id, context=ctx))


# =============================================================================
# Follows
# =============================================================================

@router.post("/follows", status_code=status.HTTP_201_CREATED)
def create_follow(body: FollowCreate, ctx: RequestContext = Depends(get_request_context)):
    return _respond(feed.create_follow(body.following_id, context=ctx))


@router.delete("/follows/{follow_id}")
def delete_follow(follow_id: str, ctx: RequestContext = Depends(get_request_context)):
    return _respond(feed.delete_follow(follow_id, context=ctx))


# =============================================================================
# Messages
# =============================================================================

@router.post("/messages", status_code=status.HTTP_201_CREATED)
def create_message(body: MessageCreate, ctx: RequestContext = Depends(get_request_context)):
    return _respond(feed.create_message(body.receiver_id, body.content, context=ctx))


@router.get("/messages")
def list_messages(
    with_user_id: Optional[str] = None,
    limit: int = Query(20, ge=1),
    ctx: RequestContext = Depends(get_request_context),
):
    return _respond(feed.list_messages(with_user_id=with_user_id, limit=limit, context=ctx))


@router.get("/messages/{message_id}")
def get_message(message_id: str, ctx: RequestContext = Depends(get_request_context)):
    return _respond(feed.get_message(message_id, context=ctx))
