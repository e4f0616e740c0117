"""
FeedGate Database Models
PostgreSQL (SQLite for local development) schema
"""

from datetime import datetime, timezone
import uuid
from sqlalchemy import (
    Column, Integer, String, Text, Boolean,
    DateTime, ForeignKey, Index, UniqueConstraint, JSON
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import relationship, declarative_base

import feedgate.config as config

DB_BACKEND_EFFECTIVE = config.DB_BACKEND_EFFECTIVE

JSON_TYPE = JSONB if DB_BACKEND_EFFECTIVE == "postgres" else JSON
# Row ids are kept as strings on both backends so they compare directly with identities
UUID_TYPE = UUID(as_uuid=False) if DB_BACKEND_EFFECTIVE == "postgres" else String(36)
IDENTITY_TYPE = String(255)


def _uuid_default() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; everything stored is UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


Base = declarative_base()

# =============================================================================
# Profiles
# =============================================================================

class Profile(Base):
    __tablename__ = "profiles"

    id = Column(IDENTITY_TYPE, primary_key=True)  # identity provider subject
    username = Column(String(100), nullable=False, unique=True)
    full_name = Column(String(255))
    avatar_url = Column(String(1000))
    bio = Column(Text)
    website = Column(String(1000))

    # Derived; only the counter maintainer writes these
    followers_count = Column(Integer, default=0, nullable=False)
    following_count = Column(Integer, default=0, nullable=False)
    posts_count = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    # Relationships
    posts = relationship("Post", back_populates="owner", cascade="all, delete-orphan", passive_deletes=True)
    stories = relationship("Story", back_populates="owner", cascade="all, delete-orphan", passive_deletes=True)


# =============================================================================
# Posts
# =============================================================================

class Post(Base):
    __tablename__ = "posts"

    id = Column(UUID_TYPE, primary_key=True, default=_uuid_default)
    user_id = Column(IDENTITY_TYPE, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    caption = Column(Text)
    image_url = Column(String(1000), nullable=False)
    is_reel = Column(Boolean, default=False, nullable=False)

    # Derived; only the counter maintainer writes these
    likes_count = Column(Integer, default=0, nullable=False)
    comments_count = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    # Relationships
    owner = relationship("Profile", back_populates="posts")
    likes = relationship("Like", back_populates="post", cascade="all, delete-orphan", passive_deletes=True)
    comments = relationship("Comment", back_populates="post", cascade="all, delete-orphan", passive_deletes=True)
    saves = relationship("Save", back_populates="post", cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        Index("ix_posts_user_created", "user_id", "created_at"),
        Index("ix_posts_created_at", "created_at"),
    )


# =============================================================================
# Stories
# =============================================================================

class Story(Base):
    __tablename__ = "stories"

    id = Column(UUID_TYPE, primary_key=True, default=_uuid_default)
    user_id = Column(IDENTITY_TYPE, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    image_url = Column(String(1000), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)

    owner = relationship("Profile", back_populates="stories")

    __table_args__ = (
        Index("ix_stories_user_expires", "user_id", "expires_at"),
        Index("ix_stories_expires_at", "expires_at"),
    )


# =============================================================================
# Engagement edges
# =============================================================================

class Like(Base):
    __tablename__ = "likes"

    id = Column(UUID_TYPE, primary_key=True, default=_uuid_default)
    user_id = Column(IDENTITY_TYPE, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    post_id = Column(UUID_TYPE, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)

    post = relationship("Post", back_populates="likes")

    __table_args__ = (
        UniqueConstraint("user_id", "post_id", name="uq_likes_user_post"),
        Index("ix_likes_post_id", "post_id"),
    )


class Comment(Base):
    __tablename__ = "comments"

    id = Column(UUID_TYPE, primary_key=True, default=_uuid_default)
    user_id = Column(IDENTITY_TYPE, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    post_id = Column(UUID_TYPE, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)

    post = relationship("Post", back_populates="comments")

    __table_args__ = (
        Index("ix_comments_post_created", "post_id", "created_at"),
    )


class Save(Base):
    __tablename__ = "saves"

    id = Column(UUID_TYPE, primary_key=True, default=_uuid_default)
    user_id = Column(IDENTITY_TYPE, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    post_id = Column(UUID_TYPE, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)

    post = relationship("Post", back_populates="saves")

    __table_args__ = (
        UniqueConstraint("user_id", "post_id", name="uq_saves_user_post"),
    )


# =============================================================================
# Social graph
# =============================================================================

class Follow(Base):
    __tablename__ = "follows"

    id = Column(UUID_TYPE, primary_key=True, default=_uuid_default)
    follower_id = Column(IDENTITY_TYPE, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    following_id = Column(IDENTITY_TYPE, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("follower_id", "following_id", name="uq_follows_follower_following"),
        Index("ix_follows_following_id", "following_id"),
    )


# =============================================================================
# Direct messages
# =============================================================================

class Message(Base):
    __tablename__ = "messages"

    id = Column(UUID_TYPE, primary_key=True, default=_uuid_default)
    sender_id = Column(IDENTITY_TYPE, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    receiver_id = Column(IDENTITY_TYPE, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_messages_sender_created", "sender_id", "created_at"),
        Index("ix_messages_receiver_created", "receiver_id", "created_at"),
    )


# =============================================================================
# Audit Events
# =============================================================================

class AuditEvent(Base):
    __tablename__ = "audit_events"

    event_id = Column(UUID_TYPE, primary_key=True, default=_uuid_default)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    event_type = Column(String(100), nullable=False)
    event_version = Column(Integer, default=1, nullable=False)
    actor_type = Column(String(50), nullable=False)
    actor_id = Column(String(255))
    target_type = Column(String(50), nullable=False)
    target_ids = Column(JSON_TYPE, nullable=False)
    count_affected = Column(Integer)
    reason = Column(Text)
    request_id = Column(String(255))
    metadata_ = Column("metadata", JSON_TYPE)

    __table_args__ = (
        Index("ix_audit_events_created_at", "created_at"),
        Index("ix_audit_events_event_type", "event_type"),
        Index("ix_audit_events_actor_id", "actor_id"),
    )


ENTITY_MODELS = {
    "profile": Profile,
    "post": Post,
    "story": Story,
    "like": Like,
    "comment": Comment,
    "follow": Follow,
    "save": Save,
    "message": Message,
}
