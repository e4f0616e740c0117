"""Create profiles, posts, stories and their edge tables.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    bind = op.get_bind()
    is_postgres = bind.dialect.name == "postgresql"
    uuid_type = postgresql.UUID(as_uuid=False) if is_postgres else sa.String(length=36)
    identity_type = sa.String(length=255)

    op.create_table(
        "profiles",
        sa.Column("id", identity_type, primary_key=True),
        sa.Column("username", sa.String(length=100), nullable=False),
        sa.Column("full_name", sa.String(length=255)),
        sa.Column("avatar_url", sa.String(length=1000)),
        sa.Column("bio", sa.Text()),
        sa.Column("website", sa.String(length=1000)),
        sa.Column("followers_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("following_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("posts_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("username"),
    )

    op.create_table(
        "posts",
        sa.Column("id", uuid_type, primary_key=True),
        sa.Column(
            "user_id",
            identity_type,
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("caption", sa.Text()),
        sa.Column("image_url", sa.String(length=1000), nullable=False),
        sa.Column("is_reel", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("likes_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("comments_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_posts_user_created", "posts", ["user_id", "created_at"])
    op.create_index("ix_posts_created_at", "posts", ["created_at"])

    op.create_table(
        "stories",
        sa.Column("id", uuid_type, primary_key=True),
        sa.Column(
            "user_id",
            identity_type,
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("image_url", sa.String(length=1000), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_stories_user_expires", "stories", ["user_id", "expires_at"])
    op.create_index("ix_stories_expires_at", "stories", ["expires_at"])

    op.create_table(
        "likes",
        sa.Column("id", uuid_type, primary_key=True),
        sa.Column(
            "user_id",
            identity_type,
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "post_id",
            uuid_type,
            sa.ForeignKey("posts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("user_id", "post_id", name="uq_likes_user_post"),
    )
    op.create_index("ix_likes_post_id", "likes", ["post_id"])

    op.create_table(
        "comments",
        sa.Column("id", uuid_type, primary_key=True),
        sa.Column(
            "user_id",
            identity_type,
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "post_id",
            uuid_type,
            sa.ForeignKey("posts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_comments_post_created", "comments", ["post_id", "created_at"])

    op.create_table(
        "saves",
        sa.Column("id", uuid_type, primary_key=True),
        sa.Column(
            "user_id",
            identity_type,
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "post_id",
            uuid_type,
            sa.ForeignKey("posts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("user_id", "post_id", name="uq_saves_user_post"),
    )

    op.create_table(
        "follows",
        sa.Column("id", uuid_type, primary_key=True),
        sa.Column(
            "follower_id",
            identity_type,
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "following_id",
            identity_type,
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("follower_id", "following_id", name="uq_follows_follower_following"),
    )
    op.create_index("ix_follows_following_id", "follows", ["following_id"])

    op.create_table(
        "messages",
        sa.Column("id", uuid_type, primary_key=True),
        sa.Column(
            "sender_id",
            identity_type,
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "receiver_id",
            identity_type,
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_messages_sender_created", "messages", ["sender_id", "created_at"])
    op.create_index("ix_messages_receiver_created", "messages", ["receiver_id", "created_at"])


def downgrade() -> None:
    op.drop_index("ix_messages_receiver_created", table_name="messages")
    op.drop_index("ix_messages_sender_created", table_name="messages")
    op.drop_table("messages")
    op.drop_index("ix_follows_following_id", table_name="follows")
    op.drop_table("follows")
    op.drop_table("saves")
    op.drop_index("ix_comments_post_created", table_name="comments")
    op.drop_table("comments")
    op.drop_index("ix_likes_post_id", table_name="likes")
    op.drop_table("likes")
    op.drop_index("ix_stories_expires_at", table_name="stories")
    op.drop_index("ix_stories_user_expires", table_name="stories")
    op.drop_table("stories")
    op.drop_index("ix_posts_created_at", table_name="posts")
    op.drop_index("ix_posts_user_created", table_name="posts")
    op.drop_table("posts")
    op.drop_table("profiles")
