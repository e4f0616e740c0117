"""
Canonical audit event type strings and the entity each one targets.
"""

EVENT_POST_DELETED = "post.deleted"
EVENT_STORY_DELETED = "story.deleted"
EVENT_COMMENT_DELETED = "comment.deleted"
EVENT_ACCOUNT_PURGED = "account.purged"

EVENT_TARGETS = {
    EVENT_POST_DELETED: "post",
    EVENT_STORY_DELETED: "story",
    EVENT_COMMENT_DELETED: "comment",
    EVENT_ACCOUNT_PURGED: "profile",
}

__all__ = [
    "EVENT_POST_DELETED",
    "EVENT_STORY_DELETED",
    "EVENT_COMMENT_DELETED",
    "EVENT_ACCOUNT_PURGED",
    "EVENT_TARGETS",
]
