"""
Facade over the feed services (single import point for API wiring and tests).
"""

from feedgate.services.audit_trail import list_audit_events
from feedgate.services.counters import counter_report
from feedgate.services.engagement import (
    create_comment,
    create_like,
    create_save,
    delete_comment,
    delete_like,
    delete_save,
    list_comments,
    list_saves,
    update_comment,
)
from feedgate.services.messages import create_message, get_message, list_messages
from feedgate.services.posts import create_post, delete_post, get_post, list_posts, update_post
from feedgate.services.profiles import create_profile, get_profile, purge_account, update_profile
from feedgate.services.social import create_follow, delete_follow, list_follows
from feedgate.services.stories import create_story, delete_story, list_stories

__all__ = [
    "create_profile",
    "update_profile",
    "get_profile",
    "purge_account",
    "create_post",
    "update_post",
    "delete_post",
    "get_post",
    "list_posts",
    "create_story",
    "delete_story",
    "list_stories",
    "create_like",
    "delete_like",
    "create_comment",
    "update_comment",
    "delete_comment",
    "list_comments",
    "create_follow",
    "delete_follow",
    "list_follows",
    "create_save",
    "delete_save",
    "list_saves",
    "create_message",
    "get_message",
    "list_messages",
    "counter_report",
    "list_audit_events",
]
