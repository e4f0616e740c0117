"""
Media location authorization for the blob store.

Objects are addressed by ``(bucket, object_key)``. The three media buckets are
public for reads; writes are scoped to the caller's own folder, i.e. the first
folder segment of the key must be the caller's identity id.
"""

from __future__ import annotations

import posixpath
import uuid
from typing import Optional

import feedgate.config as config
from feedgate.errors import AccessDenied, ValidationIssue
from feedgate.policy import Decision, Operation

AVATARS_BUCKET = "avatars"
POSTS_BUCKET = "posts"
STORIES_BUCKET = "stories"

PUBLIC_BUCKETS = frozenset({AVATARS_BUCKET, POSTS_BUCKET, STORIES_BUCKET})


def object_folders(object_key: str) -> list[str]:
    """Folder segments of a key, excluding the object name itself."""
    if not object_key:
        return []
    return object_key.split("/")[:-1]


def folder_owner(object_key: str) -> Optional[str]:
    folders = object_folders(object_key)
    if not folders:
        return None
    return folders[0]


def authorize_object(
    bucket: str,
    object_key: str,
    operation,
    requester_id: Optional[str],
) -> Decision:
    """Decide whether ``requester_id`` may perform ``operation`` on an object."""
    op = operation if isinstance(operation, Operation) else Operation(str(operation).strip().lower())
    if bucket not in PUBLIC_BUCKETS:
        return Decision.deny
    if op is Operation.read:
        return Decision.allow
    if not requester_id or not object_key:
        return Decision.deny
    if len(object_key) > config.MAX_OBJECT_KEY_LENGTH:
        return Decision.deny
    owner = folder_owner(object_key)
    if owner is None or owner != requester_id:
        return Decision.deny
    return Decision.allow


def require_object_access(
    bucket: str,
    object_key: str,
    operation,
    requester_id: Optional[str],
) -> None:
    decision = authorize_object(bucket, object_key, operation, requester_id)
    if not decision.allowed:
        op = operation.value if isinstance(operation, Operation) else str(operation)
        raise AccessDenied(
            f"Not allowed to {op} {bucket}/{object_key}",
            entity="storage_object",
            data={"bucket": bucket, "operation": op},
        )


def build_object_key(requester_id: str, filename: str) -> str:
    """Build a key inside the requester's folder, keeping the file extension."""
    if not requester_id:
        raise ValidationIssue("requester id is required", field="requester_id", error_type="required")
    base = posixpath.basename(filename or "")
    _, ext = posixpath.splitext(base)
    return f"{requester_id}/{uuid.uuid4().hex}{ext.lower()}"


__all__ = [
    "AVATARS_BUCKET",
    "POSTS_BUCKET",
    "STORIES_BUCKET",
    "PUBLIC_BUCKETS",
    "object_folders",
    "folder_owner",
    "authorize_object",
    "require_object_access",
    "build_object_key",
]
