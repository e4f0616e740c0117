"""
Direct message services.

Messages are immutable once sent and are visible only to their sender and
receiver.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import and_, or_

from feedgate.context import RequestContext, resolve_requester_id
from feedgate.db import DB
from feedgate.models import Message, Profile, utcnow
from feedgate.policy import Operation, require, visible_rows
from feedgate.services.shared import (
    _get_or_404,
    _serialize_message,
    _validate_identifier,
    _validate_limit,
    _validate_required_text,
    DEFAULT_RESULT_LIMIT,
    MAX_MESSAGE_LENGTH,
    MAX_RESULT_LIMIT,
    service_tool,
)


@service_tool
def create_message(
    receiver_id: str,
    content: str,
    context: Optional[RequestContext] = None,
) -> dict:
    """Send a direct message from the caller to ``receiver_id``."""
    receiver_id = _validate_identifier(receiver_id, "receiver_id")
    _validate_required_text(content, "content", MAX_MESSAGE_LENGTH)

    requester_id = resolve_requester_id(context)
    message = Message(
        sender_id=requester_id,
        receiver_id=receiver_id,
        content=content,
        created_at=utcnow(),
    )
    require("message", Operation.create, requester_id, message)

    db = DB.SessionLocal()
    try:
        _get_or_404(db, Profile, requester_id, "profile")
        _get_or_404(db, Profile, receiver_id, "profile")
        db.add(message)
        db.commit()
        db.refresh(message)
        return {
            "status": "created",
            "message": _serialize_message(message),
        }
    finally:
        db.close()


@service_tool
def get_message(
    message_id: str,
    context: Optional[RequestContext] = None,
) -> dict:
    message_id = _validate_identifier(message_id, "message_id")
    requester_id = resolve_requester_id(context)
    db = DB.SessionLocal()
    try:
        message = _get_or_404(db, Message, message_id, "message")
        require("message", Operation.read, requester_id, message)
        return {
            "status": "ok",
            "message": _serialize_message(message),
        }
    finally:
        db.close()


@service_tool
def list_messages(
    with_user_id: Optional[str] = None,
    limit: int = DEFAULT_RESULT_LIMIT,
    context: Optional[RequestContext] = None,
) -> dict:
    """
    List messages the caller sent or received, newest first.

    Args:
        with_user_id: Restrict to the conversation with this profile
        limit: Maximum results

    Returns:
        Messages visible to the caller; unauthenticated callers see none
    """
    _validate_limit(limit, "limit", MAX_RESULT_LIMIT)
    if with_user_id is not None:
        with_user_id = _validate_identifier(with_user_id, "with_user_id")

    requester_id = resolve_requester_id(context)
    if not requester_id:
        return {"status": "ok", "count": 0, "messages": []}

    db = DB.SessionLocal()
    try:
        query = db.query(Message)
        if with_user_id:
            query = query.filter(
                or_(
                    and_(Message.sender_id == requester_id, Message.receiver_id == with_user_id),
                    and_(Message.sender_id == with_user_id, Message.receiver_id == requester_id),
                )
            )
        else:
            query = query.filter(
                or_(Message.sender_id == requester_id, Message.receiver_id == requester_id)
            )
        rows = query.order_by(Message.created_at.desc(), Message.id.desc()).limit(limit).all()
        messages = visible_rows("message", requester_id, rows)
        return {
            "status": "ok",
            "count": len(messages),
            "messages": [_serialize_message(message) for message in messages],
        }
    finally:
        db.close()
