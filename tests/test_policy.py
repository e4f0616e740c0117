import os

import pytest

os.environ.setdefault("DB_BACKEND", "sqlite")

from feedgate.errors import AccessDenied
from feedgate.models import Message, Post
from feedgate.policy import (
    Decision,
    ENTITY_TYPES,
    Operation,
    POLICY_TABLE,
    authorize,
    is_exposed,
    require,
    visible_rows,
)


def test_entity_types_cover_all_tables():
    assert ENTITY_TYPES == {"profile", "post", "story", "like", "comment", "follow", "save", "message"}


@pytest.mark.parametrize(
    "entity_type, operation",
    [
        ("profile", Operation.delete),
        ("story", Operation.update),
        ("like", Operation.update),
        ("follow", Operation.update),
        ("save", Operation.update),
        ("message", Operation.update),
        ("message", Operation.delete),
    ],
)
def test_unexposed_operations_are_denied(entity_type, operation):
    assert not is_exposed(entity_type, operation)
    row = {"id": "u1", "user_id": "u1", "follower_id": "u1", "sender_id": "u1"}
    assert authorize(entity_type, operation, "u1", row) is Decision.deny


def test_public_reads_allow_anonymous():
    for entity_type in ("profile", "post", "story", "like", "comment", "follow"):
        assert authorize(entity_type, "read", None, {"user_id": "u1"}).allowed


def test_owner_checks_use_the_owner_field():
    post = Post(user_id="u1", image_url="https://cdn.example.com/a.jpg")
    assert authorize("post", Operation.update, "u1", post).allowed
    assert not authorize("post", Operation.update, "u2", post).allowed
    assert not authorize("post", Operation.delete, None, post).allowed

    assert authorize("follow", Operation.create, "u1", {"follower_id": "u1", "following_id": "u2"}).allowed
    assert not authorize("follow", Operation.create, "u2", {"follower_id": "u1", "following_id": "u2"}).allowed

    assert authorize("profile", Operation.update, "u1", {"id": "u1"}).allowed
    assert not authorize("profile", Operation.update, "u2", {"id": "u1"}).allowed


def test_saves_are_private():
    save = {"user_id": "u1", "post_id": "p1"}
    assert authorize("save", Operation.read, "u1", save).allowed
    assert not authorize("save", Operation.read, "u2", save).allowed
    assert not authorize("save", Operation.read, None, save).allowed


def test_message_read_requires_participation():
    message = Message(sender_id="a", receiver_id="b", content="hi")
    assert authorize("message", Operation.read, "a", message).allowed
    assert authorize("message", Operation.read, "b", message).allowed
    assert not authorize("message", Operation.read, "c", message).allowed
    assert not authorize("message", Operation.read, None, message).allowed
    assert authorize("message", Operation.create, "a", message).allowed
    assert not authorize("message", Operation.create, "b", message).allowed


def test_missing_row_is_denied():
    assert authorize("post", Operation.read, "u1", None) is Decision.deny


def test_unknown_operation_is_rejected():
    with pytest.raises(ValueError):
        authorize("post", "publish", "u1", {"user_id": "u1"})


def test_require_raises_typed_denial():
    with pytest.raises(AccessDenied) as excinfo:
        require("post", Operation.create, None, {"user_id": None})
    assert excinfo.value.status == "denied"
    assert excinfo.value.entity == "post"
    assert excinfo.value.data == {"operation": "create"}
    assert "Authentication required" in str(excinfo.value)

    with pytest.raises(AccessDenied):
        require("message", Operation.delete, "u1", {"sender_id": "u1"})


def test_visible_rows_filters_by_read_rule():
    rows = [
        {"sender_id": "a", "receiver_id": "b"},
        {"sender_id": "c", "receiver_id": "d"},
        {"sender_id": "d", "receiver_id": "a"},
    ]
    assert visible_rows("message", "a", rows) == [rows[0], rows[2]]
    assert visible_rows("message", None, rows) == []


def test_every_rule_is_callable():
    for rule in POLICY_TABLE.values():
        assert callable(rule)
