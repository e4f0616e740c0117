"""
Row-level authorization policy.

Every entity operation consults ``authorize`` (or ``require``) before touching
the store. The decision is a pure function of the entity type, the operation,
the requester identity and the row: the proposed row for ``create``, the
stored row for ``read``/``update``/``delete``.

The rules live in ``POLICY_TABLE`` keyed by ``(entity_type, Operation)``. An
operation with no entry is not exposed and is always denied.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Iterable, Optional

from feedgate.errors import AccessDenied


class Operation(str, Enum):
    read = "read"
    create = "create"
    update = "update"
    delete = "delete"


class Decision(str, Enum):
    allow = "allow"
    deny = "deny"

    @property
    def allowed(self) -> bool:
        return self is Decision.allow


Rule = Callable[[Optional[str], Any], bool]


def _allow_any(requester_id: Optional[str], row: Any) -> bool:
    return True


def _field_value(row: Any, field: str):
    if isinstance(row, dict):
        return row.get(field)
    return getattr(row, field, None)


def owned_by(field: str) -> Rule:
    """Allow iff ``row.<field>`` equals the requester identity."""

    def rule(requester_id: Optional[str], row: Any) -> bool:
        if not requester_id:
            return False
        value = _field_value(row, field)
        return value is not None and str(value) == requester_id

    rule.__name__ = f"owned_by_{field}"
    return rule


def participant_in(*fields: str) -> Rule:
    """Allow iff the requester identity appears in any of ``fields``."""

    def rule(requester_id: Optional[str], row: Any) -> bool:
        if not requester_id:
            return False
        for field in fields:
            value = _field_value(row, field)
            if value is not None and str(value) == requester_id:
                return True
        return False

    rule.__name__ = "participant_in_" + "_".join(fields)
    return rule


POLICY_TABLE: dict[tuple[str, Operation], Rule] = {
    # Profiles: public read, own profile write; deletion belongs to the identity provider
    ("profile", Operation.read): _allow_any,
    ("profile", Operation.create): owned_by("id"),
    ("profile", Operation.update): owned_by("id"),
    # Posts: public read, owner writes
    ("post", Operation.read): _allow_any,
    ("post", Operation.create): owned_by("user_id"),
    ("post", Operation.update): owned_by("user_id"),
    ("post", Operation.delete): owned_by("user_id"),
    # Stories: public read (expiry is filtered by the read path), owner create/delete
    ("story", Operation.read): _allow_any,
    ("story", Operation.create): owned_by("user_id"),
    ("story", Operation.delete): owned_by("user_id"),
    # Likes
    ("like", Operation.read): _allow_any,
    ("like", Operation.create): owned_by("user_id"),
    ("like", Operation.delete): owned_by("user_id"),
    # Comments
    ("comment", Operation.read): _allow_any,
    ("comment", Operation.create): owned_by("user_id"),
    ("comment", Operation.update): owned_by("user_id"),
    ("comment", Operation.delete): owned_by("user_id"),
    # Follows
    ("follow", Operation.read): _allow_any,
    ("follow", Operation.create): owned_by("follower_id"),
    ("follow", Operation.delete): owned_by("follower_id"),
    # Saves are private to their owner
    ("save", Operation.read): owned_by("user_id"),
    ("save", Operation.create): owned_by("user_id"),
    ("save", Operation.delete): owned_by("user_id"),
    # Messages: visible to both participants, sent only as yourself
    ("message", Operation.read): participant_in("sender_id", "receiver_id"),
    ("message", Operation.create): owned_by("sender_id"),
}

ENTITY_TYPES = frozenset(entity for entity, _ in POLICY_TABLE)


def _coerce_operation(operation) -> Operation:
    if isinstance(operation, Operation):
        return operation
    try:
        return Operation(str(operation).strip().lower())
    except ValueError as exc:
        raise ValueError(f"Unknown operation: {operation}") from exc


def authorize(
    entity_type: str,
    operation,
    requester_id: Optional[str],
    row: Any,
) -> Decision:
    """Decide whether ``requester_id`` may perform ``operation`` on ``row``."""
    op = _coerce_operation(operation)
    rule = POLICY_TABLE.get((entity_type, op))
    if rule is None:
        return Decision.deny
    if row is None:
        return Decision.deny
    return Decision.allow if rule(requester_id or None, row) else Decision.deny


def require(
    entity_type: str,
    operation,
    requester_id: Optional[str],
    row: Any,
) -> None:
    """Raise ``AccessDenied`` unless the operation is allowed."""
    op = _coerce_operation(operation)
    decision = authorize(entity_type, op, requester_id, row)
    if not decision.allowed:
        if (entity_type, op) not in POLICY_TABLE:
            message = f"{op.value} is not permitted on {entity_type}"
        elif not requester_id:
            message = f"Authentication required to {op.value} {entity_type}"
        else:
            message = f"Not allowed to {op.value} this {entity_type}"
        raise AccessDenied(message, entity=entity_type, data={"operation": op.value})


def visible_rows(entity_type: str, requester_id: Optional[str], rows: Iterable[Any]) -> list:
    """Keep only the rows the requester may read."""
    return [
        row for row in rows
        if authorize(entity_type, Operation.read, requester_id, row).allowed
    ]


def is_exposed(entity_type: str, operation) -> bool:
    return (entity_type, _coerce_operation(operation)) in POLICY_TABLE


__all__ = [
    "Operation",
    "Decision",
    "POLICY_TABLE",
    "ENTITY_TYPES",
    "authorize",
    "require",
    "visible_rows",
    "is_exposed",
    "owned_by",
    "participant_in",
]
