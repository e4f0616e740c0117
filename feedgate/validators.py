"""
Shared validation helpers for FeedGate services.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Optional
from urllib.parse import urlparse

from feedgate.config import MAX_IDENTITY_LENGTH, MAX_URL_LENGTH, MAX_USERNAME_LENGTH
from feedgate.errors import ValidationIssue

_USERNAME_RE = re.compile(r"^[A-Za-z0-9._]+$")


def validate_required_text(value: str, field: str, max_len: int) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValidationIssue(f"{field} must be a non-empty string", field=field, error_type="required")
    if len(value) > max_len:
        raise ValidationIssue(f"{field} exceeds max length {max_len}", field=field, error_type="max_length")


def validate_optional_text(value: Optional[str], field: str, max_len: int) -> None:
    if value is None:
        return
    if not isinstance(value, str):
        raise ValidationIssue(f"{field} must be a string", field=field, error_type="invalid_type")
    if len(value) > max_len:
        raise ValidationIssue(f"{field} exceeds max length {max_len}", field=field, error_type="max_length")


def validate_limit(value: int, field: str, max_value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationIssue(f"{field} must be an integer", field=field, error_type="invalid_type")
    if value <= 0 or value > max_value:
        raise ValidationIssue(f"{field} must be between 1 and {max_value}", field=field, error_type="out_of_range")


def validate_username(value: str) -> None:
    validate_required_text(value, "username", MAX_USERNAME_LENGTH)
    if not _USERNAME_RE.match(value):
        raise ValidationIssue(
            "username may contain only letters, digits, '.' and '_'",
            field="username",
            error_type="invalid_format",
        )


def validate_url(value: Optional[str], field: str, required: bool = False) -> None:
    if value is None:
        if required:
            raise ValidationIssue(f"{field} is required", field=field, error_type="required")
        return
    if required:
        validate_required_text(value, field, MAX_URL_LENGTH)
    else:
        validate_optional_text(value, field, MAX_URL_LENGTH)
        if not value:
            return
    parsed = urlparse(value)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValidationIssue(f"{field} must be an http(s) URL", field=field, error_type="invalid_format")


def validate_identifier(value, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationIssue(f"{field} must be a non-empty string", field=field, error_type="required")
    if len(value) > MAX_IDENTITY_LENGTH:
        raise ValidationIssue(f"{field} exceeds max length {MAX_IDENTITY_LENGTH}", field=field, error_type="max_length")
    return value.strip()


def validate_future_datetime(value: Optional[datetime], field: str, now: datetime) -> None:
    if value is None:
        return
    if not isinstance(value, datetime):
        raise ValidationIssue(f"{field} must be a datetime", field=field, error_type="invalid_type")
    if value.tzinfo is None:
        raise ValidationIssue(f"{field} must be timezone-aware", field=field, error_type="invalid_type")
    if value <= now:
        raise ValidationIssue(f"{field} must be in the future", field=field, error_type="out_of_range")
