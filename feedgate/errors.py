"""
Shared error types for core services.
"""

from typing import Optional


class ValidationIssue(ValueError):
    def __init__(
        self,
        message: str,
        field: str = "unknown",
        error_type: str = "invalid",
        error_code: str | None = None,
        data: dict | None = None,
    ):
        super().__init__(message)
        self.field = field
        self.error_type = error_type
        self.error_code = error_code
        self.data = data


class ServiceError(Exception):
    """Deterministic rejection of an entity operation."""

    status = "error"

    def __init__(
        self,
        message: str,
        entity: Optional[str] = None,
        data: dict | None = None,
    ):
        super().__init__(message)
        self.entity = entity
        self.data = data


class AccessDenied(ServiceError):
    """Raised when the caller identity may not perform the operation."""

    status = "denied"


class ConflictError(ServiceError):
    """Raised when a uniqueness constraint would be violated."""

    status = "conflict"


class NotFoundError(ServiceError):
    """Raised when the target or a referenced parent row does not exist."""

    status = "not_found"


class InvariantViolation(AssertionError):
    """Counter drift or an orphaned edge. Indicates a bug, never user error."""
