from __future__ import annotations

from typing import Any, Optional

from .enums import ErrorCode


class DomainError(Exception):
    """Base exception for business rule violations.

    Every subclass carries a stable ``code`` so callers (and the HTTP layer)
    can branch on the kind of failure without matching message text.
    """

    code: ErrorCode = ErrorCode.VALIDATION

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""

    code = ErrorCode.NOT_FOUND

    def __init__(self, entity: str, entity_id: Any = None):
        message = f"{entity} not found" if entity_id is None else f"{entity} {entity_id!r} not found"
        super().__init__(message, entity=entity, entity_id=entity_id)
        self.entity = entity
        self.entity_id = entity_id


class InvalidStateTransitionError(DomainError):
    """Raised when a shift transition is attempted from the wrong state."""

    code = ErrorCode.INVALID_STATE_TRANSITION

    def __init__(self, action: str, current_status: str, shift_id: Optional[int] = None):
        super().__init__(
            f"Cannot {action} a shift that is {current_status}",
            action=action,
            current_status=current_status,
            shift_id=shift_id,
        )
        self.action = action
        self.current_status = current_status
        self.shift_id = shift_id


class ConflictError(DomainError):
    """Raised when a concurrent or duplicate write loses."""

    code = ErrorCode.CONFLICT


class AlreadyUsedError(ConflictError):
    code = ErrorCode.ALREADY_USED


class ScopeMismatchError(DomainError):
    """Raised on cross-tenant references."""

    code = ErrorCode.SCOPE_MISMATCH


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = ErrorCode.VALIDATION


class InviteExpiredError(ValidationError):
    pass


class RuleInactiveError(DomainError):
    code = ErrorCode.RULE_INACTIVE
