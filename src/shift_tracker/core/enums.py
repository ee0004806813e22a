from __future__ import annotations

from enum import Enum


class EmployeeStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    ON_LEAVE = "on_leave"


class ShiftStatus(str, Enum):
    """Trạng thái ca làm việc (state machine)."""

    SCHEDULED = "scheduled"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in {ShiftStatus.COMPLETED, ShiftStatus.CANCELLED}


class ShiftAction(str, Enum):
    START = "start"
    PAUSE = "pause"
    RESUME = "resume"
    END = "end"
    CANCEL = "cancel"


class BreakKind(str, Enum):
    LUNCH = "lunch"
    BREAK = "break"
    OTHER = "other"


class ViolationSource(str, Enum):
    MANUAL = "manual"
    AUTO = "auto"


class RatingStatus(str, Enum):
    """Standing band derived from the rating value."""

    ACTIVE = "active"
    WARNING = "warning"
    TERMINATED = "terminated"


class RatingOrigin(str, Enum):
    COMPUTED = "computed"
    MANUALLY_ADJUSTED = "manually_adjusted"


class ErrorCode(str, Enum):
    NOT_FOUND = "not_found"
    INVALID_STATE_TRANSITION = "invalid_state_transition"
    CONFLICT = "conflict"
    ALREADY_USED = "already_used"
    SCOPE_MISMATCH = "scope_mismatch"
    VALIDATION = "validation"
    RULE_INACTIVE = "rule_inactive"
