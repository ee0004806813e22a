from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import ShiftStatus


@dataclass(frozen=True)
class Shift:
    """Thực thể miền (domain): Ca làm việc (Shift)."""

    shift_id: int
    employee_id: int
    company_id: int
    planned_start_at: datetime
    planned_end_at: datetime
    status: ShiftStatus = ShiftStatus.SCHEDULED
    actual_start_at: Optional[datetime] = None
    actual_end_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
