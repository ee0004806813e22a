from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import ViolationSource


@dataclass(frozen=True)
class ViolationRule:
    """Company-scoped rule; deactivated instead of deleted."""

    rule_id: int
    company_id: int
    code: str
    name: str
    penalty_percent: Decimal
    auto_detectable: bool = False
    is_active: bool = True


@dataclass(frozen=True)
class Violation:
    """Append-only fact. ``penalty`` is the rule's penalty at creation time."""

    violation_id: int
    employee_id: int
    company_id: int
    rule_id: int
    source: ViolationSource
    penalty: Decimal
    created_at: datetime
    reason: Optional[str] = None
    created_by: Optional[int] = None
    shift_id: Optional[int] = None
