from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..employees.model import Employee


@dataclass(frozen=True)
class EmployeeInvite:
    invite_id: int
    company_id: int
    code: str
    created_at: datetime
    full_name: Optional[str] = None
    position: Optional[str] = None
    expires_at: Optional[datetime] = None
    used_by_employee: Optional[int] = None
    used_at: Optional[datetime] = None

    @property
    def is_used(self) -> bool:
        return self.used_at is not None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now


@dataclass(frozen=True)
class InviteRedemption:
    invite: EmployeeInvite
    employee: Employee
    created_employee: bool
