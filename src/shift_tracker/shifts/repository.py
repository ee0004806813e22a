from __future__ import annotations

from datetime import datetime
from typing import Collection, Optional, Protocol, Sequence

from ..core.enums import ShiftStatus
from .model import Shift


class ShiftRepository(Protocol):
    def get_by_id(self, shift_id: int) -> Optional[Shift]:
        raise NotImplementedError

    def create(
        self,
        *,
        employee_id: int,
        company_id: int,
        planned_start_at: datetime,
        planned_end_at: datetime,
    ) -> int:
        raise NotImplementedError

    def update_status(
        self,
        *,
        shift_id: int,
        from_statuses: Collection[ShiftStatus],
        to_status: ShiftStatus,
        actual_start_at: Optional[datetime] = None,
        actual_end_at: Optional[datetime] = None,
    ) -> bool:
        """Conditional status write (``WHERE status IN from_statuses``).

        ``actual_*`` values of None leave the stored column untouched.
        Returns False when no row matched, i.e. another writer moved the shift first.
        """

        raise NotImplementedError

    def list_active_by_company(self, company_id: int) -> Sequence[Shift]:
        raise NotImplementedError

    def list_by_employee(self, employee_id: int, *, start: datetime, end: datetime) -> Sequence[Shift]:
        raise NotImplementedError

    def list_planned_between(self, company_id: int, *, start: datetime, end: datetime) -> Sequence[Shift]:
        raise NotImplementedError
