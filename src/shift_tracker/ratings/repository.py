from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ..core.enums import RatingOrigin, RatingStatus
from .model import EmployeeRating


class RatingRepository(Protocol):
    def get(self, employee_id: int, *, period_start: date, period_end: date) -> Optional[EmployeeRating]:
        raise NotImplementedError

    def upsert(
        self,
        *,
        employee_id: int,
        company_id: int,
        period_start: date,
        period_end: date,
        rating: Decimal,
        status: RatingStatus,
        origin: RatingOrigin,
        manual_adjustment: Decimal,
        updated_at: datetime,
    ) -> None:
        """Insert or overwrite the row for (employee, period). Last write wins."""

        raise NotImplementedError

    def list_by_company(self, company_id: int, *, period_start: date, period_end: date) -> Sequence[EmployeeRating]:
        raise NotImplementedError
