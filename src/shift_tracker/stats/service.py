from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from ..common.clock import Clock, SystemClock
from ..common.datetime_utils import month_period, period_bounds
from ..employees.repository import EmployeeRepository
from ..notifications.cache import CompanyStatsCache
from ..ratings.repository import RatingRepository
from ..shifts.repository import ShiftRepository
from ..violations.repository import ViolationRepository


@dataclass(frozen=True)
class CompanyStats:
    company_id: int
    employees: int
    active_shifts: int
    violations_this_month: int
    average_rating: Optional[Decimal]


class CompanyStatsService:
    """Dashboard aggregates, cached per company until a write invalidates them."""

    def __init__(
        self,
        employees: EmployeeRepository,
        shifts: ShiftRepository,
        violations: ViolationRepository,
        ratings: RatingRepository,
        cache: CompanyStatsCache,
        *,
        clock: Optional[Clock] = None,
    ):
        self._employees = employees
        self._shifts = shifts
        self._violations = violations
        self._ratings = ratings
        self._cache = cache
        self._clock = clock or SystemClock()

    def get_stats(self, company_id: int) -> CompanyStats:
        return self._cache.get_or_compute(int(company_id), lambda: self._compute(int(company_id)))

    def _compute(self, company_id: int) -> CompanyStats:
        period = month_period(self._clock.now().date())
        start, end = period_bounds(period.start, period.end)
        ratings = self._ratings.list_by_company(company_id, period_start=period.start, period_end=period.end)

        average = None
        if ratings:
            average = (sum((r.rating for r in ratings), Decimal("0")) / len(ratings)).quantize(Decimal("0.01"))

        return CompanyStats(
            company_id=company_id,
            employees=len(self._employees.list_by_company(company_id)),
            active_shifts=len(self._shifts.list_active_by_company(company_id)),
            violations_this_month=len(self._violations.list_by_company(company_id, start=start, end=end)),
            average_rating=average,
        )
