from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from ..common.clock import Clock, SystemClock
from ..common.datetime_utils import month_period, period_bounds
from ..common.validators import require_decimal
from ..core.constants import MAX_MANUAL_DELTA
from ..core.enums import RatingOrigin
from ..core.exceptions import NotFoundError, ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..violations.repository import ViolationRepository
from .calculator.base import RatingCalculator
from .calculator.standard_calculator import StandardRatingCalculator, clamp_rating
from .model import EmployeeRating
from .repository import RatingRepository

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class RatingEngine:
    """Derives per-period ratings from violation penalties.

    Stored rating = clamp(computed + manual_adjustment). A manual adjustment
    survives later recalculations until ``discard_adjustment=True`` drops it.
    """

    def __init__(
        self,
        ratings: RatingRepository,
        violations: ViolationRepository,
        employees: EmployeeRepository,
        *,
        clock: Optional[Clock] = None,
        calculator: Optional[RatingCalculator] = None,
    ):
        self._ratings = ratings
        self._violations = violations
        self._employees = employees
        self._clock = clock or SystemClock()
        self._calculator = calculator or StandardRatingCalculator()

    def recalculate(
        self,
        employee_id: int,
        *,
        period_start: Optional[date] = None,
        period_end: Optional[date] = None,
        discard_adjustment: bool = False,
    ) -> EmployeeRating:
        """Recompute one period (the current month when no period is given)."""

        employee = self._get_employee(employee_id)
        period_start, period_end = self._resolve_period(period_start, period_end)

        computed = self._compute(employee.employee_id, period_start, period_end)
        existing = self._ratings.get(employee.employee_id, period_start=period_start, period_end=period_end)

        if existing is None or discard_adjustment:
            adjustment, origin = ZERO, RatingOrigin.COMPUTED
        else:
            adjustment, origin = existing.manual_adjustment, existing.origin

        rating = clamp_rating(computed + adjustment)
        self._store(employee, period_start, period_end, rating=rating, origin=origin, adjustment=adjustment)
        logger.info(
            "Recalculated rating for employee %s [%s, %s): %s",
            employee.employee_id,
            period_start,
            period_end,
            rating,
        )
        return self._get_stored(employee.employee_id, period_start, period_end)

    def recalculate_current(self, employee_id: int) -> EmployeeRating:
        return self.recalculate(employee_id)

    def adjust_rating(
        self,
        employee_id: int,
        delta: object,
        *,
        period_start: Optional[date] = None,
        period_end: Optional[date] = None,
    ) -> EmployeeRating:
        delta = require_decimal(delta, "delta", minimum=-MAX_MANUAL_DELTA, maximum=MAX_MANUAL_DELTA)
        employee = self._get_employee(employee_id)
        period_start, period_end = self._resolve_period(period_start, period_end)

        computed = self._compute(employee.employee_id, period_start, period_end)
        existing = self._ratings.get(employee.employee_id, period_start=period_start, period_end=period_end)
        current = existing.rating if existing else computed

        new_rating = clamp_rating(current + delta)
        self._store(
            employee,
            period_start,
            period_end,
            rating=new_rating,
            origin=RatingOrigin.MANUALLY_ADJUSTED,
            adjustment=new_rating - computed,
        )
        logger.info(
            "Adjusted rating for employee %s [%s, %s) by %s: %s -> %s",
            employee.employee_id,
            period_start,
            period_end,
            delta,
            current,
            new_rating,
        )
        return self._get_stored(employee.employee_id, period_start, period_end)

    def get_current_period(self, employee_id: int) -> Optional[EmployeeRating]:
        period = month_period(self._clock.now().date())
        return self._ratings.get(int(employee_id), period_start=period.start, period_end=period.end)

    def get_for_period(self, employee_id: int, *, period_start: date, period_end: date) -> Optional[EmployeeRating]:
        _check_period(period_start, period_end)
        return self._ratings.get(int(employee_id), period_start=period_start, period_end=period_end)

    def recalculate_company(
        self,
        company_id: int,
        *,
        period_start: Optional[date] = None,
        period_end: Optional[date] = None,
    ) -> list[EmployeeRating]:
        period_start, period_end = self._resolve_period(period_start, period_end)
        results = []
        for employee in self._employees.list_by_company(int(company_id)):
            results.append(
                self.recalculate(employee.employee_id, period_start=period_start, period_end=period_end)
            )
        logger.info("Recalculated %d ratings for company %s", len(results), company_id)
        return results

    def list_company_ratings(
        self,
        company_id: int,
        *,
        period_start: Optional[date] = None,
        period_end: Optional[date] = None,
    ) -> Sequence[EmployeeRating]:
        period_start, period_end = self._resolve_period(period_start, period_end)
        return self._ratings.list_by_company(int(company_id), period_start=period_start, period_end=period_end)

    def _compute(self, employee_id: int, period_start: date, period_end: date) -> Decimal:
        start, end = period_bounds(period_start, period_end)
        violations = self._violations.list_by_employee(employee_id, start=start, end=end)
        return self._calculator.compute(v.penalty for v in violations)

    def _store(
        self,
        employee: Employee,
        period_start: date,
        period_end: date,
        *,
        rating: Decimal,
        origin: RatingOrigin,
        adjustment: Decimal,
    ) -> None:
        self._ratings.upsert(
            employee_id=employee.employee_id,
            company_id=employee.company_id,
            period_start=period_start,
            period_end=period_end,
            rating=rating,
            status=self._calculator.status_for(rating),
            origin=origin,
            manual_adjustment=adjustment,
            updated_at=self._clock.now(),
        )

    def _get_stored(self, employee_id: int, period_start: date, period_end: date) -> EmployeeRating:
        stored = self._ratings.get(employee_id, period_start=period_start, period_end=period_end)
        if not stored:
            raise NotFoundError("EmployeeRating", employee_id)
        return stored

    def _get_employee(self, employee_id: int) -> Employee:
        employee = self._employees.get_by_id(int(employee_id))
        if not employee:
            raise NotFoundError("Employee", employee_id)
        return employee

    def _resolve_period(self, period_start: Optional[date], period_end: Optional[date]) -> tuple[date, date]:
        if period_start is None and period_end is None:
            period = month_period(self._clock.now().date())
            return period.start, period.end
        if period_start is None or period_end is None:
            raise ValidationError("period_start and period_end must be given together")
        _check_period(period_start, period_end)
        return period_start, period_end


def _check_period(period_start: date, period_end: date) -> None:
    if period_end <= period_start:
        raise ValidationError("period_end must be after period_start")
