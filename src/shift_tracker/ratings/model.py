from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from ..core.enums import RatingOrigin, RatingStatus


@dataclass(frozen=True)
class EmployeeRating:
    """Rating of one employee for the half-open period [period_start, period_end).

    ``manual_adjustment`` is the delta an operator applied on top of the
    computed value; recalculation keeps it until explicitly discarded.
    """

    rating_id: int
    employee_id: int
    company_id: int
    period_start: date
    period_end: date
    rating: Decimal
    status: RatingStatus
    updated_at: datetime
    origin: RatingOrigin = RatingOrigin.COMPUTED
    manual_adjustment: Decimal = Decimal("0")
