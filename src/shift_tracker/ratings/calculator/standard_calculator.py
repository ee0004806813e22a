from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from .base import RatingCalculator
from ...core.constants import RATING_MAX, RATING_MIN, RATING_TERMINATED_AT, RATING_WARNING_AT
from ...core.enums import RatingStatus


def clamp_rating(value: Decimal) -> Decimal:
    return max(RATING_MIN, min(RATING_MAX, value))


class StandardRatingCalculator(RatingCalculator):
    """Standard rule: 100 - sum(penalties), kept within [0, 100]."""

    def compute(self, penalties: Iterable[Decimal]) -> Decimal:
        total = sum((Decimal(p) for p in penalties), Decimal("0"))
        return clamp_rating(RATING_MAX - total)

    def status_for(self, rating: Decimal) -> RatingStatus:
        if rating <= RATING_TERMINATED_AT:
            return RatingStatus.TERMINATED
        if rating <= RATING_WARNING_AT:
            return RatingStatus.WARNING
        return RatingStatus.ACTIVE
