from __future__ import annotations

from decimal import Decimal

from shift_tracker.core.enums import RatingStatus
from shift_tracker.ratings.calculator.standard_calculator import StandardRatingCalculator


def test_rating_is_100_minus_penalty_sum():
    calc = StandardRatingCalculator()
    assert calc.compute([Decimal("5"), Decimal("10"), Decimal("7")]) == Decimal("78")


def test_rating_without_violations_is_100():
    assert StandardRatingCalculator().compute([]) == Decimal("100")


def test_rating_is_clamped_at_zero():
    calc = StandardRatingCalculator()
    assert calc.compute([Decimal("60"), Decimal("50")]) == Decimal("0")


def test_fractional_penalties_are_exact():
    calc = StandardRatingCalculator()
    assert calc.compute([Decimal("0.10"), Decimal("0.20")]) == Decimal("99.70")


def test_status_bands():
    calc = StandardRatingCalculator()
    assert calc.status_for(Decimal("100")) == RatingStatus.ACTIVE
    assert calc.status_for(Decimal("50.01")) == RatingStatus.ACTIVE
    assert calc.status_for(Decimal("50")) == RatingStatus.WARNING
    assert calc.status_for(Decimal("30.5")) == RatingStatus.WARNING
    assert calc.status_for(Decimal("30")) == RatingStatus.TERMINATED
    assert calc.status_for(Decimal("0")) == RatingStatus.TERMINATED
