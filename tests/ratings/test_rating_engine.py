from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from shift_tracker.core.enums import RatingOrigin, RatingStatus, ViolationSource
from shift_tracker.core.exceptions import NotFoundError, ValidationError

MARCH = (date(2026, 3, 1), date(2026, 4, 1))


@pytest.fixture
def record(container, employee):
    rules = {}

    def _record(penalty, *, target=None):
        target = target or employee
        key = (target.company_id, str(penalty))
        if key not in rules:
            rules[key] = container.rule_service.create_rule(
                company_id=target.company_id,
                code=f"rule_{len(rules) + 1}",
                name=f"Penalty {penalty}",
                penalty_percent=penalty,
            )
        return container.violation_recorder.record_violation(
            employee_id=target.employee_id,
            company_id=target.company_id,
            rule_id=rules[key].rule_id,
            source=ViolationSource.MANUAL,
        )

    return _record


def test_recalculate_sums_penalties_and_is_idempotent(container, employee, record, clock):
    for penalty in (5, 10, 7):
        record(penalty)

    first = container.rating_engine.recalculate(employee.employee_id, period_start=MARCH[0], period_end=MARCH[1])
    clock.advance(minutes=5)
    second = container.rating_engine.recalculate(employee.employee_id, period_start=MARCH[0], period_end=MARCH[1])

    assert first.rating == second.rating == Decimal("78")
    assert second.rating_id == first.rating_id
    assert second.updated_at == clock.now()
    assert second.status == RatingStatus.ACTIVE
    assert second.origin == RatingOrigin.COMPUTED


def test_rating_is_clamped_at_zero_and_terminated(container, employee, record):
    record(60)
    record(50)

    rating = container.rating_engine.get_current_period(employee.employee_id)
    assert rating.rating == Decimal("0")
    assert rating.status == RatingStatus.TERMINATED


def test_violations_outside_period_are_ignored(container, employee, record, clock):
    record(5)
    clock.advance(days=31)  # 2026-04-02
    record(10)

    march = container.rating_engine.recalculate(employee.employee_id, period_start=MARCH[0], period_end=MARCH[1])
    april = container.rating_engine.get_current_period(employee.employee_id)

    assert march.rating == Decimal("95")
    assert april.period_start == date(2026, 4, 1)
    assert april.rating == Decimal("90")


def test_manual_adjustment_scenario(container, employee, record):
    record(5)
    record(3)
    assert container.rating_engine.get_current_period(employee.employee_id).rating == Decimal("92")

    adjusted = container.rating_engine.adjust_rating(employee.employee_id, -10)

    assert adjusted.rating == Decimal("82")
    assert adjusted.origin == RatingOrigin.MANUALLY_ADJUSTED
    assert adjusted.manual_adjustment == Decimal("-10")


def test_recalculation_preserves_manual_adjustment(container, employee, record):
    record(5)
    container.rating_engine.adjust_rating(employee.employee_id, -10)

    again = container.rating_engine.recalculate(employee.employee_id)
    assert again.rating == Decimal("85")
    assert again.origin == RatingOrigin.MANUALLY_ADJUSTED

    # New violations still lower the adjusted rating.
    record(4)
    assert container.rating_engine.get_current_period(employee.employee_id).rating == Decimal("81")


def test_discard_adjustment_restores_computed_rating(container, employee, record):
    record(5)
    container.rating_engine.adjust_rating(employee.employee_id, 20)

    restored = container.rating_engine.recalculate(employee.employee_id, discard_adjustment=True)

    assert restored.rating == Decimal("95")
    assert restored.origin == RatingOrigin.COMPUTED
    assert restored.manual_adjustment == Decimal("0")


def test_adjust_is_clamped_and_keeps_effective_delta(container, employee, record):
    record(5)

    raised = container.rating_engine.adjust_rating(employee.employee_id, 50)

    assert raised.rating == Decimal("100")
    assert raised.manual_adjustment == Decimal("5")


def test_adjust_without_existing_row_starts_from_computed(container, employee):
    rating = container.rating_engine.adjust_rating(
        employee.employee_id, Decimal("-2.5"), period_start=MARCH[0], period_end=MARCH[1]
    )
    assert rating.rating == Decimal("97.5")


@pytest.mark.parametrize("delta", [101, -101, "abc"])
def test_adjust_rejects_out_of_range_delta(container, employee, delta):
    with pytest.raises(ValidationError):
        container.rating_engine.adjust_rating(employee.employee_id, delta)


def test_get_for_period_without_row_is_none(container, employee):
    assert container.rating_engine.get_for_period(employee.employee_id, period_start=MARCH[0], period_end=MARCH[1]) is None
    assert container.rating_engine.get_current_period(employee.employee_id) is None


def test_empty_period_is_rejected(container, employee):
    with pytest.raises(ValidationError):
        container.rating_engine.recalculate(employee.employee_id, period_start=MARCH[0], period_end=MARCH[0])
    with pytest.raises(ValidationError):
        container.rating_engine.recalculate(employee.employee_id, period_start=MARCH[0])


def test_unknown_employee_raises_not_found(container):
    with pytest.raises(NotFoundError):
        container.rating_engine.recalculate(404)


def test_recalculate_company_covers_every_employee(container, employee, record):
    colleague = container.employee_service.create_employee(company_id=1, full_name="Le Van C")
    outsider = container.employee_service.create_employee(company_id=2, full_name="Pham D")
    record(10, target=colleague)
    record(20, target=outsider)

    results = container.rating_engine.recalculate_company(1)

    assert {r.employee_id: r.rating for r in results} == {
        employee.employee_id: Decimal("100"),
        colleague.employee_id: Decimal("90"),
    }
    listed = container.rating_engine.list_company_ratings(1)
    assert [r.employee_id for r in listed] == [employee.employee_id, colleague.employee_id]


def test_current_period_follows_clock(container, employee, record, clock):
    record(5)
    clock.advance(days=40)

    assert container.rating_engine.get_current_period(employee.employee_id) is None
    assert container.rating_engine.recalculate_current(employee.employee_id).rating == Decimal("100")
