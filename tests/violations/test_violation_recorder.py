from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest

from shift_tracker.container import build_container
from shift_tracker.core.enums import ViolationSource
from shift_tracker.core.exceptions import (
    ConflictError,
    NotFoundError,
    RuleInactiveError,
    ScopeMismatchError,
    ValidationError,
)
from shift_tracker.violations.service import ViolationRecorder


def _rule(container, code="late", penalty=5, *, company_id=1, auto=False):
    return container.rule_service.create_rule(
        company_id=company_id,
        code=code,
        name=code.replace("_", " ").title(),
        penalty_percent=penalty,
        auto_detectable=auto,
    )


def _record(container, employee, rule, source=ViolationSource.MANUAL, **kwargs):
    return container.violation_recorder.record_violation(
        employee_id=employee.employee_id,
        company_id=employee.company_id,
        rule_id=rule.rule_id,
        source=source,
        **kwargs,
    )


def test_record_snapshots_penalty_and_updates_rating(container, employee, clock):
    rule = _rule(container, penalty=5)

    violation = _record(container, employee, rule, reason="  late by 20 min ", created_by=99)

    assert violation.penalty == Decimal("5")
    assert violation.reason == "late by 20 min"
    assert violation.created_by == 99
    assert violation.created_at == clock.now()
    rating = container.rating_engine.get_current_period(employee.employee_id)
    assert rating.rating == Decimal("95")


def test_penalty_snapshot_survives_rule_edit(container, employee):
    rule = _rule(container, penalty=5)
    violation = _record(container, employee, rule)

    container.rule_service.update_rule(rule_id=rule.rule_id, company_id=1, penalty_percent=50)
    container.rating_engine.recalculate(employee.employee_id)

    stored = container.violations_repo.get_by_id(violation.violation_id)
    assert stored.penalty == Decimal("5")
    assert container.rating_engine.get_current_period(employee.employee_id).rating == Decimal("95")


def test_unknown_employee_or_rule_raises_not_found(container, employee):
    rule = _rule(container)
    with pytest.raises(NotFoundError):
        container.violation_recorder.record_violation(
            employee_id=999, company_id=1, rule_id=rule.rule_id, source=ViolationSource.MANUAL
        )
    with pytest.raises(NotFoundError):
        container.violation_recorder.record_violation(
            employee_id=employee.employee_id, company_id=1, rule_id=999, source=ViolationSource.MANUAL
        )


def test_cross_company_rule_is_scope_mismatch(container, employee):
    foreign_rule = _rule(container, company_id=2)

    with pytest.raises(ScopeMismatchError):
        _record(container, employee, foreign_rule)
    assert container.violation_recorder.list_by_employee(employee.employee_id) == []


def test_cross_company_employee_is_scope_mismatch(container, employee):
    rule = _rule(container)
    with pytest.raises(ScopeMismatchError):
        container.violation_recorder.record_violation(
            employee_id=employee.employee_id, company_id=2, rule_id=rule.rule_id, source=ViolationSource.MANUAL
        )


def test_inactive_rule_rejects_recording(container, employee):
    rule = _rule(container)
    container.rule_service.deactivate_rule(rule_id=rule.rule_id, company_id=1)

    with pytest.raises(RuleInactiveError):
        _record(container, employee, rule)


def test_manual_violation_allowed_on_inactive_auto_rule(container, employee):
    rule = _rule(container, code="missed_shift", penalty=10, auto=True)
    container.rule_service.deactivate_rule(rule_id=rule.rule_id, company_id=1)

    violation = _record(container, employee, rule, source=ViolationSource.MANUAL)
    assert violation.penalty == Decimal("10")

    with pytest.raises(RuleInactiveError):
        _record(container, employee, rule, source=ViolationSource.AUTO)


def test_manual_on_inactive_auto_rule_can_be_disabled(clock):
    container = build_container(
        SimpleNamespace(STORAGE_BACKEND="memory", ALLOW_MANUAL_ON_INACTIVE_AUTO_RULES=False),
        clock=clock,
    )
    employee = container.employee_service.create_employee(company_id=1, full_name="A")
    rule = _rule(container, code="missed_shift", auto=True)
    container.rule_service.deactivate_rule(rule_id=rule.rule_id, company_id=1)

    with pytest.raises(RuleInactiveError):
        _record(container, employee, rule)


class BrokenRatingEngine:
    def recalculate_current(self, employee_id):
        raise RuntimeError("rating store unavailable")


def test_rating_failure_does_not_fail_recording(container, employee):
    recorder = ViolationRecorder(
        container.violations_repo,
        container.rules_repo,
        container.employees_repo,
        BrokenRatingEngine(),
        clock=container.clock,
    )
    rule = _rule(container)

    violation = recorder.record_violation(
        employee_id=employee.employee_id,
        company_id=1,
        rule_id=rule.rule_id,
        source=ViolationSource.MANUAL,
    )

    assert container.violations_repo.get_by_id(violation.violation_id) is not None


def test_list_by_employee_uses_half_open_range(container, employee, clock):
    rule = _rule(container)
    first = _record(container, employee, rule)
    clock.advance(days=1)
    second = _record(container, employee, rule)

    start = first.created_at
    items = container.violation_recorder.list_by_employee(
        employee.employee_id, start=start, end=start + timedelta(days=1)
    )
    assert [v.violation_id for v in items] == [first.violation_id]

    everything = container.violation_recorder.list_by_employee(employee.employee_id)
    assert [v.violation_id for v in everything] == [first.violation_id, second.violation_id]


def test_list_by_company_rejects_empty_range(container):
    moment = datetime(2026, 3, 1)
    with pytest.raises(ValidationError):
        container.violation_recorder.list_by_company(1, start=moment, end=moment)


def test_duplicate_rule_code_in_company_conflicts(container):
    _rule(container, code="late")
    with pytest.raises(ConflictError):
        _rule(container, code="LATE")
    # Same code in another company is fine.
    assert _rule(container, code="late", company_id=2).company_id == 2


def test_rule_penalty_must_be_within_range(container):
    with pytest.raises(ValidationError):
        _rule(container, penalty=101)
    with pytest.raises(ValidationError):
        _rule(container, penalty=-1)


def test_update_rule_from_other_company_is_scope_mismatch(container):
    rule = _rule(container)
    with pytest.raises(ScopeMismatchError):
        container.rule_service.update_rule(rule_id=rule.rule_id, company_id=2, name="Hijack")


def test_list_rules_active_only(container):
    active = _rule(container, code="late")
    retired = _rule(container, code="no_report")
    container.rule_service.deactivate_rule(rule_id=retired.rule_id, company_id=1)

    assert [r.code for r in container.rule_service.list_rules(1)] == ["late", "no_report"]
    assert [r.rule_id for r in container.rule_service.list_rules(1, active_only=True)] == [active.rule_id]
