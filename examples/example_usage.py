"""Ví dụ: dùng service layer (không qua Flask).

Runs against the in-memory backend so no database is needed.
"""

from datetime import datetime, timedelta
from types import SimpleNamespace

from shift_tracker.common.clock import FixedClock
from shift_tracker.container import build_container
from shift_tracker.core.enums import ViolationSource


def main():
    clock = FixedClock(datetime(2026, 3, 2, 8, 0))
    container = build_container(SimpleNamespace(STORAGE_BACKEND="memory"), clock=clock)

    employee = container.employee_service.create_employee(company_id=1, full_name="Nguyen Van A")
    shift = container.shift_service.create_shift(
        employee_id=employee.employee_id,
        planned_start_at=clock.now(),
        planned_end_at=clock.now() + timedelta(hours=8),
    )

    container.shift_service.start(shift.shift_id)
    clock.advance(hours=4)
    container.shift_service.pause(shift.shift_id)
    clock.advance(minutes=30)
    container.shift_service.resume(shift.shift_id)
    clock.advance(hours=4)
    done = container.shift_service.end(shift.shift_id)
    print(done.status.value, container.shift_service.worked_minutes(shift.shift_id), "min")

    rule = container.rule_service.create_rule(company_id=1, code="late", name="Late start", penalty_percent=5)
    container.violation_recorder.record_violation(
        employee_id=employee.employee_id,
        company_id=1,
        rule_id=rule.rule_id,
        source=ViolationSource.MANUAL,
        reason="Example",
    )
    print(container.rating_engine.get_current_period(employee.employee_id))


if __name__ == "__main__":
    main()
