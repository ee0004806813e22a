from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest

from shift_tracker.core.enums import ShiftStatus, ViolationSource
from shift_tracker.intervals.model import BreakInterval, ShiftIntervals, WorkInterval
from shift_tracker.shifts.detectors.base import MonitorThresholds
from shift_tracker.shifts.detectors.standard_detectors import (
    EarlyEndDetector,
    LateStartDetector,
    LongBreakDetector,
    MissedShiftDetector,
    NoBreakEndDetector,
)
from shift_tracker.shifts.model import Shift
from shift_tracker.shifts.monitor import ShiftMonitor

AUTO_CODES = ("late", "early_end", "missed_shift", "long_break", "no_break_end")


@pytest.fixture
def auto_rules(container):
    return {
        code: container.rule_service.create_rule(
            company_id=1, code=code, name=code, penalty_percent=Decimal("2.5"), auto_detectable=True
        )
        for code in AUTO_CODES
    }


def _schedule(container, employee, start, hours=8):
    return container.shift_service.create_shift(
        employee_id=employee.employee_id,
        planned_start_at=start,
        planned_end_at=start + timedelta(hours=hours),
    )


def _codes(container, employee, auto_rules):
    by_id = {r.rule_id: code for code, r in auto_rules.items()}
    return sorted(by_id[v.rule_id] for v in container.violation_recorder.list_by_employee(employee.employee_id))


def test_missed_shift_is_recorded_once(container, employee, clock, auto_rules):
    shift = _schedule(container, employee, clock.now())
    clock.advance(minutes=61)

    first = container.shift_monitor.scan_company(1)
    second = container.shift_monitor.scan_company(1)

    assert first.recorded == 1
    assert second.recorded == 0
    assert second.duplicates == 1
    violations = container.violation_recorder.list_by_employee(employee.employee_id)
    assert len(violations) == 1
    assert violations[0].source == ViolationSource.AUTO
    assert violations[0].shift_id == shift.shift_id


def test_missed_shift_waits_for_threshold(container, employee, clock, auto_rules):
    _schedule(container, employee, clock.now())
    clock.advance(minutes=60)

    assert container.shift_monitor.scan_company(1).detections == 0


def test_late_start_and_early_end(container, employee, clock, auto_rules):
    planned = clock.now()
    shift = _schedule(container, employee, planned)
    clock.advance(minutes=20)
    container.shift_service.start(shift.shift_id)
    clock.set(planned + timedelta(hours=7, minutes=30))
    container.shift_service.end(shift.shift_id)

    summary = container.shift_monitor.scan_company(1)

    assert summary.recorded == 2
    assert _codes(container, employee, auto_rules) == ["early_end", "late"]
    rating = container.rating_engine.get_current_period(employee.employee_id)
    assert rating.rating == Decimal("95")


def test_long_break_and_unfinished_break(container, employee, clock, auto_rules):
    first = _schedule(container, employee, clock.now())
    container.shift_service.start(first.shift_id)
    clock.advance(hours=1)
    container.shift_service.pause(first.shift_id)
    clock.advance(minutes=95)
    container.shift_service.resume(first.shift_id)

    second = _schedule(container, employee, clock.now())
    container.shift_service.start(second.shift_id)
    container.shift_service.pause(second.shift_id)
    clock.advance(minutes=91)

    container.shift_monitor.scan_company(1)

    assert _codes(container, employee, auto_rules) == ["long_break", "no_break_end"]


def test_detection_without_matching_active_rule_is_skipped(container, employee, clock, auto_rules):
    container.rule_service.deactivate_rule(rule_id=auto_rules["missed_shift"].rule_id, company_id=1)
    _schedule(container, employee, clock.now())
    clock.advance(hours=2)

    summary = container.shift_monitor.scan_company(1)

    assert summary.detections == 1
    assert summary.unmapped == 1
    assert summary.recorded == 0


def test_shifts_outside_lookback_and_cancelled_are_ignored(container, employee, clock, auto_rules):
    _schedule(container, employee, clock.now())
    cancelled = _schedule(container, employee, clock.now() + timedelta(hours=30))
    container.shift_service.cancel(cancelled.shift_id)
    clock.advance(hours=31)

    summary = container.shift_monitor.scan_company(1)

    assert summary.shifts_scanned == 0
    assert summary.recorded == 0


class ExplodingDetector:
    code = "late"

    def detect(self, *, shift, intervals, now, thresholds):
        raise RuntimeError("boom")


def test_per_shift_failure_is_logged_and_scan_continues(container, employee, clock, auto_rules, caplog):
    _schedule(container, employee, clock.now())
    _schedule(container, employee, clock.now())
    clock.advance(hours=2)
    monitor = ShiftMonitor(
        container.shifts_repo,
        container.interval_tracker,
        container.rules_repo,
        container.violations_repo,
        container.violation_recorder,
        container.employees_repo,
        clock=clock,
        detectors=[ExplodingDetector(), MissedShiftDetector()],
    )

    summary = monitor.scan_company(1)

    assert summary.failures == 2
    assert "Monitor failed on shift" in caplog.text


def _shift(start, status=ShiftStatus.ACTIVE):
    return Shift(
        shift_id=1,
        employee_id=1,
        company_id=1,
        planned_start_at=start,
        planned_end_at=start + timedelta(hours=8),
        status=status,
    )


def test_detectors_respect_custom_thresholds(clock):
    start = clock.now()
    thresholds = MonitorThresholds(late_minutes=5, early_end_minutes=60, long_break_minutes=30)
    intervals = ShiftIntervals(
        work=[WorkInterval(1, 1, start + timedelta(minutes=6), start + timedelta(hours=7, minutes=30))],
        breaks=[BreakInterval(1, 1, start + timedelta(hours=3), start + timedelta(hours=3, minutes=31))],
    )
    completed = _shift(start, ShiftStatus.COMPLETED)
    now = start + timedelta(hours=9)

    assert LateStartDetector().detect(shift=completed, intervals=intervals, now=now, thresholds=thresholds)
    assert EarlyEndDetector().detect(shift=completed, intervals=intervals, now=now, thresholds=thresholds) is None
    assert LongBreakDetector().detect(shift=completed, intervals=intervals, now=now, thresholds=thresholds)
    assert NoBreakEndDetector().detect(shift=completed, intervals=intervals, now=now, thresholds=thresholds) is None
