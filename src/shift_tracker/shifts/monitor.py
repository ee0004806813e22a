from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional, Sequence

from ..common.clock import Clock, SystemClock
from ..core.constants import DEFAULT_MONITOR_LOOKBACK_HOURS
from ..core.enums import ShiftStatus, ViolationSource
from ..employees.repository import EmployeeRepository
from ..intervals.tracker import IntervalTracker
from ..violations.model import ViolationRule
from ..violations.repository import ViolationRepository, ViolationRuleRepository
from ..violations.service import ViolationRecorder
from .detectors.base import Detection, MonitorThresholds, ShiftDetector
from .detectors.standard_detectors import default_detectors
from .model import Shift
from .repository import ShiftRepository

logger = logging.getLogger(__name__)


@dataclass
class MonitorSummary:
    company_id: int
    shifts_scanned: int = 0
    detections: int = 0
    recorded: int = 0
    duplicates: int = 0
    unmapped: int = 0
    failures: int = 0
    violation_ids: list[int] = field(default_factory=list)


class ShiftMonitor:
    """Scans recent shifts and records ``auto`` violations for anomalies.

    A detection is only recorded when the company has an active,
    auto-detectable rule with the detector's code, and at most once per
    (shift, rule).
    """

    def __init__(
        self,
        shifts: ShiftRepository,
        tracker: IntervalTracker,
        rules: ViolationRuleRepository,
        violations: ViolationRepository,
        recorder: ViolationRecorder,
        employees: EmployeeRepository,
        *,
        clock: Optional[Clock] = None,
        thresholds: Optional[MonitorThresholds] = None,
        lookback_hours: int = DEFAULT_MONITOR_LOOKBACK_HOURS,
        detectors: Optional[Sequence[ShiftDetector]] = None,
    ):
        self._shifts = shifts
        self._tracker = tracker
        self._rules = rules
        self._violations = violations
        self._recorder = recorder
        self._employees = employees
        self._clock = clock or SystemClock()
        self._thresholds = thresholds or MonitorThresholds()
        self._lookback = timedelta(hours=int(lookback_hours))
        self._detectors = list(detectors) if detectors is not None else default_detectors()

    def scan_all(self) -> list[MonitorSummary]:
        """Scan every company that has employees. A failing company is logged and skipped."""
        summaries = []
        for company_id in self._employees.list_company_ids():
            try:
                summaries.append(self.scan_company(company_id))
            except Exception:
                logger.exception("Monitor scan failed for company %s", company_id)
        return summaries

    def scan_company(self, company_id: int) -> MonitorSummary:
        now = self._clock.now()
        summary = MonitorSummary(company_id=int(company_id))
        rules = {
            r.code: r
            for r in self._rules.list_by_company(int(company_id), active_only=True)
            if r.auto_detectable
        }

        shifts = self._shifts.list_planned_between(int(company_id), start=now - self._lookback, end=now)
        for shift in shifts:
            if shift.status == ShiftStatus.CANCELLED:
                continue
            summary.shifts_scanned += 1
            try:
                self._scan_shift(shift, rules, now, summary)
            except Exception:
                summary.failures += 1
                logger.exception("Monitor failed on shift %s", shift.shift_id)

        logger.info(
            "Monitor scan for company %s: %d shifts, %d detections, %d recorded",
            summary.company_id,
            summary.shifts_scanned,
            summary.detections,
            summary.recorded,
        )
        return summary

    def _scan_shift(self, shift: Shift, rules: dict[str, ViolationRule], now: datetime, summary: MonitorSummary) -> None:
        intervals = self._tracker.list_intervals(shift.shift_id)
        for detector in self._detectors:
            detection = detector.detect(shift=shift, intervals=intervals, now=now, thresholds=self._thresholds)
            if detection is None:
                continue
            summary.detections += 1
            self._record(detection, rules, summary)

    def _record(self, detection: Detection, rules: dict[str, ViolationRule], summary: MonitorSummary) -> None:
        shift = detection.shift
        rule = rules.get(detection.code)
        if rule is None:
            summary.unmapped += 1
            logger.debug("No active auto rule %r for company %s", detection.code, shift.company_id)
            return
        if self._violations.exists_for_shift(shift_id=shift.shift_id, rule_id=rule.rule_id):
            summary.duplicates += 1
            return

        violation = self._recorder.record_violation(
            employee_id=shift.employee_id,
            company_id=shift.company_id,
            rule_id=rule.rule_id,
            source=ViolationSource.AUTO,
            reason=detection.reason,
            shift_id=shift.shift_id,
        )
        summary.recorded += 1
        summary.violation_ids.append(violation.violation_id)
