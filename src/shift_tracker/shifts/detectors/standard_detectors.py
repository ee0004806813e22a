from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from ...common.datetime_utils import minutes_between
from ...core.enums import ShiftStatus
from ...intervals.model import ShiftIntervals
from ..model import Shift
from .base import Detection, MonitorThresholds, ShiftDetector


class MissedShiftDetector(ShiftDetector):
    """Shift never started long after its planned start."""

    code = "missed_shift"

    def detect(
        self,
        *,
        shift: Shift,
        intervals: ShiftIntervals,
        now: datetime,
        thresholds: MonitorThresholds,
    ) -> Optional[Detection]:
        if shift.status != ShiftStatus.SCHEDULED:
            return None
        if now <= shift.planned_start_at + timedelta(minutes=thresholds.missed_shift_minutes):
            return None
        return Detection(
            shift=shift,
            code=self.code,
            reason=f"Shift not started {int(minutes_between(shift.planned_start_at, now))} min after planned start",
        )


class LateStartDetector(ShiftDetector):
    code = "late"

    def detect(
        self,
        *,
        shift: Shift,
        intervals: ShiftIntervals,
        now: datetime,
        thresholds: MonitorThresholds,
    ) -> Optional[Detection]:
        if not intervals.work:
            return None
        first_start = min(w.start_at for w in intervals.work)
        late_by = minutes_between(shift.planned_start_at, first_start)
        if late_by <= thresholds.late_minutes:
            return None
        return Detection(shift=shift, code=self.code, reason=f"Started {int(late_by)} min late")


class EarlyEndDetector(ShiftDetector):
    code = "early_end"

    def detect(
        self,
        *,
        shift: Shift,
        intervals: ShiftIntervals,
        now: datetime,
        thresholds: MonitorThresholds,
    ) -> Optional[Detection]:
        if shift.status != ShiftStatus.COMPLETED:
            return None
        ends = [w.end_at for w in intervals.work if w.end_at is not None]
        if not ends:
            return None
        early_by = minutes_between(max(ends), shift.planned_end_at)
        if early_by <= thresholds.early_end_minutes:
            return None
        return Detection(shift=shift, code=self.code, reason=f"Ended {int(early_by)} min early")


class LongBreakDetector(ShiftDetector):
    code = "long_break"

    def detect(
        self,
        *,
        shift: Shift,
        intervals: ShiftIntervals,
        now: datetime,
        thresholds: MonitorThresholds,
    ) -> Optional[Detection]:
        longest = max(
            (minutes_between(b.start_at, b.end_at) for b in intervals.breaks if b.end_at is not None),
            default=0,
        )
        if longest <= thresholds.long_break_minutes:
            return None
        return Detection(shift=shift, code=self.code, reason=f"Break lasted {int(longest)} min")


class NoBreakEndDetector(ShiftDetector):
    """Break still open past the threshold."""

    code = "no_break_end"

    def detect(
        self,
        *,
        shift: Shift,
        intervals: ShiftIntervals,
        now: datetime,
        thresholds: MonitorThresholds,
    ) -> Optional[Detection]:
        open_break = intervals.open_break
        if not open_break:
            return None
        open_for = minutes_between(open_break.start_at, now)
        if open_for <= thresholds.no_break_end_minutes:
            return None
        return Detection(shift=shift, code=self.code, reason=f"Break open for {int(open_for)} min")


def default_detectors() -> list[ShiftDetector]:
    return [
        MissedShiftDetector(),
        LateStartDetector(),
        EarlyEndDetector(),
        LongBreakDetector(),
        NoBreakEndDetector(),
    ]
