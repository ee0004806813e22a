from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional, Sequence

from ..core.enums import BreakKind
from ..core.exceptions import ConflictError
from .model import BreakInterval, ShiftIntervals, WorkInterval
from .repository import IntervalRepository

logger = logging.getLogger(__name__)


def _span(start: datetime, end: Optional[datetime], as_of: Optional[datetime]) -> Optional[tuple[datetime, datetime]]:
    if end is None:
        if as_of is None or as_of <= start:
            return None
        end = as_of
    if end <= start:
        return None
    return start, end


def _merge(spans: list[tuple[datetime, datetime]]) -> list[tuple[datetime, datetime]]:
    merged: list[tuple[datetime, datetime]] = []
    for start, end in sorted(spans):
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged


def _overlap(a: tuple[datetime, datetime], b: tuple[datetime, datetime]) -> timedelta:
    lo = max(a[0], b[0])
    hi = min(a[1], b[1])
    return hi - lo if hi > lo else timedelta(0)


class IntervalTracker:
    """Records work/break intervals of a shift.

    Invariant: a shift never has more than one open interval, work or break.
    The repository enforces it with a conditional insert, so two racing
    requests cannot both open an interval. The tracker knows nothing about
    shift status; ordering of open/close calls is the lifecycle manager's job.
    """

    def __init__(self, intervals: IntervalRepository):
        self._intervals = intervals

    def open_work_interval(self, shift_id: int, at: datetime) -> int:
        interval_id = self._intervals.insert_work_if_none_open(shift_id=int(shift_id), start_at=at)
        if interval_id is None:
            raise ConflictError(
                "Shift already has an open interval",
                shift_id=int(shift_id),
                open_kind=self._open_kind(shift_id),
            )
        logger.debug("Work interval %s opened for shift %s", interval_id, shift_id)
        return interval_id

    def close_open_work_interval(self, shift_id: int, at: datetime) -> Optional[int]:
        # Closing nothing is fine: transports retry.
        interval_id = self._intervals.close_open_work(shift_id=int(shift_id), end_at=at)
        if interval_id is not None:
            logger.debug("Work interval %s closed for shift %s", interval_id, shift_id)
        return interval_id

    def open_break_interval(self, shift_id: int, at: datetime, kind: BreakKind = BreakKind.LUNCH) -> int:
        interval_id = self._intervals.insert_break_if_none_open(shift_id=int(shift_id), start_at=at, kind=BreakKind(kind))
        if interval_id is None:
            raise ConflictError(
                "Shift already has an open interval",
                shift_id=int(shift_id),
                open_kind=self._open_kind(shift_id),
            )
        logger.debug("Break interval %s (%s) opened for shift %s", interval_id, BreakKind(kind).value, shift_id)
        return interval_id

    def close_open_break_interval(self, shift_id: int, at: datetime) -> Optional[int]:
        interval_id = self._intervals.close_open_break(shift_id=int(shift_id), end_at=at)
        if interval_id is not None:
            logger.debug("Break interval %s closed for shift %s", interval_id, shift_id)
        return interval_id

    def close_any_open_interval(self, shift_id: int, at: datetime) -> None:
        self.close_open_work_interval(shift_id, at)
        self.close_open_break_interval(shift_id, at)

    def list_intervals(self, shift_id: int) -> ShiftIntervals:
        return ShiftIntervals(
            work=list(self._intervals.list_work(int(shift_id))),
            breaks=list(self._intervals.list_breaks(int(shift_id))),
        )

    def net_worked_minutes(self, shift_id: int, as_of: Optional[datetime] = None) -> int:
        """Worked minutes of a shift.

        Closed work time minus the part of closed breaks that overlaps work time.
        Open intervals only count when ``as_of`` is given; they are then cut at
        ``as_of``.
        """

        intervals = self.list_intervals(shift_id)
        return compute_net_minutes(intervals.work, intervals.breaks, as_of=as_of)

    def _open_kind(self, shift_id: int) -> Optional[str]:
        if self._intervals.get_open_work(int(shift_id)):
            return "work"
        if self._intervals.get_open_break(int(shift_id)):
            return "break"
        return None


def compute_net_minutes(
    work: Sequence[WorkInterval],
    breaks: Sequence[BreakInterval],
    *,
    as_of: Optional[datetime] = None,
) -> int:
    # Union of work time minus its intersection with the union of break time.
    work_spans = _merge([s for s in (_span(w.start_at, w.end_at, as_of) for w in work) if s])
    break_spans = _merge([s for s in (_span(b.start_at, b.end_at, as_of) for b in breaks) if s])

    worked = sum((end - start for start, end in work_spans), timedelta(0))
    overlapping = sum(
        (_overlap(w, b) for b in break_spans for w in work_spans),
        timedelta(0),
    )
    net = worked - overlapping
    if net <= timedelta(0):
        return 0
    return int(net // timedelta(minutes=1))
