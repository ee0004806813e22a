from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import BreakKind


@dataclass(frozen=True)
class WorkInterval:
    """Khoảng thời gian làm việc trong một ca. end_at=None nghĩa là đang mở."""

    interval_id: int
    shift_id: int
    start_at: datetime
    end_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.end_at is None


@dataclass(frozen=True)
class BreakInterval:
    interval_id: int
    shift_id: int
    start_at: datetime
    end_at: Optional[datetime] = None
    kind: BreakKind = BreakKind.LUNCH

    @property
    def is_open(self) -> bool:
        return self.end_at is None


@dataclass(frozen=True)
class ShiftIntervals:
    """Read-model: all intervals of one shift, ordered by start_at."""

    work: list[WorkInterval]
    breaks: list[BreakInterval]

    @property
    def open_work(self) -> Optional[WorkInterval]:
        return next((w for w in self.work if w.is_open), None)

    @property
    def open_break(self) -> Optional[BreakInterval]:
        return next((b for b in self.breaks if b.is_open), None)
