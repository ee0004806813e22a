from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ...core.constants import (
    DEFAULT_EARLY_END_THRESHOLD_MINUTES,
    DEFAULT_LATE_THRESHOLD_MINUTES,
    DEFAULT_LONG_BREAK_THRESHOLD_MINUTES,
    DEFAULT_MISSED_SHIFT_THRESHOLD_MINUTES,
    DEFAULT_NO_BREAK_END_THRESHOLD_MINUTES,
)
from ...intervals.model import ShiftIntervals
from ..model import Shift


@dataclass(frozen=True)
class MonitorThresholds:
    late_minutes: int = DEFAULT_LATE_THRESHOLD_MINUTES
    early_end_minutes: int = DEFAULT_EARLY_END_THRESHOLD_MINUTES
    long_break_minutes: int = DEFAULT_LONG_BREAK_THRESHOLD_MINUTES
    no_break_end_minutes: int = DEFAULT_NO_BREAK_END_THRESHOLD_MINUTES
    missed_shift_minutes: int = DEFAULT_MISSED_SHIFT_THRESHOLD_MINUTES


@dataclass(frozen=True)
class Detection:
    shift: Shift
    code: str
    reason: str


class ShiftDetector(ABC):
    """Strategy Pattern: one kind of shift anomaly per detector.

    ``code`` is matched against the company's auto-detectable rule codes.
    """

    code: str

    @abstractmethod
    def detect(
        self,
        *,
        shift: Shift,
        intervals: ShiftIntervals,
        now: datetime,
        thresholds: MonitorThresholds,
    ) -> Optional[Detection]:
        raise NotImplementedError
