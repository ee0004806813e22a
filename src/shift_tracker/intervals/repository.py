from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import BreakKind
from .model import BreakInterval, WorkInterval


class IntervalRepository(Protocol):
    def get_open_work(self, shift_id: int) -> Optional[WorkInterval]:
        raise NotImplementedError

    def get_open_break(self, shift_id: int) -> Optional[BreakInterval]:
        raise NotImplementedError

    def insert_work_if_none_open(self, *, shift_id: int, start_at: datetime) -> Optional[int]:
        """Insert an open work interval unless the shift already has any open interval.

        Returns the new interval_id, or None when the conditional insert matched nothing.
        """

        raise NotImplementedError

    def insert_break_if_none_open(self, *, shift_id: int, start_at: datetime, kind: BreakKind) -> Optional[int]:
        raise NotImplementedError

    def close_open_work(self, *, shift_id: int, end_at: datetime) -> Optional[int]:
        """Close the open work interval; returns its id, or None if none was open."""

        raise NotImplementedError

    def close_open_break(self, *, shift_id: int, end_at: datetime) -> Optional[int]:
        raise NotImplementedError

    def list_work(self, shift_id: int) -> Sequence[WorkInterval]:
        raise NotImplementedError

    def list_breaks(self, shift_id: int) -> Sequence[BreakInterval]:
        raise NotImplementedError
