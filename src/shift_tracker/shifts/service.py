from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..common.clock import Clock, SystemClock
from ..common.transaction import TransactionManager
from ..common.validators import require_naive_datetime
from ..core.enums import BreakKind, ShiftAction, ShiftStatus
from ..core.exceptions import InvalidStateTransitionError, NotFoundError, ValidationError
from ..employees.repository import EmployeeRepository
from ..intervals.tracker import IntervalTracker
from ..notifications.cache import CacheInvalidator
from ..notifications.side_effects import BestEffort
from .model import Shift
from .repository import ShiftRepository

logger = logging.getLogger(__name__)

# action -> (allowed source states, target state)
TRANSITIONS: dict[ShiftAction, tuple[frozenset[ShiftStatus], ShiftStatus]] = {
    ShiftAction.START: (frozenset({ShiftStatus.SCHEDULED}), ShiftStatus.ACTIVE),
    ShiftAction.PAUSE: (frozenset({ShiftStatus.ACTIVE}), ShiftStatus.PAUSED),
    ShiftAction.RESUME: (frozenset({ShiftStatus.PAUSED}), ShiftStatus.ACTIVE),
    ShiftAction.END: (frozenset({ShiftStatus.ACTIVE, ShiftStatus.PAUSED}), ShiftStatus.COMPLETED),
    ShiftAction.CANCEL: (
        frozenset({ShiftStatus.SCHEDULED, ShiftStatus.ACTIVE, ShiftStatus.PAUSED}),
        ShiftStatus.CANCELLED,
    ),
}


class ShiftLifecycleManager:
    """Use case: drive a shift through its state machine.

    Every transition runs in one storage transaction: the conditional status
    write and the interval writes commit together. Cache invalidation happens
    after commit and never fails the transition.
    """

    def __init__(
        self,
        shifts: ShiftRepository,
        employees: EmployeeRepository,
        tracker: IntervalTracker,
        tx: TransactionManager,
        *,
        clock: Optional[Clock] = None,
        cache: Optional[CacheInvalidator] = None,
        side_effects: Optional[BestEffort] = None,
    ):
        self._shifts = shifts
        self._employees = employees
        self._tracker = tracker
        self._tx = tx
        self._clock = clock or SystemClock()
        self._cache = cache
        self._side_effects = side_effects or BestEffort()

    def create_shift(self, *, employee_id: int, planned_start_at: datetime, planned_end_at: datetime) -> Shift:
        planned_start_at = require_naive_datetime(planned_start_at, "planned_start_at")
        planned_end_at = require_naive_datetime(planned_end_at, "planned_end_at")
        if planned_end_at <= planned_start_at:
            raise ValidationError("planned_end_at must be after planned_start_at")

        employee = self._employees.get_by_id(int(employee_id))
        if not employee:
            raise NotFoundError("Employee", employee_id)

        shift_id = self._shifts.create(
            employee_id=employee.employee_id,
            company_id=employee.company_id,
            planned_start_at=planned_start_at,
            planned_end_at=planned_end_at,
        )
        logger.info("Shift %s scheduled for employee %s", shift_id, employee.employee_id)
        self._notify(employee.company_id)
        return self.get_shift(shift_id)

    def get_shift(self, shift_id: int) -> Shift:
        shift = self._shifts.get_by_id(int(shift_id))
        if not shift:
            raise NotFoundError("Shift", shift_id)
        return shift

    def list_active_by_company(self, company_id: int) -> Sequence[Shift]:
        return self._shifts.list_active_by_company(int(company_id))

    def list_by_employee(self, employee_id: int, *, start: datetime, end: datetime) -> Sequence[Shift]:
        if end <= start:
            raise ValidationError("end must be after start")
        return self._shifts.list_by_employee(int(employee_id), start=start, end=end)

    def worked_minutes(self, shift_id: int, as_of: Optional[datetime] = None) -> int:
        self.get_shift(shift_id)
        return self._tracker.net_worked_minutes(int(shift_id), as_of=as_of)

    def start(self, shift_id: int) -> Shift:
        return self._transition(
            shift_id,
            ShiftAction.START,
            lambda sid, now: self._tracker.open_work_interval(sid, now),
            stamp_start=True,
        )

    def pause(self, shift_id: int, kind: BreakKind = BreakKind.LUNCH) -> Shift:
        def apply(sid: int, now: datetime) -> None:
            self._tracker.close_open_work_interval(sid, now)
            self._tracker.open_break_interval(sid, now, BreakKind(kind))

        return self._transition(shift_id, ShiftAction.PAUSE, apply)

    def resume(self, shift_id: int) -> Shift:
        def apply(sid: int, now: datetime) -> None:
            self._tracker.close_open_break_interval(sid, now)
            self._tracker.open_work_interval(sid, now)

        return self._transition(shift_id, ShiftAction.RESUME, apply)

    def end(self, shift_id: int) -> Shift:
        return self._transition(shift_id, ShiftAction.END, self._tracker.close_any_open_interval, stamp_end=True)

    def cancel(self, shift_id: int) -> Shift:
        return self._transition(shift_id, ShiftAction.CANCEL, self._tracker.close_any_open_interval)

    def _transition(
        self,
        shift_id: int,
        action: ShiftAction,
        apply: Callable[[int, datetime], object],
        *,
        stamp_start: bool = False,
        stamp_end: bool = False,
    ) -> Shift:
        sources, target = TRANSITIONS[action]
        now = self._clock.now()

        with self._tx.transaction():
            shift = self.get_shift(shift_id)
            if shift.status not in sources:
                raise InvalidStateTransitionError(action.value, shift.status.value, shift.shift_id)

            moved = self._shifts.update_status(
                shift_id=shift.shift_id,
                from_statuses={shift.status},
                to_status=target,
                actual_start_at=now if stamp_start else None,
                actual_end_at=now if stamp_end else None,
            )
            if not moved:
                current = self._shifts.get_by_id(shift.shift_id)
                current_status = current.status.value if current else "missing"
                raise InvalidStateTransitionError(action.value, current_status, shift.shift_id)

            apply(shift.shift_id, now)
            updated = self.get_shift(shift.shift_id)

        logger.info(
            "Shift %s %s: %s -> %s",
            updated.shift_id,
            action.value,
            shift.status.value,
            updated.status.value,
        )
        self._notify(updated.company_id)
        return updated

    def _notify(self, company_id: int) -> None:
        if self._cache is None:
            return
        self._side_effects.run(f"cache invalidation for company {company_id}", self._cache.invalidate, company_id)
