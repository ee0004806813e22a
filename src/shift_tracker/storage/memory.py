"""In-memory repositories.

Used by the test-suite and by the ``memory`` storage backend. All repositories
share one ``InMemoryStore``; its re-entrant lock serialises every call, and
``InMemoryTransactionManager`` holds that lock for the whole transaction and
restores a snapshot when the block raises.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Collection, Iterator, Optional, Sequence

from ..core.enums import BreakKind, EmployeeStatus, RatingOrigin, RatingStatus, ShiftStatus, ViolationSource
from ..core.exceptions import ConflictError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..intervals.model import BreakInterval, WorkInterval
from ..intervals.repository import IntervalRepository
from ..invites.model import EmployeeInvite
from ..invites.repository import InviteRepository
from ..ratings.model import EmployeeRating
from ..ratings.repository import RatingRepository
from ..shifts.model import Shift
from ..shifts.repository import ShiftRepository
from ..violations.model import Violation, ViolationRule
from ..violations.repository import ViolationRepository, ViolationRuleRepository

TABLES = (
    "employees",
    "shifts",
    "work_intervals",
    "break_intervals",
    "violation_rules",
    "violations",
    "employee_ratings",
    "employee_invites",
)


class InMemoryStore:
    def __init__(self):
        self.lock = threading.RLock()
        self.tables: dict[str, dict[int, Any]] = {name: {} for name in TABLES}
        self._last_ids: dict[str, int] = {name: 0 for name in TABLES}

    def next_id(self, table: str) -> int:
        self._last_ids[table] += 1
        return self._last_ids[table]

    def rows(self, table: str) -> list[Any]:
        return [self.tables[table][key] for key in sorted(self.tables[table])]

    def snapshot(self) -> tuple[dict[str, dict[int, Any]], dict[str, int]]:
        # Rows are frozen dataclasses, so copying each table dict is enough.
        return {name: dict(rows) for name, rows in self.tables.items()}, dict(self._last_ids)

    def restore(self, snapshot: tuple[dict[str, dict[int, Any]], dict[str, int]]) -> None:
        tables, last_ids = snapshot
        self.tables = tables
        self._last_ids = last_ids


class InMemoryTransactionManager:
    def __init__(self, store: InMemoryStore):
        self._store = store
        self._depth = 0

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._store.lock:
            if self._depth:
                self._depth += 1
                try:
                    yield
                finally:
                    self._depth -= 1
                return

            snapshot = self._store.snapshot()
            self._depth = 1
            try:
                yield
            except BaseException:
                self._store.restore(snapshot)
                raise
            finally:
                self._depth = 0


class InMemoryEmployeeRepository(EmployeeRepository):
    def __init__(self, store: InMemoryStore, *, clock=None):
        self._store = store
        self._clock = clock

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        with self._store.lock:
            return self._store.tables["employees"].get(int(employee_id))

    def get_by_telegram_id(self, telegram_user_id: str) -> Optional[Employee]:
        with self._store.lock:
            return next(
                (e for e in self._store.rows("employees") if e.telegram_user_id == telegram_user_id),
                None,
            )

    def list_by_company(self, company_id: int) -> Sequence[Employee]:
        with self._store.lock:
            return [e for e in self._store.rows("employees") if e.company_id == int(company_id)]

    def list_company_ids(self) -> Sequence[int]:
        with self._store.lock:
            return sorted({e.company_id for e in self._store.rows("employees")})

    def create(
        self,
        *,
        company_id: int,
        full_name: str,
        position: Optional[str] = None,
        status: EmployeeStatus = EmployeeStatus.ACTIVE,
        telegram_user_id: Optional[str] = None,
        timezone: Optional[str] = None,
    ) -> int:
        with self._store.lock:
            self._check_telegram_unique(telegram_user_id, None)
            employee_id = self._store.next_id("employees")
            self._store.tables["employees"][employee_id] = Employee(
                employee_id=employee_id,
                company_id=int(company_id),
                full_name=full_name,
                position=position,
                status=status,
                telegram_user_id=telegram_user_id,
                timezone=timezone,
                created_at=self._clock.now() if self._clock else None,
            )
            return employee_id

    def update_profile(
        self,
        *,
        employee_id: int,
        company_id: int,
        full_name: str,
        position: Optional[str],
        status: EmployeeStatus,
        telegram_user_id: Optional[str],
    ) -> bool:
        with self._store.lock:
            current = self._store.tables["employees"].get(int(employee_id))
            if not current:
                return False
            self._check_telegram_unique(telegram_user_id, current.employee_id)
            self._store.tables["employees"][current.employee_id] = replace(
                current,
                company_id=int(company_id),
                full_name=full_name,
                position=position,
                status=status,
                telegram_user_id=telegram_user_id,
            )
            return True

    def _check_telegram_unique(self, telegram_user_id: Optional[str], owner_id: Optional[int]) -> None:
        if telegram_user_id is None:
            return
        bound = self.get_by_telegram_id(telegram_user_id)
        if bound and bound.employee_id != owner_id:
            raise ConflictError("telegram_user_id is already bound to another employee")


class InMemoryShiftRepository(ShiftRepository):
    def __init__(self, store: InMemoryStore):
        self._store = store

    def get_by_id(self, shift_id: int) -> Optional[Shift]:
        with self._store.lock:
            return self._store.tables["shifts"].get(int(shift_id))

    def create(
        self,
        *,
        employee_id: int,
        company_id: int,
        planned_start_at: datetime,
        planned_end_at: datetime,
    ) -> int:
        with self._store.lock:
            shift_id = self._store.next_id("shifts")
            self._store.tables["shifts"][shift_id] = Shift(
                shift_id=shift_id,
                employee_id=int(employee_id),
                company_id=int(company_id),
                planned_start_at=planned_start_at,
                planned_end_at=planned_end_at,
            )
            return shift_id

    def update_status(
        self,
        *,
        shift_id: int,
        from_statuses: Collection[ShiftStatus],
        to_status: ShiftStatus,
        actual_start_at: Optional[datetime] = None,
        actual_end_at: Optional[datetime] = None,
    ) -> bool:
        with self._store.lock:
            current = self._store.tables["shifts"].get(int(shift_id))
            if not current or current.status not in from_statuses:
                return False
            self._store.tables["shifts"][current.shift_id] = replace(
                current,
                status=to_status,
                actual_start_at=actual_start_at or current.actual_start_at,
                actual_end_at=actual_end_at or current.actual_end_at,
            )
            return True

    def list_active_by_company(self, company_id: int) -> Sequence[Shift]:
        active = (ShiftStatus.ACTIVE, ShiftStatus.PAUSED)
        return self._select(lambda s: s.company_id == int(company_id) and s.status in active)

    def list_by_employee(self, employee_id: int, *, start: datetime, end: datetime) -> Sequence[Shift]:
        return self._select(lambda s: s.employee_id == int(employee_id) and start <= s.planned_start_at < end)

    def list_planned_between(self, company_id: int, *, start: datetime, end: datetime) -> Sequence[Shift]:
        return self._select(lambda s: s.company_id == int(company_id) and start <= s.planned_start_at < end)

    def _select(self, predicate) -> list[Shift]:
        with self._store.lock:
            rows = [s for s in self._store.rows("shifts") if predicate(s)]
        return sorted(rows, key=lambda s: (s.planned_start_at, s.shift_id))


class InMemoryIntervalRepository(IntervalRepository):
    def __init__(self, store: InMemoryStore):
        self._store = store

    def get_open_work(self, shift_id: int) -> Optional[WorkInterval]:
        return self._open("work_intervals", shift_id)

    def get_open_break(self, shift_id: int) -> Optional[BreakInterval]:
        return self._open("break_intervals", shift_id)

    def insert_work_if_none_open(self, *, shift_id: int, start_at: datetime) -> Optional[int]:
        with self._store.lock:
            if self._any_open(shift_id):
                return None
            interval_id = self._store.next_id("work_intervals")
            self._store.tables["work_intervals"][interval_id] = WorkInterval(
                interval_id=interval_id, shift_id=int(shift_id), start_at=start_at
            )
            return interval_id

    def insert_break_if_none_open(self, *, shift_id: int, start_at: datetime, kind: BreakKind) -> Optional[int]:
        with self._store.lock:
            if self._any_open(shift_id):
                return None
            interval_id = self._store.next_id("break_intervals")
            self._store.tables["break_intervals"][interval_id] = BreakInterval(
                interval_id=interval_id, shift_id=int(shift_id), start_at=start_at, kind=BreakKind(kind)
            )
            return interval_id

    def close_open_work(self, *, shift_id: int, end_at: datetime) -> Optional[int]:
        return self._close("work_intervals", shift_id, end_at)

    def close_open_break(self, *, shift_id: int, end_at: datetime) -> Optional[int]:
        return self._close("break_intervals", shift_id, end_at)

    def list_work(self, shift_id: int) -> Sequence[WorkInterval]:
        return self._list("work_intervals", shift_id)

    def list_breaks(self, shift_id: int) -> Sequence[BreakInterval]:
        return self._list("break_intervals", shift_id)

    def _any_open(self, shift_id: int) -> bool:
        return self._open("work_intervals", shift_id) is not None or self._open("break_intervals", shift_id) is not None

    def _open(self, table: str, shift_id: int):
        with self._store.lock:
            return next(
                (i for i in self._store.rows(table) if i.shift_id == int(shift_id) and i.end_at is None),
                None,
            )

    def _close(self, table: str, shift_id: int, end_at: datetime) -> Optional[int]:
        with self._store.lock:
            current = self._open(table, shift_id)
            if not current:
                return None
            self._store.tables[table][current.interval_id] = replace(current, end_at=end_at)
            return current.interval_id

    def _list(self, table: str, shift_id: int) -> list:
        with self._store.lock:
            rows = [i for i in self._store.rows(table) if i.shift_id == int(shift_id)]
        return sorted(rows, key=lambda i: (i.start_at, i.interval_id))


class InMemoryViolationRuleRepository(ViolationRuleRepository):
    def __init__(self, store: InMemoryStore):
        self._store = store

    def get_by_id(self, rule_id: int) -> Optional[ViolationRule]:
        with self._store.lock:
            return self._store.tables["violation_rules"].get(int(rule_id))

    def get_by_code(self, company_id: int, code: str) -> Optional[ViolationRule]:
        with self._store.lock:
            return next(
                (
                    r
                    for r in self._store.rows("violation_rules")
                    if r.company_id == int(company_id) and r.code == code
                ),
                None,
            )

    def list_by_company(self, company_id: int, *, active_only: bool = False) -> Sequence[ViolationRule]:
        with self._store.lock:
            rows = [
                r
                for r in self._store.rows("violation_rules")
                if r.company_id == int(company_id) and (r.is_active or not active_only)
            ]
        return sorted(rows, key=lambda r: r.code)

    def create(
        self,
        *,
        company_id: int,
        code: str,
        name: str,
        penalty_percent: Decimal,
        auto_detectable: bool,
    ) -> int:
        with self._store.lock:
            if self.get_by_code(company_id, code):
                raise ConflictError(f"Violation rule with code {code!r} already exists", code=code)
            rule_id = self._store.next_id("violation_rules")
            self._store.tables["violation_rules"][rule_id] = ViolationRule(
                rule_id=rule_id,
                company_id=int(company_id),
                code=code,
                name=name,
                penalty_percent=Decimal(penalty_percent),
                auto_detectable=bool(auto_detectable),
            )
            return rule_id

    def update(
        self,
        *,
        rule_id: int,
        name: str,
        penalty_percent: Decimal,
        auto_detectable: bool,
        is_active: bool,
    ) -> bool:
        with self._store.lock:
            current = self._store.tables["violation_rules"].get(int(rule_id))
            if not current:
                return False
            self._store.tables["violation_rules"][current.rule_id] = replace(
                current,
                name=name,
                penalty_percent=Decimal(penalty_percent),
                auto_detectable=bool(auto_detectable),
                is_active=bool(is_active),
            )
            return True


class InMemoryViolationRepository(ViolationRepository):
    def __init__(self, store: InMemoryStore):
        self._store = store

    def get_by_id(self, violation_id: int) -> Optional[Violation]:
        with self._store.lock:
            return self._store.tables["violations"].get(int(violation_id))

    def create(
        self,
        *,
        employee_id: int,
        company_id: int,
        rule_id: int,
        source: ViolationSource,
        penalty: Decimal,
        created_at: datetime,
        reason: Optional[str] = None,
        created_by: Optional[int] = None,
        shift_id: Optional[int] = None,
    ) -> int:
        with self._store.lock:
            violation_id = self._store.next_id("violations")
            self._store.tables["violations"][violation_id] = Violation(
                violation_id=violation_id,
                employee_id=int(employee_id),
                company_id=int(company_id),
                rule_id=int(rule_id),
                source=ViolationSource(source),
                penalty=Decimal(penalty),
                created_at=created_at,
                reason=reason,
                created_by=created_by,
                shift_id=shift_id,
            )
            return violation_id

    def list_by_employee(
        self,
        employee_id: int,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[Violation]:
        with self._store.lock:
            rows = [
                v
                for v in self._store.rows("violations")
                if v.employee_id == int(employee_id)
                and (start is None or v.created_at >= start)
                and (end is None or v.created_at < end)
            ]
        return sorted(rows, key=lambda v: (v.created_at, v.violation_id))

    def list_by_company(self, company_id: int, *, start: datetime, end: datetime) -> Sequence[Violation]:
        with self._store.lock:
            rows = [
                v
                for v in self._store.rows("violations")
                if v.company_id == int(company_id) and start <= v.created_at < end
            ]
        return sorted(rows, key=lambda v: (v.created_at, v.violation_id), reverse=True)

    def exists_for_shift(self, *, shift_id: int, rule_id: int) -> bool:
        with self._store.lock:
            return any(
                v.shift_id == int(shift_id) and v.rule_id == int(rule_id) for v in self._store.rows("violations")
            )


class InMemoryRatingRepository(RatingRepository):
    def __init__(self, store: InMemoryStore):
        self._store = store

    def get(self, employee_id: int, *, period_start: date, period_end: date) -> Optional[EmployeeRating]:
        with self._store.lock:
            return next(
                (
                    r
                    for r in self._store.rows("employee_ratings")
                    if r.employee_id == int(employee_id)
                    and r.period_start == period_start
                    and r.period_end == period_end
                ),
                None,
            )

    def upsert(
        self,
        *,
        employee_id: int,
        company_id: int,
        period_start: date,
        period_end: date,
        rating: Decimal,
        status: RatingStatus,
        origin: RatingOrigin,
        manual_adjustment: Decimal,
        updated_at: datetime,
    ) -> None:
        with self._store.lock:
            existing = self.get(employee_id, period_start=period_start, period_end=period_end)
            rating_id = existing.rating_id if existing else self._store.next_id("employee_ratings")
            self._store.tables["employee_ratings"][rating_id] = EmployeeRating(
                rating_id=rating_id,
                employee_id=int(employee_id),
                company_id=int(company_id),
                period_start=period_start,
                period_end=period_end,
                rating=Decimal(rating),
                status=status,
                updated_at=updated_at,
                origin=origin,
                manual_adjustment=Decimal(manual_adjustment),
            )

    def list_by_company(self, company_id: int, *, period_start: date, period_end: date) -> Sequence[EmployeeRating]:
        with self._store.lock:
            rows = [
                r
                for r in self._store.rows("employee_ratings")
                if r.company_id == int(company_id) and r.period_start == period_start and r.period_end == period_end
            ]
        return sorted(rows, key=lambda r: (-r.rating, r.employee_id))


class InMemoryInviteRepository(InviteRepository):
    def __init__(self, store: InMemoryStore):
        self._store = store

    def create(
        self,
        *,
        company_id: int,
        code: str,
        created_at: datetime,
        full_name: Optional[str] = None,
        position: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> int:
        with self._store.lock:
            if self.get_by_code(code):
                raise ConflictError("Invite code already exists")
            invite_id = self._store.next_id("employee_invites")
            self._store.tables["employee_invites"][invite_id] = EmployeeInvite(
                invite_id=invite_id,
                company_id=int(company_id),
                code=code,
                created_at=created_at,
                full_name=full_name,
                position=position,
                expires_at=expires_at,
            )
            return invite_id

    def get_by_code(self, code: str, *, for_update: bool = False) -> Optional[EmployeeInvite]:
        # Row locks are implied: a transaction holds the store lock until it ends.
        with self._store.lock:
            return next((i for i in self._store.rows("employee_invites") if i.code == code), None)

    def claim(self, *, code: str, employee_id: int, used_at: datetime) -> bool:
        with self._store.lock:
            current = self.get_by_code(code)
            if not current or current.used_by_employee is not None:
                return False
            self._store.tables["employee_invites"][current.invite_id] = replace(
                current, used_by_employee=int(employee_id), used_at=used_at
            )
            return True

    def list_by_company(self, company_id: int, *, unused_only: bool = False) -> Sequence[EmployeeInvite]:
        with self._store.lock:
            rows = [
                i
                for i in self._store.rows("employee_invites")
                if i.company_id == int(company_id) and (i.used_by_employee is None or not unused_only)
            ]
        return sorted(rows, key=lambda i: (i.created_at, i.invite_id), reverse=True)

    def delete_expired(self, *, created_before: datetime, now: datetime) -> int:
        with self._store.lock:
            doomed = [
                i.invite_id
                for i in self._store.rows("employee_invites")
                if i.used_by_employee is None
                and (i.created_at < created_before or (i.expires_at is not None and i.expires_at <= now))
            ]
            for invite_id in doomed:
                del self._store.tables["employee_invites"][invite_id]
            return len(doomed)
