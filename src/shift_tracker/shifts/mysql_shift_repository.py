from __future__ import annotations

from datetime import datetime
from typing import Collection, Optional, Sequence

from ..core.enums import ShiftStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Shift
from .repository import ShiftRepository

_COLUMNS = """
    shift_id, employee_id, company_id, planned_start_at, planned_end_at,
    actual_start_at, actual_end_at, status, created_at
"""


def _row_to_shift(r: dict) -> Shift:
    return Shift(
        shift_id=int(r["shift_id"]),
        employee_id=int(r["employee_id"]),
        company_id=int(r["company_id"]),
        planned_start_at=r["planned_start_at"],
        planned_end_at=r["planned_end_at"],
        status=ShiftStatus(r["status"]),
        actual_start_at=r.get("actual_start_at"),
        actual_end_at=r.get("actual_end_at"),
        created_at=r.get("created_at"),
    )


class MySQLShiftRepository(ShiftRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, shift_id: int) -> Optional[Shift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM shifts WHERE shift_id=%s", (int(shift_id),))
            r = fetchone(cur)
            return _row_to_shift(r) if r else None

    def create(
        self,
        *,
        employee_id: int,
        company_id: int,
        planned_start_at: datetime,
        planned_end_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO shifts(employee_id, company_id, planned_start_at, planned_end_at, status)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (int(employee_id), int(company_id), planned_start_at, planned_end_at, ShiftStatus.SCHEDULED.value),
            )
            return int(cur.lastrowid)

    def update_status(
        self,
        *,
        shift_id: int,
        from_statuses: Collection[ShiftStatus],
        to_status: ShiftStatus,
        actual_start_at: Optional[datetime] = None,
        actual_end_at: Optional[datetime] = None,
    ) -> bool:
        expected = [s.value for s in from_statuses]
        if not expected:
            return False
        placeholders = ",".join(["%s"] * len(expected))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE shifts
                SET status=%s,
                    actual_start_at=COALESCE(%s, actual_start_at),
                    actual_end_at=COALESCE(%s, actual_end_at)
                WHERE shift_id=%s AND status IN ({placeholders})
                """,
                (to_status.value, actual_start_at, actual_end_at, int(shift_id), *expected),
            )
            return cur.rowcount > 0

    def list_active_by_company(self, company_id: int) -> Sequence[Shift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM shifts
                WHERE company_id=%s AND status IN (%s, %s)
                ORDER BY planned_start_at, shift_id
                """,
                (int(company_id), ShiftStatus.ACTIVE.value, ShiftStatus.PAUSED.value),
            )
            return [_row_to_shift(r) for r in fetchall(cur)]

    def list_by_employee(self, employee_id: int, *, start: datetime, end: datetime) -> Sequence[Shift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM shifts
                WHERE employee_id=%s AND planned_start_at >= %s AND planned_start_at < %s
                ORDER BY planned_start_at, shift_id
                """,
                (int(employee_id), start, end),
            )
            return [_row_to_shift(r) for r in fetchall(cur)]

    def list_planned_between(self, company_id: int, *, start: datetime, end: datetime) -> Sequence[Shift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM shifts
                WHERE company_id=%s AND planned_start_at >= %s AND planned_start_at < %s
                ORDER BY planned_start_at, shift_id
                """,
                (int(company_id), start, end),
            )
            return [_row_to_shift(r) for r in fetchall(cur)]
