from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import BreakKind
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import BreakInterval, WorkInterval
from .repository import IntervalRepository

_NONE_OPEN = """
    NOT EXISTS (SELECT 1 FROM work_intervals w WHERE w.shift_id=%s AND w.end_at IS NULL)
    AND NOT EXISTS (SELECT 1 FROM break_intervals b WHERE b.shift_id=%s AND b.end_at IS NULL)
"""


def _row_to_work(r: dict) -> WorkInterval:
    return WorkInterval(
        interval_id=int(r["interval_id"]),
        shift_id=int(r["shift_id"]),
        start_at=r["start_at"],
        end_at=r.get("end_at"),
    )


def _row_to_break(r: dict) -> BreakInterval:
    return BreakInterval(
        interval_id=int(r["interval_id"]),
        shift_id=int(r["shift_id"]),
        start_at=r["start_at"],
        end_at=r.get("end_at"),
        kind=BreakKind(r["kind"]),
    )


class MySQLIntervalRepository(IntervalRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_open_work(self, shift_id: int) -> Optional[WorkInterval]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT interval_id, shift_id, start_at, end_at
                FROM work_intervals
                WHERE shift_id=%s AND end_at IS NULL
                """,
                (int(shift_id),),
            )
            r = fetchone(cur)
            return _row_to_work(r) if r else None

    def get_open_break(self, shift_id: int) -> Optional[BreakInterval]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT interval_id, shift_id, start_at, end_at, kind
                FROM break_intervals
                WHERE shift_id=%s AND end_at IS NULL
                """,
                (int(shift_id),),
            )
            r = fetchone(cur)
            return _row_to_break(r) if r else None

    def insert_work_if_none_open(self, *, shift_id: int, start_at: datetime) -> Optional[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                INSERT INTO work_intervals(shift_id, start_at)
                SELECT %s, %s FROM DUAL
                WHERE {_NONE_OPEN}
                """,
                (int(shift_id), start_at, int(shift_id), int(shift_id)),
            )
            if cur.rowcount == 0:
                return None
            return int(cur.lastrowid)

    def insert_break_if_none_open(self, *, shift_id: int, start_at: datetime, kind: BreakKind) -> Optional[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                INSERT INTO break_intervals(shift_id, start_at, kind)
                SELECT %s, %s, %s FROM DUAL
                WHERE {_NONE_OPEN}
                """,
                (int(shift_id), start_at, kind.value, int(shift_id), int(shift_id)),
            )
            if cur.rowcount == 0:
                return None
            return int(cur.lastrowid)

    def _close_open(self, table: str, *, shift_id: int, end_at: datetime) -> Optional[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT interval_id FROM {table} WHERE shift_id=%s AND end_at IS NULL FOR UPDATE",
                (int(shift_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            interval_id = int(r["interval_id"])
            cur.execute(
                f"UPDATE {table} SET end_at=%s WHERE interval_id=%s AND end_at IS NULL",
                (end_at, interval_id),
            )
            return interval_id if cur.rowcount > 0 else None

    def close_open_work(self, *, shift_id: int, end_at: datetime) -> Optional[int]:
        return self._close_open("work_intervals", shift_id=shift_id, end_at=end_at)

    def close_open_break(self, *, shift_id: int, end_at: datetime) -> Optional[int]:
        return self._close_open("break_intervals", shift_id=shift_id, end_at=end_at)

    def list_work(self, shift_id: int) -> Sequence[WorkInterval]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT interval_id, shift_id, start_at, end_at
                FROM work_intervals
                WHERE shift_id=%s
                ORDER BY start_at, interval_id
                """,
                (int(shift_id),),
            )
            return [_row_to_work(r) for r in fetchall(cur)]

    def list_breaks(self, shift_id: int) -> Sequence[BreakInterval]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT interval_id, shift_id, start_at, end_at, kind
                FROM break_intervals
                WHERE shift_id=%s
                ORDER BY start_at, interval_id
                """,
                (int(shift_id),),
            )
            return [_row_to_break(r) for r in fetchall(cur)]
