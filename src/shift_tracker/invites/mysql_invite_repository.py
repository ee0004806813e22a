from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import EmployeeInvite
from .repository import InviteRepository

_COLUMNS = "invite_id, company_id, code, full_name, position, created_at, expires_at, used_by_employee, used_at"


def _row_to_invite(r: dict) -> EmployeeInvite:
    return EmployeeInvite(
        invite_id=int(r["invite_id"]),
        company_id=int(r["company_id"]),
        code=r["code"],
        created_at=r["created_at"],
        full_name=r.get("full_name"),
        position=r.get("position"),
        expires_at=r.get("expires_at"),
        used_by_employee=int(r["used_by_employee"]) if r.get("used_by_employee") is not None else None,
        used_at=r.get("used_at"),
    )


class MySQLInviteRepository(InviteRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO employee_invites(company_id, code, full_name, position, created_at, expires_at)
                    VALUES(%s,%s,%s,%s,%s,%s)
                    """,
                    (int(company_id), code, full_name, position, created_at, expires_at),
                )
                return int(cur.lastrowid)
        except IntegrityError as e:
            if is_duplicate_key(e):
                raise ConflictError("Invite code already exists") from e
            raise

    def get_by_code(self, code: str, *, for_update: bool = False) -> Optional[EmployeeInvite]:
        lock = " FOR UPDATE" if for_update else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employee_invites WHERE code=%s{lock}", (code,))
            r = fetchone(cur)
            return _row_to_invite(r) if r else None

    def claim(self, *, code: str, employee_id: int, used_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE employee_invites
                SET used_by_employee=%s, used_at=%s
                WHERE code=%s AND used_by_employee IS NULL
                """,
                (int(employee_id), used_at, code),
            )
            return cur.rowcount > 0

    def list_by_company(self, company_id: int, *, unused_only: bool = False) -> Sequence[EmployeeInvite]:
        where = "company_id=%s"
        if unused_only:
            where += " AND used_by_employee IS NULL"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM employee_invites WHERE {where} ORDER BY created_at DESC, invite_id DESC",
                (int(company_id),),
            )
            return [_row_to_invite(r) for r in fetchall(cur)]

    def delete_expired(self, *, created_before: datetime, now: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                DELETE FROM employee_invites
                WHERE used_by_employee IS NULL
                  AND (created_at < %s OR (expires_at IS NOT NULL AND expires_at <= %s))
                """,
                (created_before, now),
            )
            return int(cur.rowcount)
