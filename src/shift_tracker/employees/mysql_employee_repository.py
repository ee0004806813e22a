from __future__ import annotations

from typing import Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..core.enums import EmployeeStatus
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import Employee
from .repository import EmployeeRepository

_COLUMNS = "employee_id, company_id, full_name, position, status, telegram_user_id, timezone, created_at"


def _row_to_employee(r: dict) -> Employee:
    return Employee(
        employee_id=int(r["employee_id"]),
        company_id=int(r["company_id"]),
        full_name=r["full_name"],
        position=r.get("position"),
        status=EmployeeStatus(r["status"]),
        telegram_user_id=r.get("telegram_user_id"),
        timezone=r.get("timezone"),
        created_at=r.get("created_at"),
    )


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE employee_id=%s", (int(employee_id),))
            r = fetchone(cur)
            return _row_to_employee(r) if r else None

    def get_by_telegram_id(self, telegram_user_id: str) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE telegram_user_id=%s", (str(telegram_user_id),))
            r = fetchone(cur)
            return _row_to_employee(r) if r else None

    def list_by_company(self, company_id: int) -> Sequence[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM employees WHERE company_id=%s ORDER BY employee_id",
                (int(company_id),),
            )
            return [_row_to_employee(r) for r in fetchall(cur)]

    def list_company_ids(self) -> Sequence[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT DISTINCT company_id FROM employees ORDER BY company_id")
            return [int(r["company_id"]) for r in fetchall(cur)]

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
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO employees(company_id, full_name, position, status, telegram_user_id, timezone)
                    VALUES(%s,%s,%s,%s,%s,%s)
                    """,
                    (int(company_id), full_name, position, status.value, telegram_user_id, timezone),
                )
                return int(cur.lastrowid)
        except IntegrityError as e:
            if is_duplicate_key(e):
                raise ConflictError("telegram_user_id is already bound to another employee") from e
            raise

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE employees
                SET company_id=%s, full_name=%s, position=%s, status=%s, telegram_user_id=%s
                WHERE employee_id=%s
                """,
                (int(company_id), full_name, position, status.value, telegram_user_id, int(employee_id)),
            )
            return cur.rowcount > 0
