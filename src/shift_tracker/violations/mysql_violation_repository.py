from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..core.enums import ViolationSource
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetchall, fetchone, is_duplicate_key
from .model import Violation, ViolationRule
from .repository import ViolationRepository, ViolationRuleRepository

_RULE_COLUMNS = "rule_id, company_id, code, name, penalty_percent, auto_detectable, is_active"
_VIOLATION_COLUMNS = """
    violation_id, employee_id, company_id, rule_id, shift_id, source,
    penalty, reason, created_by, created_at
"""


def _row_to_rule(r: dict) -> ViolationRule:
    return ViolationRule(
        rule_id=int(r["rule_id"]),
        company_id=int(r["company_id"]),
        code=r["code"],
        name=r["name"],
        penalty_percent=as_decimal(r["penalty_percent"]),
        auto_detectable=bool(r["auto_detectable"]),
        is_active=bool(r["is_active"]),
    )


def _row_to_violation(r: dict) -> Violation:
    return Violation(
        violation_id=int(r["violation_id"]),
        employee_id=int(r["employee_id"]),
        company_id=int(r["company_id"]),
        rule_id=int(r["rule_id"]),
        source=ViolationSource(r["source"]),
        penalty=as_decimal(r["penalty"]),
        created_at=r["created_at"],
        reason=r.get("reason"),
        created_by=int(r["created_by"]) if r.get("created_by") is not None else None,
        shift_id=int(r["shift_id"]) if r.get("shift_id") is not None else None,
    )


class MySQLViolationRuleRepository(ViolationRuleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, rule_id: int) -> Optional[ViolationRule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_RULE_COLUMNS} FROM violation_rules WHERE rule_id=%s", (int(rule_id),))
            r = fetchone(cur)
            return _row_to_rule(r) if r else None

    def get_by_code(self, company_id: int, code: str) -> Optional[ViolationRule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_RULE_COLUMNS} FROM violation_rules WHERE company_id=%s AND code=%s",
                (int(company_id), code),
            )
            r = fetchone(cur)
            return _row_to_rule(r) if r else None

    def list_by_company(self, company_id: int, *, active_only: bool = False) -> Sequence[ViolationRule]:
        clauses = ["company_id=%s"]
        params: list[object] = [int(company_id)]
        if active_only:
            clauses.append("is_active=1")

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_RULE_COLUMNS}
                FROM violation_rules
                WHERE {" AND ".join(clauses)}
                ORDER BY code
                """,
                tuple(params),
            )
            return [_row_to_rule(r) for r in fetchall(cur)]

    def create(
        self,
        *,
        company_id: int,
        code: str,
        name: str,
        penalty_percent: Decimal,
        auto_detectable: bool,
    ) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO violation_rules(company_id, code, name, penalty_percent, auto_detectable, is_active)
                    VALUES(%s,%s,%s,%s,%s,1)
                    """,
                    (int(company_id), code, name, penalty_percent, int(bool(auto_detectable))),
                )
                return int(cur.lastrowid)
        except IntegrityError as e:
            if is_duplicate_key(e):
                raise ConflictError(f"Violation rule with code {code!r} already exists", code=code) from e
            raise

    def update(
        self,
        *,
        rule_id: int,
        name: str,
        penalty_percent: Decimal,
        auto_detectable: bool,
        is_active: bool,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE violation_rules
                SET name=%s, penalty_percent=%s, auto_detectable=%s, is_active=%s
                WHERE rule_id=%s
                """,
                (name, penalty_percent, int(bool(auto_detectable)), int(bool(is_active)), int(rule_id)),
            )
            return cur.rowcount > 0


class MySQLViolationRepository(ViolationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, violation_id: int) -> Optional[Violation]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_VIOLATION_COLUMNS} FROM violations WHERE violation_id=%s",
                (int(violation_id),),
            )
            r = fetchone(cur)
            return _row_to_violation(r) if r else None

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO violations(
                    employee_id, company_id, rule_id, shift_id, source, penalty, reason, created_by, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(employee_id),
                    int(company_id),
                    int(rule_id),
                    shift_id,
                    source.value,
                    penalty,
                    reason,
                    created_by,
                    created_at,
                ),
            )
            return int(cur.lastrowid)

    def list_by_employee(
        self,
        employee_id: int,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[Violation]:
        clauses = ["employee_id=%s"]
        params: list[object] = [int(employee_id)]
        if start is not None:
            clauses.append("created_at >= %s")
            params.append(start)
        if end is not None:
            clauses.append("created_at < %s")
            params.append(end)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_VIOLATION_COLUMNS}
                FROM violations
                WHERE {" AND ".join(clauses)}
                ORDER BY created_at, violation_id
                """,
                tuple(params),
            )
            return [_row_to_violation(r) for r in fetchall(cur)]

    def list_by_company(self, company_id: int, *, start: datetime, end: datetime) -> Sequence[Violation]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_VIOLATION_COLUMNS}
                FROM violations
                WHERE company_id=%s AND created_at >= %s AND created_at < %s
                ORDER BY created_at DESC, violation_id DESC
                """,
                (int(company_id), start, end),
            )
            return [_row_to_violation(r) for r in fetchall(cur)]

    def exists_for_shift(self, *, shift_id: int, rule_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT 1 AS found FROM violations WHERE shift_id=%s AND rule_id=%s LIMIT 1",
                (int(shift_id), int(rule_id)),
            )
            return fetchone(cur) is not None
