from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Sequence

from ..core.enums import RatingOrigin, RatingStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetchall, fetchone
from .model import EmployeeRating
from .repository import RatingRepository

_COLUMNS = """
    rating_id, employee_id, company_id, period_start, period_end,
    rating, status, origin, manual_adjustment, updated_at
"""


def _row_to_rating(r: dict) -> EmployeeRating:
    return EmployeeRating(
        rating_id=int(r["rating_id"]),
        employee_id=int(r["employee_id"]),
        company_id=int(r["company_id"]),
        period_start=r["period_start"],
        period_end=r["period_end"],
        rating=as_decimal(r["rating"]),
        status=RatingStatus(r["status"]),
        origin=RatingOrigin(r["origin"]),
        manual_adjustment=as_decimal(r["manual_adjustment"]),
        updated_at=r["updated_at"],
    )


class MySQLRatingRepository(RatingRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, employee_id: int, *, period_start: date, period_end: date) -> Optional[EmployeeRating]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM employee_ratings
                WHERE employee_id=%s AND period_start=%s AND period_end=%s
                """,
                (int(employee_id), period_start, period_end),
            )
            r = fetchone(cur)
            return _row_to_rating(r) if r else None

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO employee_ratings(
                    employee_id, company_id, period_start, period_end,
                    rating, status, origin, manual_adjustment, updated_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    company_id=VALUES(company_id),
                    rating=VALUES(rating),
                    status=VALUES(status),
                    origin=VALUES(origin),
                    manual_adjustment=VALUES(manual_adjustment),
                    updated_at=VALUES(updated_at)
                """,
                (
                    int(employee_id),
                    int(company_id),
                    period_start,
                    period_end,
                    rating,
                    status.value,
                    origin.value,
                    manual_adjustment,
                    updated_at,
                ),
            )

    def list_by_company(self, company_id: int, *, period_start: date, period_end: date) -> Sequence[EmployeeRating]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM employee_ratings
                WHERE company_id=%s AND period_start=%s AND period_end=%s
                ORDER BY rating DESC, employee_id
                """,
                (int(company_id), period_start, period_end),
            )
            return [_row_to_rating(r) for r in fetchall(cur)]
