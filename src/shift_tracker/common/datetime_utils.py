from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta


@dataclass(frozen=True)
class Period:
    """Half-open date range [start, end)."""

    start: date
    end: date

    def contains(self, moment: datetime) -> bool:
        lower, upper = period_bounds(self.start, self.end)
        return lower <= moment < upper


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_iso_datetime(value: str) -> datetime:
    return datetime.fromisoformat(value)


def period_bounds(start: date, end: date) -> tuple[datetime, datetime]:
    return datetime.combine(start, time.min), datetime.combine(end, time.min)


def add_months(day: date, months: int) -> date:
    month_index = day.year * 12 + (day.month - 1) + months
    return date(month_index // 12, month_index % 12 + 1, 1)


def month_period(day: date) -> Period:
    start = day.replace(day=1)
    return Period(start=start, end=add_months(start, 1))


def rating_periods(today: date) -> dict[str, Period]:
    """Periods offered to the rating UI: current/last month, quarter, year."""
    current = month_period(today)
    quarter_start = date(today.year, (today.month - 1) // 3 * 3 + 1, 1)
    return {
        "current": current,
        "last": Period(start=add_months(current.start, -1), end=current.start),
        "quarter": Period(start=quarter_start, end=add_months(quarter_start, 3)),
        "year": Period(start=date(today.year, 1, 1), end=date(today.year + 1, 1, 1)),
    }


def minutes_between(start: datetime, end: datetime) -> float:
    return (end - start) / timedelta(minutes=1)
