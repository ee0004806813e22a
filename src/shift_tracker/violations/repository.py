from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ..core.enums import ViolationSource
from .model import Violation, ViolationRule


class ViolationRuleRepository(Protocol):
    def get_by_id(self, rule_id: int) -> Optional[ViolationRule]:
        raise NotImplementedError

    def get_by_code(self, company_id: int, code: str) -> Optional[ViolationRule]:
        raise NotImplementedError

    def list_by_company(self, company_id: int, *, active_only: bool = False) -> Sequence[ViolationRule]:
        raise NotImplementedError

    def create(
        self,
        *,
        company_id: int,
        code: str,
        name: str,
        penalty_percent: Decimal,
        auto_detectable: bool,
    ) -> int:
        """Raises ConflictError when (company_id, code) already exists."""

        raise NotImplementedError

    def update(
        self,
        *,
        rule_id: int,
        name: str,
        penalty_percent: Decimal,
        auto_detectable: bool,
        is_active: bool,
    ) -> bool:
        raise NotImplementedError


class ViolationRepository(Protocol):
    def get_by_id(self, violation_id: int) -> Optional[Violation]:
        raise NotImplementedError

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
        raise NotImplementedError

    def list_by_employee(
        self,
        employee_id: int,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[Violation]:
        """Violations with start <= created_at < end (bounds optional)."""

        raise NotImplementedError

    def list_by_company(self, company_id: int, *, start: datetime, end: datetime) -> Sequence[Violation]:
        raise NotImplementedError

    def exists_for_shift(self, *, shift_id: int, rule_id: int) -> bool:
        raise NotImplementedError
