from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import EmployeeStatus
from .model import Employee


class EmployeeRepository(Protocol):
    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def get_by_telegram_id(self, telegram_user_id: str) -> Optional[Employee]:
        raise NotImplementedError

    def list_by_company(self, company_id: int) -> Sequence[Employee]:
        raise NotImplementedError

    def list_company_ids(self) -> Sequence[int]:
        raise NotImplementedError

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
        raise NotImplementedError

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
        raise NotImplementedError
