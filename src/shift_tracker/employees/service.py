from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..common.validators import optional_text, require_non_empty, require_positive_id
from ..core.enums import EmployeeStatus
from ..core.exceptions import NotFoundError, ValidationError
from .model import Employee
from .repository import EmployeeRepository

logger = logging.getLogger(__name__)


class EmployeeService:
    def __init__(self, employees: EmployeeRepository):
        self._employees = employees

    def create_employee(
        self,
        *,
        company_id: int,
        full_name: str,
        position: Optional[str] = None,
        status: str = EmployeeStatus.ACTIVE.value,
        telegram_user_id: Optional[str] = None,
        timezone: Optional[str] = None,
    ) -> Employee:
        company_id = require_positive_id(company_id, "company_id")
        full_name = require_non_empty(full_name, "full_name")
        try:
            status_enum = EmployeeStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown employee status: {status}", field="status")

        employee_id = self._employees.create(
            company_id=company_id,
            full_name=full_name,
            position=optional_text(position, "position"),
            status=status_enum,
            telegram_user_id=optional_text(telegram_user_id, "telegram_user_id"),
            timezone=optional_text(timezone, "timezone"),
        )
        logger.info("Created employee %s in company %s", employee_id, company_id)
        return self.get_employee(employee_id)

    def get_employee(self, employee_id: int) -> Employee:
        employee = self._employees.get_by_id(int(employee_id))
        if not employee:
            raise NotFoundError("Employee", employee_id)
        return employee

    def list_by_company(self, company_id: int) -> Sequence[Employee]:
        return self._employees.list_by_company(int(company_id))
