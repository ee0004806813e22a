from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable, Optional, Sequence

from ..common.clock import Clock, SystemClock
from ..common.transaction import TransactionManager
from ..common.validators import optional_text, require_naive_datetime, require_non_empty
from ..core.constants import DEFAULT_INVITE_RETENTION_MINUTES, INVITE_CODE_ATTEMPTS, INVITE_CODE_BYTES
from ..core.enums import EmployeeStatus
from ..core.exceptions import (
    AlreadyUsedError,
    ConflictError,
    InviteExpiredError,
    NotFoundError,
    ScopeMismatchError,
    ValidationError,
)
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from .model import EmployeeInvite, InviteRedemption
from .repository import InviteRepository

logger = logging.getLogger(__name__)

DEFAULT_EMPLOYEE_NAME = "Employee"


def generate_invite_code() -> str:
    return secrets.token_hex(INVITE_CODE_BYTES)


class InviteService:
    """Use case: issue -> redeem -> expire employee invites."""

    def __init__(
        self,
        invites: InviteRepository,
        employees: EmployeeRepository,
        tx: TransactionManager,
        *,
        clock: Optional[Clock] = None,
        retention_minutes: int = DEFAULT_INVITE_RETENTION_MINUTES,
        code_factory: Callable[[], str] = generate_invite_code,
    ):
        self._invites = invites
        self._employees = employees
        self._tx = tx
        self._clock = clock or SystemClock()
        self._retention = timedelta(minutes=int(retention_minutes))
        self._code_factory = code_factory

    def issue_invite(
        self,
        *,
        company_id: int,
        full_name: Optional[str] = None,
        position: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> EmployeeInvite:
        now = self._clock.now()
        if expires_at is not None and require_naive_datetime(expires_at, "expires_at") <= now:
            raise ValidationError("expires_at must be in the future", field="expires_at")

        for attempt in range(1, INVITE_CODE_ATTEMPTS + 1):
            code = self._code_factory()
            try:
                self._invites.create(
                    company_id=int(company_id),
                    code=code,
                    created_at=now,
                    full_name=optional_text(full_name, "full_name"),
                    position=optional_text(position, "position"),
                    expires_at=expires_at,
                )
            except ConflictError:
                logger.warning("Invite code collision (attempt %d/%d)", attempt, INVITE_CODE_ATTEMPTS)
                continue
            logger.info("Issued invite for company %s", company_id)
            return self.get_by_code(code)

        raise ConflictError("Could not generate a unique invite code", attempts=INVITE_CODE_ATTEMPTS)

    def get_by_code(self, code: str, *, for_update: bool = False) -> EmployeeInvite:
        invite = self._invites.get_by_code(require_non_empty(code, "code"), for_update=for_update)
        if not invite:
            raise NotFoundError("Invite", code)
        return invite

    def list_by_company(self, company_id: int, *, unused_only: bool = False) -> Sequence[EmployeeInvite]:
        return self._invites.list_by_company(int(company_id), unused_only=unused_only)

    def redeem_invite(
        self,
        code: str,
        *,
        employee_id: Optional[int] = None,
        telegram_user_id: Optional[str] = None,
    ) -> InviteRedemption:
        if telegram_user_id is not None:
            telegram_user_id = optional_text(str(telegram_user_id), "telegram_user_id")
        if (employee_id is None) == (telegram_user_id is None):
            raise ValidationError("Exactly one of employee_id or telegram_user_id is required")

        now = self._clock.now()
        with self._tx.transaction():
            # Row lock: concurrent redeemers of one code run one at a time.
            invite = self.get_by_code(code, for_update=True)
            if invite.is_used:
                raise AlreadyUsedError("Invite already used", code=invite.code)
            if invite.is_expired(now):
                raise InviteExpiredError("Invite has expired", code=invite.code)

            if telegram_user_id is not None:
                employee, created = self._bind_telegram_identity(invite, telegram_user_id)
            else:
                employee, created = self._bind_existing_employee(invite, int(employee_id)), False

            if not self._invites.claim(code=invite.code, employee_id=employee.employee_id, used_at=now):
                raise AlreadyUsedError("Invite already used", code=invite.code)

            redeemed = self.get_by_code(invite.code)

        logger.info("Invite for company %s redeemed by employee %s", invite.company_id, employee.employee_id)
        return InviteRedemption(invite=redeemed, employee=employee, created_employee=created)

    def cleanup_expired(self) -> int:
        now = self._clock.now()
        removed = self._invites.delete_expired(created_before=now - self._retention, now=now)
        if removed:
            logger.info("Removed %d expired invites", removed)
        return removed

    def _bind_telegram_identity(self, invite: EmployeeInvite, telegram_user_id: str) -> tuple[Employee, bool]:
        existing = self._employees.get_by_telegram_id(telegram_user_id)
        if existing:
            self._employees.update_profile(
                employee_id=existing.employee_id,
                company_id=invite.company_id,
                full_name=invite.full_name or existing.full_name,
                position=invite.position or existing.position,
                status=EmployeeStatus.ACTIVE,
                telegram_user_id=telegram_user_id,
            )
            return self._get_employee(existing.employee_id), False

        new_id = self._employees.create(
            company_id=invite.company_id,
            full_name=invite.full_name or DEFAULT_EMPLOYEE_NAME,
            position=invite.position,
            status=EmployeeStatus.ACTIVE,
            telegram_user_id=telegram_user_id,
        )
        return self._get_employee(new_id), True

    def _bind_existing_employee(self, invite: EmployeeInvite, employee_id: int) -> Employee:
        employee = self._get_employee(employee_id)
        if employee.company_id != invite.company_id:
            raise ScopeMismatchError(
                "Employee does not belong to the invite's company",
                employee_id=employee.employee_id,
                company_id=invite.company_id,
            )
        self._employees.update_profile(
            employee_id=employee.employee_id,
            company_id=employee.company_id,
            full_name=invite.full_name or employee.full_name,
            position=invite.position or employee.position,
            status=employee.status,
            telegram_user_id=employee.telegram_user_id,
        )
        return self._get_employee(employee.employee_id)

    def _get_employee(self, employee_id: int) -> Employee:
        employee = self._employees.get_by_id(int(employee_id))
        if not employee:
            raise NotFoundError("Employee", employee_id)
        return employee
