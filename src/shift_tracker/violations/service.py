from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence

from ..common.clock import Clock, SystemClock
from ..common.validators import optional_text, require_decimal, require_non_empty
from ..core.constants import PENALTY_MAX, PENALTY_MIN
from ..core.enums import ViolationSource
from ..core.exceptions import NotFoundError, RuleInactiveError, ScopeMismatchError, ValidationError
from ..employees.repository import EmployeeRepository
from ..notifications.cache import CacheInvalidator
from ..notifications.side_effects import BestEffort
from ..ratings.service import RatingEngine
from .model import Violation, ViolationRule
from .repository import ViolationRepository, ViolationRuleRepository

logger = logging.getLogger(__name__)


class ViolationRecorder:
    """Use case: append a violation, then refresh the employee's rating.

    The violation row is the primary write. Rating recomputation and cache
    invalidation run afterwards through ``BestEffort`` and never undo it.
    """

    def __init__(
        self,
        violations: ViolationRepository,
        rules: ViolationRuleRepository,
        employees: EmployeeRepository,
        ratings: RatingEngine,
        *,
        clock: Optional[Clock] = None,
        cache: Optional[CacheInvalidator] = None,
        side_effects: Optional[BestEffort] = None,
        allow_manual_on_inactive_auto_rules: bool = True,
    ):
        self._violations = violations
        self._rules = rules
        self._employees = employees
        self._ratings = ratings
        self._clock = clock or SystemClock()
        self._cache = cache
        self._side_effects = side_effects or BestEffort()
        self._allow_manual_on_inactive_auto_rules = allow_manual_on_inactive_auto_rules

    def record_violation(
        self,
        *,
        employee_id: int,
        company_id: int,
        rule_id: int,
        source: ViolationSource,
        reason: Optional[str] = None,
        created_by: Optional[int] = None,
        shift_id: Optional[int] = None,
    ) -> Violation:
        source = ViolationSource(source)

        employee = self._employees.get_by_id(int(employee_id))
        if not employee:
            raise NotFoundError("Employee", employee_id)
        rule = self._rules.get_by_id(int(rule_id))
        if not rule:
            raise NotFoundError("ViolationRule", rule_id)

        if employee.company_id != int(company_id):
            raise ScopeMismatchError(
                "Employee does not belong to this company",
                employee_id=employee.employee_id,
                company_id=company_id,
            )
        if rule.company_id != int(company_id):
            raise ScopeMismatchError(
                "Violation rule does not belong to this company",
                rule_id=rule.rule_id,
                company_id=company_id,
            )

        if not rule.is_active and not self._accepts_inactive(rule, source):
            raise RuleInactiveError(
                f"Violation rule {rule.code!r} is inactive",
                rule_id=rule.rule_id,
                source=source.value,
            )

        violation_id = self._violations.create(
            employee_id=employee.employee_id,
            company_id=employee.company_id,
            rule_id=rule.rule_id,
            source=source,
            penalty=rule.penalty_percent,
            created_at=self._clock.now(),
            reason=optional_text(reason, "reason"),
            created_by=created_by,
            shift_id=shift_id,
        )
        violation = self._violations.get_by_id(violation_id)
        if not violation:
            raise NotFoundError("Violation", violation_id)

        logger.info(
            "Recorded %s violation %s (%s, -%s) for employee %s",
            source.value,
            violation.violation_id,
            rule.code,
            violation.penalty,
            employee.employee_id,
        )

        self._side_effects.run(
            f"rating recalculation for employee {employee.employee_id}",
            self._ratings.recalculate_current,
            employee.employee_id,
        )
        if self._cache is not None:
            self._side_effects.run(
                f"cache invalidation for company {employee.company_id}",
                self._cache.invalidate,
                employee.company_id,
            )
        return violation

    def list_by_employee(
        self,
        employee_id: int,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[Violation]:
        if start is not None and end is not None and end <= start:
            raise ValidationError("end must be after start")
        return self._violations.list_by_employee(int(employee_id), start=start, end=end)

    def list_by_company(self, company_id: int, *, start: datetime, end: datetime) -> Sequence[Violation]:
        if end <= start:
            raise ValidationError("end must be after start")
        return self._violations.list_by_company(int(company_id), start=start, end=end)

    def _accepts_inactive(self, rule: ViolationRule, source: ViolationSource) -> bool:
        return (
            self._allow_manual_on_inactive_auto_rules
            and source == ViolationSource.MANUAL
            and rule.auto_detectable
        )


class ViolationRuleService:
    def __init__(self, rules: ViolationRuleRepository):
        self._rules = rules

    def create_rule(
        self,
        *,
        company_id: int,
        code: str,
        name: str,
        penalty_percent: object,
        auto_detectable: bool = False,
    ) -> ViolationRule:
        code = require_non_empty(code, "code").lower()
        name = require_non_empty(name, "name")
        penalty = require_decimal(penalty_percent, "penalty_percent", minimum=PENALTY_MIN, maximum=PENALTY_MAX)

        rule_id = self._rules.create(
            company_id=int(company_id),
            code=code,
            name=name,
            penalty_percent=penalty,
            auto_detectable=bool(auto_detectable),
        )
        logger.info("Created violation rule %s (%s) for company %s", rule_id, code, company_id)
        return self._get_scoped(rule_id, company_id)

    def update_rule(
        self,
        *,
        rule_id: int,
        company_id: int,
        name: Optional[str] = None,
        penalty_percent: Optional[object] = None,
        auto_detectable: Optional[bool] = None,
        is_active: Optional[bool] = None,
    ) -> ViolationRule:
        rule = self._get_scoped(rule_id, company_id)

        new_name = require_non_empty(name, "name") if name is not None else rule.name
        new_penalty: Decimal = (
            require_decimal(penalty_percent, "penalty_percent", minimum=PENALTY_MIN, maximum=PENALTY_MAX)
            if penalty_percent is not None
            else rule.penalty_percent
        )

        self._rules.update(
            rule_id=rule.rule_id,
            name=new_name,
            penalty_percent=new_penalty,
            auto_detectable=rule.auto_detectable if auto_detectable is None else bool(auto_detectable),
            is_active=rule.is_active if is_active is None else bool(is_active),
        )
        logger.info("Updated violation rule %s for company %s", rule.rule_id, company_id)
        return self._get_scoped(rule.rule_id, company_id)

    def deactivate_rule(self, *, rule_id: int, company_id: int) -> ViolationRule:
        return self.update_rule(rule_id=rule_id, company_id=company_id, is_active=False)

    def get_rule(self, *, rule_id: int, company_id: int) -> ViolationRule:
        return self._get_scoped(rule_id, company_id)

    def list_rules(self, company_id: int, *, active_only: bool = False) -> Sequence[ViolationRule]:
        return self._rules.list_by_company(int(company_id), active_only=active_only)

    def _get_scoped(self, rule_id: int, company_id: int) -> ViolationRule:
        rule = self._rules.get_by_id(int(rule_id))
        if not rule:
            raise NotFoundError("ViolationRule", rule_id)
        if rule.company_id != int(company_id):
            raise ScopeMismatchError(
                "Violation rule does not belong to this company",
                rule_id=rule.rule_id,
                company_id=company_id,
            )
        return rule
