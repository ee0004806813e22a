from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from .common.clock import Clock, SystemClock
from .common.transaction import TransactionManager
from .core.constants import (
    DEFAULT_INVITE_RETENTION_MINUTES,
    DEFAULT_MONITOR_LOOKBACK_HOURS,
    DEFAULT_SCHEDULER_INTERVAL_MINUTES,
)
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.repository import EmployeeRepository
from .employees.service import EmployeeService
from .intervals.mysql_interval_repository import MySQLIntervalRepository
from .intervals.repository import IntervalRepository
from .intervals.tracker import IntervalTracker
from .invites.mysql_invite_repository import MySQLInviteRepository
from .invites.repository import InviteRepository
from .invites.service import InviteService
from .notifications.cache import CacheInvalidator, CompanyStatsCache
from .notifications.side_effects import BestEffort, InvalidationQueue
from .ratings.mysql_rating_repository import MySQLRatingRepository
from .ratings.repository import RatingRepository
from .ratings.service import RatingEngine
from .scheduler import MaintenanceScheduler
from .shifts.detectors.base import MonitorThresholds
from .shifts.monitor import ShiftMonitor
from .shifts.mysql_shift_repository import MySQLShiftRepository
from .shifts.repository import ShiftRepository
from .shifts.service import ShiftLifecycleManager
from .stats.service import CompanyStatsService
from .storage.memory import (
    InMemoryEmployeeRepository,
    InMemoryIntervalRepository,
    InMemoryInviteRepository,
    InMemoryRatingRepository,
    InMemoryShiftRepository,
    InMemoryStore,
    InMemoryTransactionManager,
    InMemoryViolationRepository,
    InMemoryViolationRuleRepository,
)
from .violations.mysql_violation_repository import MySQLViolationRepository, MySQLViolationRuleRepository
from .violations.repository import ViolationRepository, ViolationRuleRepository
from .violations.service import ViolationRecorder, ViolationRuleService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Container:
    clock: Clock
    tx: TransactionManager

    employees_repo: EmployeeRepository
    shifts_repo: ShiftRepository
    intervals_repo: IntervalRepository
    rules_repo: ViolationRuleRepository
    violations_repo: ViolationRepository
    ratings_repo: RatingRepository
    invites_repo: InviteRepository

    stats_cache: CompanyStatsCache
    invalidator: CacheInvalidator

    employee_service: EmployeeService
    interval_tracker: IntervalTracker
    shift_service: ShiftLifecycleManager
    rating_engine: RatingEngine
    violation_recorder: ViolationRecorder
    rule_service: ViolationRuleService
    invite_service: InviteService
    shift_monitor: ShiftMonitor
    stats_service: CompanyStatsService
    scheduler: MaintenanceScheduler


@dataclass(frozen=True)
class _Storage:
    tx: TransactionManager
    employees: EmployeeRepository
    shifts: ShiftRepository
    intervals: IntervalRepository
    rules: ViolationRuleRepository
    violations: ViolationRepository
    ratings: RatingRepository
    invites: InviteRepository


def _mysql_storage(db_config: dict) -> _Storage:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)
    return _Storage(
        tx=conn,
        employees=MySQLEmployeeRepository(conn),
        shifts=MySQLShiftRepository(conn),
        intervals=MySQLIntervalRepository(conn),
        rules=MySQLViolationRuleRepository(conn),
        violations=MySQLViolationRepository(conn),
        ratings=MySQLRatingRepository(conn),
        invites=MySQLInviteRepository(conn),
    )


def _memory_storage(clock: Clock) -> _Storage:
    store = InMemoryStore()
    return _Storage(
        tx=InMemoryTransactionManager(store),
        employees=InMemoryEmployeeRepository(store, clock=clock),
        shifts=InMemoryShiftRepository(store),
        intervals=InMemoryIntervalRepository(store),
        rules=InMemoryViolationRuleRepository(store),
        violations=InMemoryViolationRepository(store),
        ratings=InMemoryRatingRepository(store),
        invites=InMemoryInviteRepository(store),
    )


def build_container(settings: Any, *, clock: Optional[Clock] = None) -> Container:
    """Wire repositories and services from a settings module (or any object with the same attributes)."""

    clock = clock or SystemClock()
    backend = str(getattr(settings, "STORAGE_BACKEND", "mysql")).lower()
    if backend == "memory":
        storage = _memory_storage(clock)
    elif backend == "mysql":
        storage = _mysql_storage(getattr(settings, "DB_CONFIG"))
    else:
        raise ValueError(f"Unknown STORAGE_BACKEND: {backend!r}")
    logger.info("Using %s storage backend", backend)

    side_effects = BestEffort()
    stats_cache = CompanyStatsCache()
    invalidator: CacheInvalidator = stats_cache
    if bool(getattr(settings, "ASYNC_CACHE_INVALIDATION", False)):
        invalidator = InvalidationQueue(stats_cache).start()

    employee_service = EmployeeService(storage.employees)
    tracker = IntervalTracker(storage.intervals)
    shift_service = ShiftLifecycleManager(
        storage.shifts,
        storage.employees,
        tracker,
        storage.tx,
        clock=clock,
        cache=invalidator,
        side_effects=side_effects,
    )
    rating_engine = RatingEngine(storage.ratings, storage.violations, storage.employees, clock=clock)
    violation_recorder = ViolationRecorder(
        storage.violations,
        storage.rules,
        storage.employees,
        rating_engine,
        clock=clock,
        cache=invalidator,
        side_effects=side_effects,
        allow_manual_on_inactive_auto_rules=bool(getattr(settings, "ALLOW_MANUAL_ON_INACTIVE_AUTO_RULES", True)),
    )
    rule_service = ViolationRuleService(storage.rules)
    invite_service = InviteService(
        storage.invites,
        storage.employees,
        storage.tx,
        clock=clock,
        retention_minutes=int(getattr(settings, "INVITE_RETENTION_MINUTES", DEFAULT_INVITE_RETENTION_MINUTES)),
    )
    thresholds = MonitorThresholds(
        late_minutes=int(getattr(settings, "MONITOR_LATE_THRESHOLD_MINUTES", MonitorThresholds.late_minutes)),
        early_end_minutes=int(
            getattr(settings, "MONITOR_EARLY_END_THRESHOLD_MINUTES", MonitorThresholds.early_end_minutes)
        ),
        long_break_minutes=int(
            getattr(settings, "MONITOR_LONG_BREAK_THRESHOLD_MINUTES", MonitorThresholds.long_break_minutes)
        ),
        no_break_end_minutes=int(
            getattr(settings, "MONITOR_NO_BREAK_END_THRESHOLD_MINUTES", MonitorThresholds.no_break_end_minutes)
        ),
        missed_shift_minutes=int(
            getattr(settings, "MONITOR_MISSED_SHIFT_THRESHOLD_MINUTES", MonitorThresholds.missed_shift_minutes)
        ),
    )
    shift_monitor = ShiftMonitor(
        storage.shifts,
        tracker,
        storage.rules,
        storage.violations,
        violation_recorder,
        storage.employees,
        clock=clock,
        thresholds=thresholds,
        lookback_hours=int(getattr(settings, "MONITOR_LOOKBACK_HOURS", DEFAULT_MONITOR_LOOKBACK_HOURS)),
    )
    stats_service = CompanyStatsService(
        storage.employees,
        storage.shifts,
        storage.violations,
        storage.ratings,
        stats_cache,
        clock=clock,
    )
    scheduler = MaintenanceScheduler(
        shift_monitor,
        invite_service,
        interval_minutes=float(getattr(settings, "SCHEDULER_INTERVAL_MINUTES", DEFAULT_SCHEDULER_INTERVAL_MINUTES)),
    )

    return Container(
        clock=clock,
        tx=storage.tx,
        employees_repo=storage.employees,
        shifts_repo=storage.shifts,
        intervals_repo=storage.intervals,
        rules_repo=storage.rules,
        violations_repo=storage.violations,
        ratings_repo=storage.ratings,
        invites_repo=storage.invites,
        stats_cache=stats_cache,
        invalidator=invalidator,
        employee_service=employee_service,
        interval_tracker=tracker,
        shift_service=shift_service,
        rating_engine=rating_engine,
        violation_recorder=violation_recorder,
        rule_service=rule_service,
        invite_service=invite_service,
        shift_monitor=shift_monitor,
        stats_service=stats_service,
        scheduler=scheduler,
    )
