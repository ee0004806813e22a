from __future__ import annotations

import threading
from datetime import datetime, timedelta

import pytest

from shift_tracker.core.enums import EmployeeStatus
from shift_tracker.core.exceptions import (
    AlreadyUsedError,
    ConflictError,
    InviteExpiredError,
    NotFoundError,
    ScopeMismatchError,
    ValidationError,
)
from shift_tracker.invites.service import InviteService
from shift_tracker.storage.memory import (
    InMemoryEmployeeRepository,
    InMemoryInviteRepository,
    InMemoryStore,
    InMemoryTransactionManager,
)


def test_issue_invite_generates_hex_code(container):
    invite = container.invite_service.issue_invite(company_id=1, full_name="Hoang E", position="Barista")

    assert len(invite.code) == 32
    int(invite.code, 16)
    assert invite.used_at is None
    assert container.invite_service.get_by_code(invite.code) == invite


def test_issue_invite_rejects_past_expiry(container, clock):
    with pytest.raises(ValidationError):
        container.invite_service.issue_invite(company_id=1, expires_at=clock.now())


def test_issue_invite_retries_on_code_collision(clock):
    store = InMemoryStore()
    codes = iter(["dup", "dup", "fresh"])
    service = InviteService(
        InMemoryInviteRepository(store),
        InMemoryEmployeeRepository(store),
        InMemoryTransactionManager(store),
        clock=clock,
        code_factory=lambda: next(codes),
    )

    assert service.issue_invite(company_id=1).code == "dup"
    assert service.issue_invite(company_id=1).code == "fresh"


def test_issue_invite_gives_up_after_five_collisions(clock):
    store = InMemoryStore()
    service = InviteService(
        InMemoryInviteRepository(store),
        InMemoryEmployeeRepository(store),
        InMemoryTransactionManager(store),
        clock=clock,
        code_factory=lambda: "same",
    )
    service.issue_invite(company_id=1)

    with pytest.raises(ConflictError):
        service.issue_invite(company_id=1)


def test_redeem_with_telegram_creates_employee(container):
    invite = container.invite_service.issue_invite(company_id=3, full_name="Vo F", position="Cook")

    result = container.invite_service.redeem_invite(invite.code, telegram_user_id="tg-100")

    assert result.created_employee is True
    assert result.employee.company_id == 3
    assert result.employee.full_name == "Vo F"
    assert result.employee.telegram_user_id == "tg-100"
    assert result.invite.used_by_employee == result.employee.employee_id
    assert result.invite.used_at is not None


def test_redeem_with_telegram_rebinds_existing_employee(container):
    existing = container.employee_service.create_employee(
        company_id=1, full_name="Old Name", status="inactive", telegram_user_id="tg-7"
    )
    invite = container.invite_service.issue_invite(company_id=5, position="Manager")

    result = container.invite_service.redeem_invite(invite.code, telegram_user_id="tg-7")

    assert result.created_employee is False
    assert result.employee.employee_id == existing.employee_id
    assert result.employee.company_id == 5
    assert result.employee.full_name == "Old Name"
    assert result.employee.position == "Manager"
    assert result.employee.status == EmployeeStatus.ACTIVE


def test_redeem_with_employee_id_fills_profile(container, employee):
    invite = container.invite_service.issue_invite(company_id=1, full_name="Nguyen Van A2")

    result = container.invite_service.redeem_invite(invite.code, employee_id=employee.employee_id)

    assert result.employee.full_name == "Nguyen Van A2"
    assert result.employee.position == "Cashier"


def test_redeem_requires_exactly_one_identity(container, employee):
    invite = container.invite_service.issue_invite(company_id=1)

    with pytest.raises(ValidationError):
        container.invite_service.redeem_invite(invite.code)
    with pytest.raises(ValidationError):
        container.invite_service.redeem_invite(invite.code, employee_id=employee.employee_id, telegram_user_id="x")


def test_redeem_unknown_code(container):
    with pytest.raises(NotFoundError):
        container.invite_service.redeem_invite("nope", telegram_user_id="tg-1")


def test_redeem_twice_is_already_used(container):
    invite = container.invite_service.issue_invite(company_id=1)
    container.invite_service.redeem_invite(invite.code, telegram_user_id="tg-1")

    with pytest.raises(AlreadyUsedError):
        container.invite_service.redeem_invite(invite.code, telegram_user_id="tg-2")
    assert container.employees_repo.get_by_telegram_id("tg-2") is None


def test_redeem_expired_invite(container, clock):
    invite = container.invite_service.issue_invite(company_id=1, expires_at=clock.now() + timedelta(hours=1))
    clock.advance(hours=1)

    with pytest.raises(InviteExpiredError) as exc:
        container.invite_service.redeem_invite(invite.code, telegram_user_id="tg-1")
    assert isinstance(exc.value, ValidationError)


def test_redeem_for_employee_of_other_company_is_scope_mismatch(container, employee):
    invite = container.invite_service.issue_invite(company_id=2)

    with pytest.raises(ScopeMismatchError):
        container.invite_service.redeem_invite(invite.code, employee_id=employee.employee_id)
    assert container.invite_service.get_by_code(invite.code).used_at is None


def test_redeem_for_missing_employee(container):
    invite = container.invite_service.issue_invite(company_id=1)
    with pytest.raises(NotFoundError):
        container.invite_service.redeem_invite(invite.code, employee_id=12345)


class LosingClaimRepository(InMemoryInviteRepository):
    """Simulates another request claiming the invite between read and claim."""

    def claim(self, *, code, employee_id, used_at):
        return False


def test_lost_claim_rolls_back_employee_creation(clock):
    store = InMemoryStore()
    employees = InMemoryEmployeeRepository(store)
    service = InviteService(
        LosingClaimRepository(store),
        employees,
        InMemoryTransactionManager(store),
        clock=clock,
    )
    invite = service.issue_invite(company_id=1, full_name="Ghost")

    with pytest.raises(AlreadyUsedError):
        service.redeem_invite(invite.code, telegram_user_id="tg-ghost")

    assert employees.get_by_telegram_id("tg-ghost") is None
    assert employees.list_by_company(1) == []


def test_concurrent_redeem_has_exactly_one_winner(container):
    invite = container.invite_service.issue_invite(company_id=1)
    barrier = threading.Barrier(8)
    outcomes: list[str] = []
    lock = threading.Lock()

    def redeem(n: int) -> None:
        barrier.wait()
        try:
            container.invite_service.redeem_invite(invite.code, telegram_user_id=f"tg-{n}")
            result = "ok"
        except AlreadyUsedError:
            result = "used"
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=redeem, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(outcomes) == ["ok"] + ["used"] * 7
    assert len(container.employees_repo.list_by_company(1)) == 1


def test_cleanup_removes_stale_and_expired_unused_invites(container, clock):
    service = container.invite_service
    stale = service.issue_invite(company_id=1)
    used = service.issue_invite(company_id=1)
    service.redeem_invite(used.code, telegram_user_id="tg-used")

    clock.advance(days=2)
    expiring = service.issue_invite(company_id=1, expires_at=clock.now() + timedelta(minutes=30))
    fresh = service.issue_invite(company_id=1)

    clock.advance(days=1, minutes=1)
    removed = service.cleanup_expired()

    assert removed == 2
    remaining = {i.code for i in service.list_by_company(1)}
    assert remaining == {used.code, fresh.code}
    assert stale.code not in remaining and expiring.code not in remaining
    assert [i.code for i in service.list_by_company(1, unused_only=True)] == [fresh.code]


class WinnerFirstInviteRepository(InMemoryInviteRepository):
    """The locked read returns only after a concurrent redeemer committed its claim."""

    def __init__(self, store, winner_id):
        super().__init__(store)
        self.winner_id = winner_id
        self.reads: list[bool] = []

    def get_by_code(self, code, *, for_update=False):
        self.reads.append(for_update)
        if for_update:
            self.claim(code=code, employee_id=self.winner_id, used_at=datetime(2026, 3, 2, 9, 0))
        return super().get_by_code(code, for_update=for_update)


def test_redeem_takes_row_lock_and_loser_sees_invite_used(clock):
    store = InMemoryStore()
    employees = InMemoryEmployeeRepository(store)
    winner_id = employees.create(company_id=1, full_name="Winner", telegram_user_id="tg-shared")
    invites = WinnerFirstInviteRepository(store, winner_id)
    service = InviteService(invites, employees, InMemoryTransactionManager(store), clock=clock)
    invite = service.issue_invite(company_id=1, full_name="Shared")
    invites.reads.clear()

    with pytest.raises(AlreadyUsedError):
        service.redeem_invite(invite.code, telegram_user_id="tg-shared")

    assert invites.reads[0] is True
    assert [e.employee_id for e in employees.list_by_company(1)] == [winner_id]
