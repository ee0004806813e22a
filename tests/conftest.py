from __future__ import annotations

from datetime import datetime
from types import SimpleNamespace

import pytest

from shift_tracker.common.clock import FixedClock
from shift_tracker.container import Container, build_container

START = datetime(2026, 3, 2, 9, 0, 0)


def memory_settings(**overrides):
    values = {"STORAGE_BACKEND": "memory", "ASYNC_CACHE_INVALIDATION": False}
    values.update(overrides)
    return SimpleNamespace(**values)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(START)


@pytest.fixture
def container(clock) -> Container:
    return build_container(memory_settings(), clock=clock)


@pytest.fixture
def employee(container):
    return container.employee_service.create_employee(company_id=1, full_name="Nguyen Van A", position="Cashier")
