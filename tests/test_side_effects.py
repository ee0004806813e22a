from __future__ import annotations

import logging

from shift_tracker.notifications.cache import CompanyStatsCache
from shift_tracker.notifications.side_effects import BestEffort, InvalidationQueue


def test_best_effort_returns_result():
    assert BestEffort().run("sum", lambda a, b: a + b, 2, 3) == 5


def test_best_effort_logs_and_swallows_failure(caplog):
    def boom():
        raise RuntimeError("unreachable cache")

    with caplog.at_level(logging.ERROR):
        assert BestEffort().run("cache invalidation", boom) is None

    assert "Best-effort cache invalidation failed" in caplog.text
    assert "unreachable cache" in caplog.text


def test_stats_cache_computes_once_until_invalidated():
    cache = CompanyStatsCache()
    calls = []

    def compute():
        calls.append(1)
        return {"n": len(calls)}

    assert cache.get_or_compute(1, compute) == {"n": 1}
    assert cache.get_or_compute(1, compute) == {"n": 1}
    cache.invalidate(1)
    assert 1 not in cache
    assert cache.get_or_compute(1, compute) == {"n": 2}


def test_invalidation_queue_drains_in_background():
    cache = CompanyStatsCache()
    cache.get_or_compute(1, lambda: "stats")
    cache.get_or_compute(2, lambda: "stats")
    queue = InvalidationQueue(cache).start()
    try:
        queue.invalidate(1)
        queue.join()
    finally:
        queue.stop()

    assert 1 not in cache
    assert 2 in cache


class FlakyTarget:
    def __init__(self):
        self.seen = []

    def invalidate(self, company_id):
        self.seen.append(company_id)
        if company_id == 1:
            raise RuntimeError("flaky")


def test_invalidation_queue_survives_target_failure():
    target = FlakyTarget()
    queue = InvalidationQueue(target).start()
    try:
        queue.invalidate(1)
        queue.invalidate(2)
        queue.join()
    finally:
        queue.stop()

    assert target.seen == [1, 2]


def test_full_queue_drops_instead_of_blocking(caplog):
    queue = InvalidationQueue(CompanyStatsCache(), maxsize=1)
    queue.invalidate(1)
    with caplog.at_level(logging.WARNING):
        queue.invalidate(2)

    assert "dropping company 2" in caplog.text
