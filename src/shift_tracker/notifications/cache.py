from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)


def company_stats_key(company_id: int) -> str:
    return f"company:{int(company_id)}:stats"


class CacheInvalidator(Protocol):
    def invalidate(self, company_id: int) -> None:
        raise NotImplementedError


class CompanyStatsCache(CacheInvalidator):
    """In-process cache of per-company aggregates."""

    def __init__(self):
        self._lock = threading.Lock()
        self._values: dict[str, Any] = {}

    def get_or_compute(self, company_id: int, compute: Callable[[], Any]) -> Any:
        key = company_stats_key(company_id)
        with self._lock:
            if key in self._values:
                return self._values[key]
        value = compute()
        with self._lock:
            self._values[key] = value
        return value

    def invalidate(self, company_id: int) -> None:
        with self._lock:
            removed = self._values.pop(company_stats_key(company_id), None)
        if removed is not None:
            logger.debug("Invalidated stats cache for company %s", company_id)

    def __contains__(self, company_id: int) -> bool:
        with self._lock:
            return company_stats_key(company_id) in self._values
