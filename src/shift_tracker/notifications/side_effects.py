from __future__ import annotations

import logging
import queue
import threading
from typing import Callable, Optional, TypeVar

from .cache import CacheInvalidator

logger = logging.getLogger(__name__)

T = TypeVar("T")

_STOP = object()


class BestEffort:
    """Channel for side effects whose failure must not fail the primary write.

    Primary writes (shift state, violation rows) call storage directly and let
    errors propagate. Derived updates (rating, caches) go through ``run`` and
    are logged on failure.
    """

    def run(self, description: str, fn: Callable[..., T], *args, **kwargs) -> Optional[T]:
        try:
            return fn(*args, **kwargs)
        except Exception:
            logger.exception("Best-effort %s failed", description)
            return None


class InvalidationQueue(CacheInvalidator):
    """Non-blocking cache invalidation drained by a background worker thread."""

    def __init__(self, target: CacheInvalidator, *, maxsize: int = 1000):
        self._target = target
        self._queue: "queue.Queue[object]" = queue.Queue(maxsize=maxsize)
        self._worker: Optional[threading.Thread] = None

    def start(self) -> "InvalidationQueue":
        if self._worker is None:
            self._worker = threading.Thread(target=self._drain, name="cache-invalidation", daemon=True)
            self._worker.start()
        return self

    def invalidate(self, company_id: int) -> None:
        try:
            self._queue.put_nowait(int(company_id))
        except queue.Full:
            logger.warning("Invalidation queue full; dropping company %s", company_id)

    def join(self) -> None:
        """Block until every queued invalidation has been handled."""
        self._queue.join()

    def stop(self) -> None:
        if self._worker is None:
            return
        self._queue.put(_STOP)
        self._worker.join()
        self._worker = None

    def _drain(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                self._target.invalidate(item)
            except Exception:
                logger.exception("Cache invalidation for company %s failed", item)
            finally:
                self._queue.task_done()
