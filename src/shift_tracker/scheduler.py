from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Optional

from .core.constants import DEFAULT_SCHEDULER_INTERVAL_MINUTES
from .invites.service import InviteService
from .shifts.monitor import MonitorSummary, ShiftMonitor

logger = logging.getLogger(__name__)


@dataclass
class TickResult:
    summaries: list[MonitorSummary] = field(default_factory=list)
    invites_removed: int = 0
    failed_jobs: list[str] = field(default_factory=list)


class MaintenanceScheduler:
    """Chạy định kỳ: quét ca của mọi công ty và dọn invite hết hạn.

    One daemon thread; the first tick runs as soon as ``start`` is called,
    then every ``interval_minutes``. A failing job is logged and the other
    jobs of the tick still run.
    """

    def __init__(
        self,
        monitor: ShiftMonitor,
        invites: InviteService,
        *,
        interval_minutes: float = DEFAULT_SCHEDULER_INTERVAL_MINUTES,
    ):
        if interval_minutes <= 0:
            raise ValueError("interval_minutes must be positive")
        self._monitor = monitor
        self._invites = invites
        self._interval_seconds = float(interval_minutes) * 60
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._thread is not None

    def run_once(self) -> TickResult:
        result = TickResult()
        try:
            result.summaries = self._monitor.scan_all()
        except Exception:
            result.failed_jobs.append("shift_monitoring")
            logger.exception("Scheduled shift monitoring failed")
        try:
            result.invites_removed = self._invites.cleanup_expired()
        except Exception:
            result.failed_jobs.append("invite_cleanup")
            logger.exception("Scheduled invite cleanup failed")

        self.ticks += 1
        logger.info(
            "Scheduler tick %d: %d companies scanned, %d violations recorded, %d invites removed",
            self.ticks,
            len(result.summaries),
            sum(s.recorded for s in result.summaries),
            result.invites_removed,
        )
        return result

    def start(self) -> "MaintenanceScheduler":
        if self._thread is None:
            self._stop.clear()
            self._thread = threading.Thread(target=self._loop, name="maintenance-scheduler", daemon=True)
            self._thread.start()
            logger.info("Maintenance scheduler started (every %.1f minutes)", self._interval_seconds / 60)
        return self

    def stop(self) -> None:
        if self._thread is None:
            return
        self._stop.set()
        self._thread.join()
        self._thread = None
        logger.info("Maintenance scheduler stopped")

    def _loop(self) -> None:
        while True:
            self.run_once()
            if self._stop.wait(self._interval_seconds):
                return
