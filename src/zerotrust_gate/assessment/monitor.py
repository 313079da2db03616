"""
Background assessment monitor.

Periodically generates an assessment report and persists it to a sink.
Runs on its own daemon thread; stopping waits for an in-flight tick to
finish, and cancellation only takes effect between ticks.
Each tick first runs an optional hook; the engine uses it to retry
buffered access decisions.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable

from ..exceptions import ReportSinkError
from .reporter import AssessmentReport, AssessmentReporter
from .sink import ReportSink, deliver_with_retry

logger = logging.getLogger(__name__)


class AssessmentMonitor:
    """Timer-driven report generation, independent of request traffic."""

    def __init__(
        self,
        reporter: AssessmentReporter,
        sink: ReportSink,
        interval: float = 1800.0,
        retries: int = 3,
        backoff_base: float = 0.5,
        backoff_max: float = 30.0,
        on_tick: Callable[[], Any] | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.reporter = reporter
        self.sink = sink
        self.interval = interval
        self.retries = retries
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        self.on_tick = on_tick
        self._sleep = sleep
        self._thread: threading.Thread | None = None
        self._stop = threading.Event()
        self._state_lock = threading.Lock()

        self.ticks = 0
        self.failures = 0
        self.last_report: AssessmentReport | None = None
        self.last_error: str | None = None
        self.last_run_at: float | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> bool:
        """Start the monitor thread. Returns False if already running."""
        with self._state_lock:
            if self.is_running:
                return False
            self._stop.clear()
            self._thread = threading.Thread(
                target=self._loop,
                daemon=True,
                name="zerotrust-assessment-monitor",
            )
            self._thread.start()
        logger.info("Assessment monitor started (interval=%.1fs)", self.interval)
        return True

    def stop(self, timeout: float | None = None) -> bool:
        """Signal the monitor to stop and wait for the current tick to end."""
        with self._state_lock:
            thread = self._thread
            self._stop.set()
        if thread is None:
            return True
        thread.join(timeout)
        stopped = not thread.is_alive()
        if stopped:
            with self._state_lock:
                self._thread = None
            logger.info("Assessment monitor stopped after %d ticks", self.ticks)
        else:
            logger.warning("Assessment monitor did not stop within %.1fs", timeout)
        return stopped

    def run_once(self) -> AssessmentReport | None:
        """Generate and persist one report; returns None if persisting failed."""
        if self.on_tick is not None:
            self.on_tick()
        report = self.reporter.generate_report()
        self.last_run_at = time.time()
        self.ticks += 1
        try:
            deliver_with_retry(
                lambda: self.sink.write_report(report),
                retries=self.retries,
                backoff_base=self.backoff_base,
                backoff_max=self.backoff_max,
                what="assessment report write",
                sleep=self._sleep,
            )
        except ReportSinkError as e:
            self.failures += 1
            self.last_error = str(e)
            logger.critical("Assessment report %s was not persisted: %s", report.report_id, e)
            return None

        self.last_report = report
        self.last_error = None
        logger.info(
            "Assessment report %s persisted: %d/%d policies enforced, %d recommendations",
            report.report_id, report.enforced_policies, report.total_policies,
            len(report.recommendations),
        )
        return report

    def _loop(self) -> None:
        while not self._stop.is_set():
            try:
                self.run_once()
            except Exception:
                self.failures += 1
                logger.exception("Assessment monitor tick failed")
            self._stop.wait(self.interval)

    def status(self) -> dict[str, Any]:
        return {
            "running": self.is_running,
            "interval": self.interval,
            "ticks": self.ticks,
            "failures": self.failures,
            "last_run_at": self.last_run_at,
            "last_report_id": self.last_report.report_id if self.last_report else None,
            "last_error": self.last_error,
        }
