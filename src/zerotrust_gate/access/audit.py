"""Append-only audit log and decision persistence."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

from ..assessment.sink import ReportSink, deliver_with_retry
from ..policy.models import Domain
from .context import AccessDecision

logger = logging.getLogger(__name__)

_HIGH_SEVERITY_DOMAINS = (Domain.IDENTITY, Domain.DATA)


class AuditLog:
    """Append-only, in-memory log of access decisions."""

    def __init__(self) -> None:
        self._entries: list[AccessDecision] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def append(self, decision: AccessDecision) -> None:
        with self._lock:
            self._entries.append(decision)

    def entries(self) -> tuple[AccessDecision, ...]:
        """Return all decisions in chronological order."""
        with self._lock:
            return tuple(self._entries)

    def recent(self, n: int) -> tuple[AccessDecision, ...]:
        if n <= 0:
            return ()
        with self._lock:
            return tuple(self._entries[-n:])

    @staticmethod
    def severity_for(decision: AccessDecision) -> str:
        """Event severity: unauthorized access is high, ordinary denials medium."""
        if decision.allowed:
            return "low"
        if decision.faulted or decision.failed_domain in _HIGH_SEVERITY_DOMAINS:
            return "high"
        return "medium"

    def alerts(self) -> list[AccessDecision]:
        """Decisions whose severity is high."""
        return [d for d in self.entries() if self.severity_for(d) == "high"]


class DecisionRecorder:
    """
    Forwards decisions to a sink.

    In "sync" mode every decision is written before evaluate() returns.
    In "batched" mode decisions are buffered and written once batch_size
    is reached or flush() is called. A failed write keeps its batch
    pending for the next flush; it is never raised to the caller.

    After a failed write the recorder is degraded: record() only buffers,
    and delivery resumes with the next explicit flush() that succeeds.
    At most max_pending decisions are buffered; the oldest are dropped.
    """

    def __init__(
        self,
        sink: ReportSink,
        mode: str = "sync",
        batch_size: int = 50,
        retries: int = 3,
        backoff_base: float = 0.5,
        backoff_max: float = 30.0,
        max_pending: int = 10000,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.sink = sink
        self.mode = mode
        self.batch_size = batch_size
        self.retries = retries
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        self.max_pending = max_pending
        self._sleep = sleep
        self._pending: list[AccessDecision] = []
        self._lock = threading.Lock()
        self._flush_lock = threading.Lock()
        self.degraded = False
        self.failed_flushes = 0
        self.dropped = 0

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._pending)

    def record(self, decision: AccessDecision) -> None:
        with self._lock:
            self._pending.append(decision)
            self._trim()
            due = not self.degraded and (
                self.mode == "sync" or len(self._pending) >= self.batch_size
            )
        if due:
            self.flush()

    def _trim(self) -> None:
        # caller holds self._lock
        overflow = len(self._pending) - self.max_pending
        if overflow > 0:
            del self._pending[:overflow]
            self.dropped += overflow
            logger.critical(
                "Decision buffer full (%d); dropped %d oldest access decisions",
                self.max_pending, overflow,
            )

    def flush(self) -> bool:
        with self._flush_lock:
            with self._lock:
                batch, self._pending = self._pending, []
            if not batch:
                self.degraded = False
                return True

            try:
                deliver_with_retry(
                    lambda: self.sink.append_decisions(batch),
                    retries=self.retries,
                    backoff_base=self.backoff_base,
                    backoff_max=self.backoff_max,
                    what="decision append",
                    sleep=self._sleep,
                )
            except Exception as e:
                self.failed_flushes += 1
                logger.critical(
                    "Persisting %d access decisions failed: %s: %s",
                    len(batch), type(e).__name__, e,
                )
                with self._lock:
                    self._pending = batch + self._pending
                    self._trim()
                    self.degraded = True
                return False
            self.degraded = False
            return True
