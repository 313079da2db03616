"""
Report sinks.

A sink persists assessment reports and access decision batches. Reports
are written to a temporary file and committed with an atomic rename, so
a cancelled or crashed write never leaves a partial report behind.
Decisions are appended as JSON lines and synced before returning.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Iterable, TypeVar

from ..exceptions import ReportSinkError

if TYPE_CHECKING:
    from ..access.context import AccessDecision
    from .reporter import AssessmentReport

logger = logging.getLogger(__name__)

T = TypeVar("T")


def deliver_with_retry(
    action: Callable[[], T],
    retries: int = 3,
    backoff_base: float = 0.5,
    backoff_max: float = 30.0,
    what: str = "sink write",
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Run a sink operation, retrying with exponential backoff.

    Raises ReportSinkError once all attempts are exhausted.
    """
    attempt = 0
    while True:
        try:
            return action()
        except (ReportSinkError, OSError) as e:
            if attempt >= retries:
                raise ReportSinkError(f"{what} failed after {attempt + 1} attempts: {e}") from e
            delay = min(backoff_max, backoff_base * (2 ** attempt))
            logger.warning(
                "%s failed (attempt %d/%d): %s; retrying in %.2fs",
                what, attempt + 1, retries + 1, e, delay,
            )
            attempt += 1
            sleep(delay)


class ReportSink:
    """Destination for assessment reports and access decisions."""

    def write_report(self, report: AssessmentReport) -> None:
        raise NotImplementedError

    def append_decisions(self, decisions: Iterable[AccessDecision]) -> None:
        raise NotImplementedError


class MemorySink(ReportSink):
    """Keeps everything in memory; used by tests and the demo."""

    def __init__(self):
        self.reports: list[AssessmentReport] = []
        self.decisions: list[AccessDecision] = []
        self._lock = threading.Lock()

    def write_report(self, report: AssessmentReport) -> None:
        with self._lock:
            self.reports.append(report)

    def append_decisions(self, decisions: Iterable[AccessDecision]) -> None:
        batch = list(decisions)
        with self._lock:
            self.decisions.extend(batch)


class JsonFileSink(ReportSink):
    """
    Directory-backed sink.

    Layout:
        assessment-<report_id>.json   one file per report
        latest.json                   most recent report
        decisions.jsonl               append-only decision log
    """

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)
        self._lock = threading.Lock()

    def _ensure_dir(self) -> None:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ReportSinkError(f"cannot create report directory {self.directory}: {e}") from e

    def _commit(self, name: str, payload: dict[str, Any]) -> Path:
        target = self.directory / name
        fd, tmp_path = tempfile.mkstemp(dir=self.directory, prefix=f".{name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(payload, f, indent=2, sort_keys=True)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, target)
        except OSError as e:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise ReportSinkError(f"cannot write {target}: {e}") from e
        return target

    def write_report(self, report: AssessmentReport) -> None:
        self._ensure_dir()
        payload = report.to_dict()
        with self._lock:
            self._commit(f"assessment-{report.report_id}.json", payload)
            self._commit("latest.json", payload)
        logger.debug("Wrote assessment report %s to %s", report.report_id, self.directory)

    def append_decisions(self, decisions: Iterable[AccessDecision]) -> None:
        lines = [json.dumps(d.to_dict(), sort_keys=True) for d in decisions]
        if not lines:
            return
        self._ensure_dir()
        path = self.directory / "decisions.jsonl"
        with self._lock:
            try:
                with open(path, "a") as f:
                    f.write("\n".join(lines) + "\n")
                    f.flush()
                    os.fsync(f.fileno())
            except OSError as e:
                raise ReportSinkError(f"cannot append to {path}: {e}") from e

    def read_latest(self) -> dict[str, Any] | None:
        path = self.directory / "latest.json"
        if not path.exists():
            return None
        with open(path) as f:
            return json.load(f)

    def read_decisions(self) -> list[dict[str, Any]]:
        path = self.directory / "decisions.jsonl"
        if not path.exists():
            return []
        with open(path) as f:
            return [json.loads(line) for line in f if line.strip()]
