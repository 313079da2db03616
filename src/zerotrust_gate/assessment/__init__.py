"""Assessment reporting and background monitoring for ZeroTrust-Gate."""

from .sink import JsonFileSink, MemorySink, ReportSink, deliver_with_retry
from .reporter import AssessmentReport, AssessmentReporter
from .monitor import AssessmentMonitor

__all__ = [
    "AssessmentReport",
    "AssessmentReporter",
    "AssessmentMonitor",
    "ReportSink",
    "MemorySink",
    "JsonFileSink",
    "deliver_with_retry",
]
