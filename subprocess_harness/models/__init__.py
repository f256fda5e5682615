"""Data models shared by the launcher and the worker."""

from subprocess_harness.models.outcome import (
    AbnormalTermination,
    NormalExit,
    TerminationOutcome,
    TimedOut,
    classify_returncode,
)
from subprocess_harness.models.result import SubprocessResult

__all__ = [
    "AbnormalTermination",
    "NormalExit",
    "SubprocessResult",
    "TerminationOutcome",
    "TimedOut",
    "classify_returncode",
]
