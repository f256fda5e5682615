"""Run test bodies in isolated worker processes and verify how they ended."""

from subprocess_harness.case import TestCase
from subprocess_harness.config import HarnessConfig, get_default_config, set_default_config
from subprocess_harness.decorator import subprocess_test
from subprocess_harness.errors import (
    CaseNotFoundError,
    HarnessError,
    OutputCaptureFailure,
    SpawnFailure,
    SubprocessTestFailure,
    WorkerSetupError,
)
from subprocess_harness.launcher import Launcher
from subprocess_harness.models import (
    AbnormalTermination,
    NormalExit,
    SubprocessResult,
    TerminationOutcome,
    TimedOut,
)
from subprocess_harness.registry import register

__all__ = [
    "AbnormalTermination",
    "CaseNotFoundError",
    "HarnessConfig",
    "HarnessError",
    "Launcher",
    "NormalExit",
    "OutputCaptureFailure",
    "SpawnFailure",
    "SubprocessResult",
    "SubprocessTestFailure",
    "TerminationOutcome",
    "TestCase",
    "TimedOut",
    "WorkerSetupError",
    "get_default_config",
    "register",
    "set_default_config",
    "subprocess_test",
]
