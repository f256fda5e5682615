"""Models for subprocess execution results."""

from dataclasses import dataclass

from subprocess_harness.models.outcome import TerminationOutcome


@dataclass(frozen=True, kw_only=True)
class SubprocessResult:
    """Result of running one case in a worker process.

    Produced only after the worker has exited and its output was drained.
    """

    outcome: TerminationOutcome
    output: str
    output_bytes: bytes = b""
    stderr: str = ""
    duration: float = 0.0
    partial: bool = False

    @property
    def success(self) -> bool:
        return self.outcome.success
