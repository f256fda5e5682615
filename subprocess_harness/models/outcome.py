"""Classification of how a worker process terminated."""

import signal
from dataclasses import dataclass

SUCCESS_EXIT_CODE = 0


@dataclass(frozen=True, kw_only=True)
class NormalExit:
    """Worker exited on its own with the given exit code."""

    code: int

    @property
    def success(self) -> bool:
        return self.code == SUCCESS_EXIT_CODE

    def describe(self) -> str:
        return f"exited with code {self.code}"


@dataclass(frozen=True, kw_only=True)
class AbnormalTermination:
    """Worker was killed by a signal (fatal fault, abort, external kill)."""

    signal: int

    @property
    def success(self) -> bool:
        return False

    @property
    def signal_name(self) -> str:
        try:
            return signal.Signals(self.signal).name
        except ValueError:
            return f"signal {self.signal}"

    def describe(self) -> str:
        return f"terminated by {self.signal_name}"


@dataclass(frozen=True, kw_only=True)
class TimedOut:
    """Worker did not finish within the timeout and was killed."""

    timeout: float

    @property
    def success(self) -> bool:
        return False

    def describe(self) -> str:
        return f"timed out after {self.timeout:g}s"


TerminationOutcome = NormalExit | AbnormalTermination | TimedOut


def classify_returncode(returncode: int) -> NormalExit | AbnormalTermination:
    """Classify a process return code.

    asyncio and subprocess report a process killed by signal N as -N on POSIX.
    """
    if returncode < 0:
        return AbnormalTermination(signal=-returncode)
    return NormalExit(code=returncode)
