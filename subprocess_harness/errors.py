"""Errors raised by the subprocess harness."""


class HarnessError(RuntimeError):
    """The harness itself broke; the test body's outcome is unknown."""


class SpawnFailure(HarnessError):
    """Raised when the worker process could not be created."""


class OutputCaptureFailure(HarnessError):
    """Raised when the worker's output pipe could not be read."""


class WorkerSetupError(HarnessError):
    """Raised when the worker exited before it started running the test body."""


class CaseNotFoundError(HarnessError):
    """Raised when no case is registered under the requested identifier."""


class SubprocessTestFailure(AssertionError):
    """Raised when a case without a verifier did not exit successfully."""
