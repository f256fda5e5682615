"""Launcher that runs a case in a worker process and verifies the outcome."""

import asyncio
import logging
import os
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from subprocess_harness.capture import collect_readers, drain_stream, extract_output
from subprocess_harness.case import TestCase
from subprocess_harness.config import HarnessConfig, get_default_config
from subprocess_harness.errors import (
    SpawnFailure,
    SubprocessTestFailure,
    WorkerSetupError,
)
from subprocess_harness.models.outcome import (
    TerminationOutcome,
    TimedOut,
    classify_returncode,
)
from subprocess_harness.models.result import SubprocessResult

log = logging.getLogger(__name__)

WORKER_MODULE = "subprocess_harness"


def build_command(case: TestCase, config: HarnessConfig) -> Sequence[str]:
    """Command line that starts the worker for ``case``."""
    command = [
        config.python_executable,
        "-m",
        WORKER_MODULE,
        "--env-var-name",
        config.env_var_name,
        "--output-boundary",
        config.output_boundary,
    ]
    if case.source_file:
        command += ["--source-file", case.source_file]
    return command


def build_environment(
    case: TestCase,
    config: HarnessConfig,
    base: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Environment for the worker: the parent's, plus the case selector.

    The parent's ``sys.path`` is forwarded so the worker imports the case's
    module from the same place the parent did.
    """
    env = dict(os.environ if base is None else base)
    search_path = [entry for entry in sys.path if entry]
    if existing := env.get("PYTHONPATH"):
        search_path.append(existing)
    env["PYTHONPATH"] = os.pathsep.join(search_path)
    env["PYTHONUNBUFFERED"] = "1"
    env["PYTHONIOENCODING"] = config.encoding
    env[config.env_var_name] = case.identifier
    return env


def output_sections(result: SubprocessResult) -> list[str]:
    """Captured output and stderr, formatted for an assertion message."""
    lines: list[str] = []
    if result.output:
        lines += ["--- captured output ---", result.output.rstrip("\n")]
    if result.stderr:
        lines += ["--- captured stderr ---", result.stderr.rstrip("\n")]
    if result.partial:
        lines.append("(output may be incomplete)")
    return lines


def format_failure(case: TestCase, result: SubprocessResult) -> str:
    """Failure message for a case that did not exit successfully."""
    header = f"Test {case.name} subprocess failed: {result.outcome.describe()}"
    return "\n".join([header, *output_sections(result)])


def assert_success(case: TestCase, result: SubprocessResult) -> None:
    """Verification used when a case has no verifier of its own.

    Raises:
        SubprocessTestFailure: If the worker did not exit with code 0

    """
    if not result.success:
        raise SubprocessTestFailure(format_failure(case, result))


@dataclass(frozen=True, kw_only=True)
class Launcher:
    """Runs cases in freshly spawned worker processes."""

    config: HarnessConfig = field(default_factory=get_default_config)

    def config_for(self, case: TestCase) -> HarnessConfig:
        """Launcher config with the case's own overrides applied."""
        return self.config.merged(dict(case.overrides))

    async def execute(self, case: TestCase) -> SubprocessResult:
        """Run ``case`` in a worker and collect how it terminated.

        Raises:
            SpawnFailure: If the worker could not be started
            OutputCaptureFailure: If the worker's output could not be read
            WorkerSetupError: If the worker exited before running the body

        """
        config = self.config_for(case)
        command = build_command(case, config)
        log.info("Launching case %s", case.identifier)
        log.debug("Worker command: %s", command)

        loop = asyncio.get_running_loop()
        started = loop.time()
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=(
                    asyncio.subprocess.STDOUT
                    if config.capture_stderr
                    else asyncio.subprocess.PIPE
                ),
                env=build_environment(case, config),
            )
        except OSError as exc:
            raise SpawnFailure(
                f"Failed to spawn worker for {case.identifier}: {exc}"
            ) from exc

        stdout = bytearray()
        stderr = bytearray()
        readers = [asyncio.create_task(drain_stream(process.stdout, stdout))]
        if process.stderr is not None:
            readers.append(asyncio.create_task(drain_stream(process.stderr, stderr)))

        try:
            outcome = await self._wait(process, config.timeout)
        finally:
            if process.returncode is None:
                log.warning("Killing worker for %s", case.identifier)
                process.kill()
                await process.wait()
                for reader in readers:
                    reader.cancel()

        partial = await collect_readers(readers, config.drain_timeout)
        duration = loop.time() - started

        raw = bytes(stdout)
        stderr_text = stderr.decode(config.encoding, errors="replace")
        body_output = extract_output(raw, config.boundary_marker.encode(config.encoding))
        if body_output is None:
            if not isinstance(outcome, TimedOut):
                details = stderr_text or raw.decode(config.encoding, errors="replace")
                raise WorkerSetupError(
                    f"Worker for {case.identifier} {outcome.describe()} "
                    f"before running the test body:\n{details}"
                )
            body_output = b""

        log.info("Case %s %s (%.2fs)", case.identifier, outcome.describe(), duration)
        return SubprocessResult(
            outcome=outcome,
            output=body_output.decode(config.encoding, errors="replace"),
            output_bytes=body_output,
            stderr=stderr_text,
            duration=duration,
            partial=partial,
        )

    async def _wait(
        self,
        process: asyncio.subprocess.Process,
        timeout: float | None,
    ) -> TerminationOutcome:
        try:
            returncode = await asyncio.wait_for(process.wait(), timeout)
        except TimeoutError:
            log.warning("Worker %d timed out after %ss", process.pid, timeout)
            process.kill()
            await process.wait()
            return TimedOut(timeout=timeout or 0.0)
        return classify_returncode(returncode)

    def verify(self, case: TestCase, result: SubprocessResult) -> None:
        """Hand the result to the case's verifier, or assert success.

        A failing verifier's AssertionError propagates with the captured
        output attached as a note.
        """
        try:
            if case.verify_outcome is not None:
                case.verify_outcome(result.outcome, result.output)
            elif case.verify is not None:
                case.verify(result.success, result.output)
            else:
                assert_success(case, result)
        except SubprocessTestFailure:
            raise
        except AssertionError as exc:
            header = f"Test {case.name} subprocess {result.outcome.describe()}"
            exc.add_note("\n".join([header, *output_sections(result)]))
            raise

    async def run_async(self, case: TestCase) -> SubprocessResult:
        """Execute ``case`` and verify its result."""
        result = await self.execute(case)
        self.verify(case, result)
        return result

    def run(self, case: TestCase) -> SubprocessResult:
        """Blocking variant of ``run_async`` for synchronous tests."""
        return asyncio.run(self.run_async(case))
