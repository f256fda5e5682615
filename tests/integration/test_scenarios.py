"""End-to-end subprocess tests written the way users write them."""

import os
import signal
import sys

import pytest

from subprocess_harness import (
    AbnormalTermination,
    NormalExit,
    SubprocessTestFailure,
    TerminationOutcome,
    TimedOut,
    subprocess_test,
)

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="needs POSIX signals")


@subprocess_test
def test_just_success() -> None:
    value = 1
    assert value + 1 == 2


def _prints_two(success: bool, output: str) -> None:
    assert success
    assert output == "2\n"


@subprocess_test(verify=_prints_two)
def test_one_plus_one() -> None:
    print(1 + 1)


def _no_trailing_newline(success: bool, output: str) -> None:
    assert success
    assert output == "One"


@subprocess_test(verify=_no_trailing_newline)
def test_output_without_trailing_newline() -> None:
    print("One", end="")


def _failed_with_message(success: bool, output: str) -> None:
    assert not success
    assert "Oopsie!" in output


@subprocess_test(verify=_failed_with_message, capture_stderr=True)
def test_simple_failure() -> None:
    raise RuntimeError("Oopsie!")


def _aborted(outcome: TerminationOutcome, output: str) -> None:
    assert outcome == AbnormalTermination(signal=signal.SIGABRT)
    assert output == "Banana\nMango\n"


@posix_only
@subprocess_test(verify_outcome=_aborted)
def test_aborts() -> None:
    print("Banana")
    print("Mango")
    os.abort()


def _exited_with_three(outcome: TerminationOutcome, output: str) -> None:
    assert outcome == NormalExit(code=3)
    assert output == "leaving\n"


@subprocess_test(verify_outcome=_exited_with_three)
def test_exit_code() -> None:
    print("leaving")
    sys.exit(3)


def _hard_exit(success: bool, output: str) -> None:
    assert success
    assert output == "bye"


@subprocess_test(verify=_hard_exit)
def test_hard_exit_skips_closing_boundary() -> None:
    sys.stdout.write("bye")
    os._exit(0)


@subprocess_test(env_var_name="__CUSTOM_SUBPROCESS_VAR__")
def test_custom_var() -> None:
    assert "__CUSTOM_SUBPROCESS_VAR__" in os.environ


def _stops_at_boundary(success: bool, output: str) -> None:
    assert success
    assert output == "One\nTwo\n"


@subprocess_test(output_boundary="!!!!!!!!!!!!!!!!", verify=_stops_at_boundary)
def test_custom_boundary() -> None:
    print("One")
    print("Two")
    print("\n!!!!!!!!!!!!!!!!\n")
    print("Three")


def _stdout_and_stderr(success: bool, output: str) -> None:
    assert success
    assert output == "out\nerr\n"


@subprocess_test(capture_stderr=True, verify=_stdout_and_stderr)
def test_capture_stderr() -> None:
    print("out")
    print("err", file=sys.stderr)


def _stdout_only(success: bool, output: str) -> None:
    assert success
    assert output == "out\n"


@subprocess_test(verify=_stdout_only)
def test_stderr_not_captured_by_default() -> None:
    print("out")
    print("err", file=sys.stderr)


def _one_megabyte(success: bool, output: str) -> None:
    assert success
    assert len(output) == 1_048_576


@subprocess_test(verify=_one_megabyte)
def test_large_output() -> None:
    sys.stdout.write("x" * 1_048_576)


def _timed_out(outcome: TerminationOutcome, output: str) -> None:
    assert outcome == TimedOut(timeout=2.0)


@subprocess_test(timeout=2.0, verify_outcome=_timed_out)
def test_timeout_kills_worker() -> None:
    import time

    time.sleep(60)


_STATE: list[int] = []


def _fresh_process(success: bool, output: str) -> None:
    assert success
    assert output == "1\n"


@subprocess_test(verify=_fresh_process)
def test_state_does_not_leak_first() -> None:
    _STATE.append(1)
    print(len(_STATE))


@subprocess_test(verify=_fresh_process)
def test_state_does_not_leak_second() -> None:
    _STATE.append(1)
    print(len(_STATE))


@subprocess_test
def failing_assertion() -> None:
    print("before failure")
    assert 1 == 2


def test_default_policy_reports_failure() -> None:
    """Without a verifier a failing body fails the test with its output."""
    with pytest.raises(SubprocessTestFailure) as exc_info:
        failing_assertion()

    message = str(exc_info.value)
    assert "Test failing_assertion subprocess failed: exited with code 101" in message
    assert "before failure" in message
    assert "AssertionError" in message


def _expects_success(success: bool, output: str) -> None:
    assert success, "expected the body to succeed"


@subprocess_test(verify=_expects_success)
def failing_verifier() -> None:
    print("something went wrong")
    sys.exit(1)


def test_verifier_failure_propagates() -> None:
    """Verifier's own assertion is what fails the test."""
    with pytest.raises(AssertionError, match="expected the body to succeed") as exc_info:
        failing_verifier()

    assert "something went wrong" in "\n".join(exc_info.value.__notes__)
