"""Decorator turning a plain function into a subprocess test."""

import functools
import os
from collections.abc import Callable

from subprocess_harness import registry
from subprocess_harness.case import Body, OutcomeVerifier, SuccessVerifier, TestCase
from subprocess_harness.launcher import Launcher


def subprocess_test(
    func: Body | None = None,
    /,
    *,
    verify: SuccessVerifier | None = None,
    verify_outcome: OutcomeVerifier | None = None,
    env_var_name: str | None = None,
    output_boundary: str | None = None,
    timeout: float | None = None,
    capture_stderr: bool | None = None,
) -> Body | Callable[[Body], Body]:
    """Run the decorated function in its own worker process.

    The function body becomes the worker's test body. The returned function is
    what pytest collects: it launches the worker and passes the outcome to
    ``verify(success, output)`` or ``verify_outcome(outcome, output)``. Without
    a verifier the test fails unless the worker exited with code 0.

    Examples:
        >>> @subprocess_test
        ... def test_exits_cleanly():
        ...     assert 1 + 1 == 2

        >>> def check_output(success: bool, output: str) -> None:
        ...     assert success
        ...     assert output == "2\\n"
        >>> @subprocess_test(verify=check_output)
        ... def test_prints_sum():
        ...     print(1 + 1)

    """

    def decorate(body: Body) -> Body:
        case = registry.register(
            TestCase.from_function(
                body,
                verify=verify,
                verify_outcome=verify_outcome,
                env_var_name=env_var_name,
                output_boundary=output_boundary,
                timeout=timeout,
                capture_stderr=capture_stderr,
            )
        )

        @functools.wraps(body)
        def run_in_subprocess() -> None:
            launcher = Launcher()
            selector = launcher.config_for(case).env_var_name
            # Already inside this case's worker, e.g. re-run through pytest.
            if os.environ.get(selector) == case.identifier:
                body()
                return
            launcher.run(case)

        run_in_subprocess.case = case  # type: ignore[attr-defined]
        return run_in_subprocess

    if func is not None:
        return decorate(func)
    return decorate
