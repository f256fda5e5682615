"""pytest plugin exposing harness options and a launcher fixture."""

import pytest

from subprocess_harness.config import HarnessConfig, get_default_config, set_default_config
from subprocess_harness.launcher import Launcher

_previous_config = pytest.StashKey[HarnessConfig]()


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("subprocess-harness", "subprocess test harness")
    group.addoption(
        "--subprocess-timeout",
        type=float,
        default=None,
        help="Seconds before a subprocess test's worker is killed",
    )
    group.addoption(
        "--subprocess-capture-stderr",
        action="store_true",
        default=None,
        help="Include worker stderr in the captured output",
    )
    parser.addini(
        "subprocess_timeout",
        "Seconds before a subprocess test's worker is killed",
        default=None,
    )
    parser.addini(
        "subprocess_capture_stderr",
        "Include worker stderr in the captured output",
        type="bool",
        default=None,
    )


def pytest_configure(config: pytest.Config) -> None:
    overrides: dict[str, object] = {}

    timeout = config.getoption("subprocess_timeout")
    if timeout is None and (ini_timeout := config.getini("subprocess_timeout")):
        timeout = float(ini_timeout)
    if timeout is not None:
        overrides["timeout"] = timeout

    capture_stderr = config.getoption("subprocess_capture_stderr")
    if capture_stderr is None:
        # Unset bool ini keys come back as a non-bool placeholder.
        ini_capture = config.getini("subprocess_capture_stderr")
        capture_stderr = ini_capture if isinstance(ini_capture, bool) else None
    if capture_stderr is not None:
        overrides["capture_stderr"] = capture_stderr

    defaults = get_default_config().merged(overrides)
    config.stash[_previous_config] = set_default_config(defaults)


def pytest_unconfigure(config: pytest.Config) -> None:
    if _previous_config in config.stash:
        set_default_config(config.stash[_previous_config])


@pytest.fixture
def subprocess_launcher() -> Launcher:
    """Launcher using the session's default harness config."""
    return Launcher(config=get_default_config())
