"""Fixtures for integration tests that spawn real worker processes."""

import pytest

from subprocess_harness.config import HarnessConfig
from subprocess_harness.launcher import Launcher


@pytest.fixture
def launcher() -> Launcher:
    """Launcher with a generous timeout so a hung worker cannot stall the suite."""
    return Launcher(config=HarnessConfig(timeout=120))
