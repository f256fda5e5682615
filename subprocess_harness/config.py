"""Configuration for launching worker processes."""

import sys

from pydantic import Field, field_validator

from subprocess_harness.models.base import Model

DEFAULT_ENV_VAR_NAME = "__TEST_RUN_SUBPROCESS__"
DEFAULT_OUTPUT_BOUNDARY = "=" * 40


class HarnessConfig(Model):
    """Settings shared by every case a launcher runs.

    Cases may override individual fields; see ``Launcher.config_for``.
    """

    env_var_name: str = Field(
        default=DEFAULT_ENV_VAR_NAME,
        min_length=1,
        description="Environment variable carrying the case identifier to the worker",
    )
    output_boundary: str = Field(
        default=DEFAULT_OUTPUT_BOUNDARY,
        description="Line printed by the worker around the test body's output",
    )
    timeout: float | None = Field(
        default=None,
        gt=0,
        description="Seconds to wait for the worker before killing it (None waits forever)",
    )
    capture_stderr: bool = Field(
        default=False,
        description="Merge the worker's stderr into the captured output",
    )
    python_executable: str = Field(
        default_factory=lambda: sys.executable,
        description="Interpreter used to start the worker",
    )
    drain_timeout: float = Field(
        default=5.0,
        ge=0,
        description="Seconds to keep reading output after the worker exited",
    )
    encoding: str = Field(default="utf-8", description="Encoding of captured output")

    @field_validator("output_boundary")
    @classmethod
    def _single_line(cls, value: str) -> str:
        if not value or "\n" in value or "\r" in value:
            raise ValueError("output boundary must be a non-empty single line")
        return value

    @property
    def boundary_marker(self) -> str:
        """Exact text the worker writes before and after the test body."""
        return f"\n{self.output_boundary}\n"

    def merged(self, overrides: dict[str, object]) -> "HarnessConfig":
        """Return a validated copy with ``overrides`` applied."""
        if not overrides:
            return self
        return HarnessConfig.model_validate({**self.model_dump(), **overrides})


_default_config = HarnessConfig()


def get_default_config() -> HarnessConfig:
    """Config used by ``subprocess_test`` cases."""
    return _default_config


def set_default_config(config: HarnessConfig) -> HarnessConfig:
    """Replace the process-wide default config and return the previous one."""
    global _default_config
    previous, _default_config = _default_config, config
    return previous
