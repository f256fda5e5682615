"""Definition of a single subprocess test case."""

import inspect
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, TypeAlias

from pydantic import ValidationError

from subprocess_harness.config import HarnessConfig
from subprocess_harness.models.outcome import TerminationOutcome

Body: TypeAlias = Callable[[], None]
SuccessVerifier: TypeAlias = Callable[[bool, str], None]
OutcomeVerifier: TypeAlias = Callable[[TerminationOutcome, str], None]


@dataclass(frozen=True, kw_only=True)
class TestCase:
    """One test body to run in isolation, plus how to judge its outcome.

    The worker process re-imports ``module`` and finds the case again by
    ``identifier``, so cases must be created at module import time.
    """

    __test__ = False

    module: str
    name: str
    body: Body
    verify: SuccessVerifier | None = None
    verify_outcome: OutcomeVerifier | None = None
    source_file: str | None = None
    overrides: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.verify is not None and self.verify_outcome is not None:
            raise ValueError(
                f"Case {self.identifier} sets both verify and verify_outcome"
            )
        if "<locals>" in self.name:
            raise ValueError(
                f"Case {self.identifier} must be defined at module level "
                "so the worker process can import it"
            )
        unknown = set(self.overrides) - set(HarnessConfig.model_fields)
        if unknown:
            raise ValueError(
                f"Unknown options for case {self.identifier}: {sorted(unknown)}"
            )
        try:
            HarnessConfig.model_validate(dict(self.overrides))
        except ValidationError as exc:
            raise ValueError(
                f"Invalid options for case {self.identifier}: {exc}"
            ) from exc

    @property
    def identifier(self) -> str:
        """Stable selector passed to the worker process."""
        return f"{self.module}::{self.name}"

    @classmethod
    def from_function(
        cls,
        body: Body,
        *,
        name: str | None = None,
        verify: SuccessVerifier | None = None,
        verify_outcome: OutcomeVerifier | None = None,
        **overrides: Any,
    ) -> "TestCase":
        """Build a case named after ``body`` and located in its module.

        ``None`` overrides are ignored, so callers can forward optional
        keyword arguments unchanged.
        """
        try:
            source_file: str | None = inspect.getfile(body)
        except TypeError:
            source_file = None

        return cls(
            module=body.__module__,
            name=name or body.__qualname__,
            body=body,
            verify=verify,
            verify_outcome=verify_outcome,
            source_file=source_file,
            overrides={k: v for k, v in overrides.items() if v is not None},
        )


def split_identifier(identifier: str) -> tuple[str, str]:
    """Split ``module::name`` into its parts."""
    module, sep, name = identifier.partition("::")
    if not sep or not module or not name:
        raise ValueError(f"Malformed case identifier: {identifier!r}")
    return module, name
