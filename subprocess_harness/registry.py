"""Registry of cases, keyed by their identifier."""

import logging
from collections.abc import Sequence

from subprocess_harness.case import TestCase
from subprocess_harness.errors import CaseNotFoundError

log = logging.getLogger(__name__)

_cases: dict[str, TestCase] = {}


def register(case: TestCase) -> TestCase:
    """Register ``case`` so a worker importing its module can find it.

    Registering an identifier again replaces the earlier case, which is
    what happens when a test module is imported a second time.
    """
    if case.identifier in _cases:
        log.debug("Replacing registered case %s", case.identifier)
    _cases[case.identifier] = case
    return case


def lookup(identifier: str) -> TestCase:
    """Return the case registered under ``identifier``.

    Raises:
        CaseNotFoundError: If no such case was registered

    """
    try:
        return _cases[identifier]
    except KeyError:
        raise CaseNotFoundError(
            f"Case '{identifier}' is not registered. "
            f"Registered cases: {sorted(_cases)}"
        ) from None


def unregister(identifier: str) -> None:
    """Forget a case; unknown identifiers are ignored."""
    _cases.pop(identifier, None)


def registered() -> Sequence[str]:
    """Identifiers of all registered cases, sorted."""
    return sorted(_cases)
