"""Tests for the case registry."""

from collections.abc import Generator

import pytest

from subprocess_harness import registry
from subprocess_harness.case import TestCase
from subprocess_harness.errors import CaseNotFoundError


def _first() -> None:
    pass


def _second() -> None:
    pass


@pytest.fixture
def case() -> Generator[TestCase]:
    """Case registered for the duration of a test."""
    case = registry.register(TestCase.from_function(_first, name="registry_case"))
    yield case
    registry.unregister(case.identifier)


def test_lookup_returns_registered_case(case: TestCase) -> None:
    """Registered cases can be looked up by identifier."""
    assert registry.lookup(case.identifier) is case
    assert case.identifier in registry.registered()


def test_register_replaces_existing(case: TestCase) -> None:
    """Registering an identifier again replaces the earlier case."""
    replacement = registry.register(
        TestCase.from_function(_second, name="registry_case")
    )

    assert registry.lookup(case.identifier) is replacement


def test_lookup_unknown_identifier() -> None:
    """Unknown identifiers raise CaseNotFoundError."""
    with pytest.raises(CaseNotFoundError, match="missing::case"):
        registry.lookup("missing::case")


def test_unregister(case: TestCase) -> None:
    """Unregistered cases are no longer found."""
    registry.unregister(case.identifier)

    with pytest.raises(CaseNotFoundError):
        registry.lookup(case.identifier)


def test_unregister_unknown_is_ignored() -> None:
    """Unregistering something never registered is a no-op."""
    registry.unregister("missing::case")
