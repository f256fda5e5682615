"""Worker entry point, executed inside the spawned child process.

The launcher starts ``python -m subprocess_harness`` with the case identifier
in an environment variable. The worker imports the module that registered the
case, runs its body once and reports back only through its exit status and
what it wrote to stdout.
"""

import argparse
import importlib
import importlib.util
import io
import logging
import os
import sys
import traceback
from collections.abc import Sequence
from types import ModuleType

from subprocess_harness import registry
from subprocess_harness.case import TestCase, split_identifier
from subprocess_harness.config import DEFAULT_ENV_VAR_NAME, DEFAULT_OUTPUT_BOUNDARY
from subprocess_harness.errors import HarnessError, WorkerSetupError
from subprocess_harness.models.outcome import SUCCESS_EXIT_CODE

log = logging.getLogger(__name__)

FAILURE_EXIT_CODE = 101
SETUP_ERROR_EXIT_CODE = 102

# Module name for cases defined in a script that was run as __main__.
MAIN_ALIAS = "__subprocess_main__"


def load_module(module_name: str, source_file: str | None) -> ModuleType:
    """Import the module a case was registered from.

    Falls back to loading ``source_file`` directly when the module cannot be
    imported by name, e.g. test files collected with pytest's importlib mode.
    """
    if module_name == "__main__":
        if source_file is None:
            raise WorkerSetupError("Cases defined in __main__ need a source file")
        return _load_from_file(MAIN_ALIAS, source_file)

    try:
        return importlib.import_module(module_name)
    except ModuleNotFoundError as exc:
        missing = exc.name or ""
        if source_file is None or not (
            module_name == missing or module_name.startswith(f"{missing}.")
        ):
            raise
        log.debug("Module %s not importable, loading %s", module_name, source_file)
        return _load_from_file(module_name, source_file)


def _load_from_file(module_name: str, source_file: str) -> ModuleType:
    spec = importlib.util.spec_from_file_location(module_name, source_file)
    if spec is None or spec.loader is None:
        raise WorkerSetupError(f"Cannot load {module_name} from {source_file}")
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    spec.loader.exec_module(module)
    return module


def load_case(identifier: str, source_file: str | None = None) -> TestCase:
    """Import the case's module and look the case up in the registry.

    Raises:
        WorkerSetupError: If the module cannot be imported
        CaseNotFoundError: If importing it did not register the case

    """
    module_name, name = split_identifier(identifier)
    try:
        load_module(module_name, source_file)
    except HarnessError:
        raise
    except Exception as exc:
        raise WorkerSetupError(f"Failed to import {module_name}: {exc!r}") from exc

    if module_name == "__main__":
        identifier = f"{MAIN_ALIAS}::{name}"
    return registry.lookup(identifier)


def run_case(case: TestCase, boundary: str) -> int:
    """Run the case body once between two boundary markers.

    Returns:
        Exit code for the worker process

    """
    _write(boundary)
    try:
        case.body()
    except Exception:
        traceback.print_exc()
        return FAILURE_EXIT_CODE
    finally:
        _write(boundary)
        sys.stderr.flush()
    return SUCCESS_EXIT_CODE


def _write(text: str) -> None:
    sys.stdout.write(text)
    sys.stdout.flush()


def use_unix_newlines() -> None:
    """Stop text streams translating "\n", so output matches byte for byte."""
    for stream in (sys.stdout, sys.stderr):
        if isinstance(stream, io.TextIOWrapper):
            stream.reconfigure(newline="\n")


def log_level_from_env() -> str:
    """Worker log level, WARNING unless a known level name is configured."""
    level = os.environ.get("SUBPROCESS_HARNESS_LOG_LEVEL", "WARNING").upper()
    if level not in logging.getLevelNamesMapping():
        return "WARNING"
    return level


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="python -m subprocess_harness",
        description="Run one registered subprocess test case",
    )
    parser.add_argument(
        "--env-var-name",
        default=DEFAULT_ENV_VAR_NAME,
        help="Environment variable holding the case identifier",
    )
    parser.add_argument(
        "--output-boundary",
        default=DEFAULT_OUTPUT_BOUNDARY,
        help="Line written around the test body's output",
    )
    parser.add_argument(
        "--source-file",
        default=None,
        help="File defining the case, used when its module is not importable",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> None:
    """Worker entry point."""
    args = parse_args(argv)
    use_unix_newlines()

    logging.basicConfig(
        level=log_level_from_env(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    identifier = os.environ.get(args.env_var_name)
    if not identifier:
        log.error("Environment variable %s is not set", args.env_var_name)
        sys.exit(SETUP_ERROR_EXIT_CODE)

    try:
        case = load_case(identifier, args.source_file)
    except (HarnessError, ValueError) as exc:
        log.error("Cannot start case %s: %s", identifier, exc)
        sys.exit(SETUP_ERROR_EXIT_CODE)

    log.debug("Running case %s", identifier)
    sys.exit(run_case(case, f"\n{args.output_boundary}\n"))
