"""Allow running the worker with ``python -m subprocess_harness``."""

from subprocess_harness.worker import main

if __name__ == "__main__":  # pragma: no cover
    main()
