"""Draining and trimming of worker output."""

import asyncio
import logging
from collections.abc import Sequence

from subprocess_harness.errors import OutputCaptureFailure

log = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


async def drain_stream(
    stream: asyncio.StreamReader,
    buffer: bytearray,
    chunk_size: int = CHUNK_SIZE,
) -> None:
    """Append everything read from ``stream`` to ``buffer`` until EOF.

    Runs as its own task while the launcher waits for the worker to exit,
    so a worker writing more than the pipe can hold never blocks on us.
    """
    while chunk := await stream.read(chunk_size):
        buffer.extend(chunk)


async def collect_readers(
    readers: Sequence[asyncio.Task[None]],
    grace: float,
) -> bool:
    """Wait for reader tasks after the worker exited.

    Args:
        readers: Tasks running ``drain_stream``
        grace: Seconds to wait for the readers to reach EOF

    Returns:
        True if some reader had to be abandoned before EOF, which happens
        when a process spawned by the worker still holds the pipe open

    Raises:
        OutputCaptureFailure: If reading from a pipe failed

    """
    if not readers:
        return False

    done, pending = await asyncio.wait(readers, timeout=grace)
    for task in pending:
        task.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)
        log.warning(
            "Output still open %.1fs after worker exit, returning partial output",
            grace,
        )

    for task in done:
        if (exc := task.exception()) is not None:
            raise OutputCaptureFailure(f"Failed to read worker output: {exc}") from exc

    return bool(pending)


def extract_output(raw: bytes, boundary: bytes) -> bytes | None:
    """Cut the test body's output out of everything the worker printed.

    Output starts after the first ``boundary`` and ends before the next one.
    A worker killed mid-body never prints the closing boundary, in which case
    everything after the opening one is kept.

    Returns:
        The body's output, or None if the opening boundary is missing

    """
    start = raw.find(boundary)
    if start == -1:
        return None
    output = raw[start + len(boundary) :]

    end = output.find(boundary)
    if end != -1:
        output = output[:end]
    return output
