"""Run external encoder processes as awaitable units."""

import asyncio
import logging
import shlex
from dataclasses import dataclass
from typing import Optional, Sequence

logger = logging.getLogger(__name__)

# Seconds to wait for a terminated process before killing it
TERMINATE_GRACE = 5.0


class ProcessError(Exception):
    """An external process could not be run to successful completion."""

    def __init__(self, message: str, returncode: Optional[int] = None, stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class ProcessTimeout(ProcessError):
    """An external process ran past its timeout and was stopped."""


@dataclass
class ProcessResult:
    """Outcome of a finished process."""

    returncode: int
    stderr: str


async def _stop(process: asyncio.subprocess.Process) -> None:
    if process.returncode is not None:
        return
    try:
        process.terminate()
    except ProcessLookupError:
        return
    try:
        await asyncio.wait_for(process.wait(), TERMINATE_GRACE)
    except asyncio.TimeoutError:
        logger.warning(f"Process {process.pid} ignored terminate, killing")
        process.kill()
        await process.wait()


def _tail(stderr: bytes, lines: int = 20) -> str:
    text = stderr.decode(errors="replace").strip()
    return "\n".join(text.splitlines()[-lines:])


async def run_ffmpeg(args: Sequence[str], timeout: Optional[float] = None) -> ProcessResult:
    """Run an ffmpeg command line and wait for it to exit.

    The process is stopped if the timeout elapses or the awaiting task is
    cancelled, so no encoder outlives its caller.

    Args:
        args: Full command line, executable first.
        timeout: Seconds to wait. None waits forever.

    Returns:
        ProcessResult for a zero exit status.

    Raises:
        ProcessError: If the process cannot be started or exits non-zero.
        ProcessTimeout: If the timeout elapses.
    """
    logger.debug(f"Running: {shlex.join(args)}")

    try:
        process = await asyncio.create_subprocess_exec(
            *args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise ProcessError(f"Could not start {args[0]}: {e}") from e

    try:
        _, stderr = await asyncio.wait_for(process.communicate(), timeout)
    except asyncio.TimeoutError:
        await _stop(process)
        raise ProcessTimeout(f"{args[0]} timed out after {timeout}s")
    except asyncio.CancelledError:
        await _stop(process)
        raise

    if process.returncode != 0:
        tail = _tail(stderr)
        logger.debug(f"{args[0]} exited with {process.returncode}: {tail}")
        raise ProcessError(
            f"{args[0]} exited with status {process.returncode}",
            returncode=process.returncode,
            stderr=tail,
        )

    return ProcessResult(returncode=process.returncode, stderr=_tail(stderr))
