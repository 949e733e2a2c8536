"""Asynchronous subprocess execution with timeout and cancellation.

:func:`run_command` never raises for spawn problems or timeouts; they are
reported through :class:`CommandResult` so callers can turn them into checks.
Cancellation of the awaiting task terminates the child before propagating.
On POSIX the child leads its own process group, so termination also reaches
anything it spawned (the preflight command's own audit subprocess).
"""
from __future__ import annotations

import asyncio
import os
import signal
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

import structlog

logger = structlog.get_logger(__name__)

_OWN_PROCESS_GROUP = os.name == "posix"


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Captured output of one subprocess invocation.

    Attributes:
        exit_code: Process exit code, or None if the process never completed.
        stdout: Decoded standard output.
        stderr: Decoded standard error.
        spawn_error: Description of a spawn failure or timeout, else None.
        timed_out: True when the process was killed after the timeout.
    """

    exit_code: int | None
    stdout: str = ""
    stderr: str = ""
    spawn_error: str | None = None
    timed_out: bool = False

    @property
    def completed(self) -> bool:
        return self.spawn_error is None


async def _terminate(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is not None:
        return
    try:
        if _OWN_PROCESS_GROUP:
            os.killpg(proc.pid, signal.SIGKILL)
        else:
            proc.kill()
    except ProcessLookupError:
        return
    await proc.wait()


async def run_command(
    argv: Sequence[str],
    *,
    cwd: Path | str | None = None,
    timeout: float | None = None,
    env: dict[str, str] | None = None,
) -> CommandResult:
    """Run *argv* and capture stdout, stderr and the exit code separately.

    Args:
        argv: Program and arguments; no shell is involved.
        cwd: Working directory for the child.
        timeout: Seconds before the child is killed; None waits indefinitely.
        env: Environment for the child, defaults to the current environment.

    Returns:
        A :class:`CommandResult`.  Spawn failures and timeouts set
        ``spawn_error`` and leave ``exit_code`` as None.
    """
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            cwd=str(cwd) if cwd is not None else None,
            env=env if env is not None else dict(os.environ),
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            start_new_session=_OWN_PROCESS_GROUP,
        )
    except OSError as exc:
        logger.warning("command_spawn_failed", argv=list(argv), error=str(exc))
        return CommandResult(exit_code=None, spawn_error=str(exc) or type(exc).__name__)

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        await _terminate(proc)
        logger.warning("command_timed_out", argv=list(argv), timeout=timeout)
        return CommandResult(
            exit_code=None,
            spawn_error=f"{argv[0]} timed out after {timeout:g}s",
            timed_out=True,
        )
    except asyncio.CancelledError:
        await _terminate(proc)
        logger.info("command_cancelled", argv=list(argv), pid=proc.pid)
        raise

    result = CommandResult(
        exit_code=proc.returncode,
        stdout=stdout_bytes.decode("utf-8", errors="replace"),
        stderr=stderr_bytes.decode("utf-8", errors="replace"),
    )
    logger.debug(
        "command_completed",
        argv=list(argv),
        exit_code=result.exit_code,
        stdout_bytes=len(stdout_bytes),
        stderr_bytes=len(stderr_bytes),
    )
    return result
