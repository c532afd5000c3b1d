"""Run Taskwarrior command lines.

One invocation at a time: a process-wide lock is held from spawn until the
process has exited, so two tool calls never race on the task database.

Stdout is read incrementally. As soon as it exceeds the configured cap the
whole process group (the shell, ``task`` and any ``yes`` feeding it) is
killed and the call fails; stderr is drained on a helper thread so a chatty
process cannot stall on a full pipe.
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import threading
from typing import IO, List, Optional

from taskwarrior_mcp.config import TaskwarriorSettings, timed
from taskwarrior_mcp.core.commands import CommandInvocation
from taskwarrior_mcp.core.errors import ExecutionError

__all__ = ["run_invocation"]

logger = logging.getLogger(__name__)

_execution_lock = threading.Lock()

_READ_CHUNK = 64 * 1024


def _failure_message(
    invocation: CommandInvocation, returncode: int, stdout: str, stderr: str
) -> str:
    detail = stderr.strip() or stdout.strip()
    if detail:
        return detail
    return f"Command '{invocation.command_line}' exited with status {returncode}"


def _read_capped(stream: IO[bytes], limit: int) -> Optional[bytes]:
    """Read ``stream`` to EOF, or return None once more than ``limit`` bytes arrive."""
    chunks: List[bytes] = []
    total = 0
    while True:
        chunk = stream.read1(_READ_CHUNK)
        if not chunk:
            return b"".join(chunks)
        total += len(chunk)
        if total > limit:
            return None
        chunks.append(chunk)


def _drain(stream: IO[bytes], sink: List[bytes]) -> None:
    sink.append(stream.read())


def _kill_group(process: subprocess.Popen) -> None:
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except (ProcessLookupError, PermissionError):
        process.kill()


@timed("taskwarrior.run")
def run_invocation(invocation: CommandInvocation, settings: TaskwarriorSettings) -> str:
    """Run ``invocation`` through the shell and return its stripped stdout.

    Args:
        invocation: Command line to run, already bound to ``settings``
        settings: Taskwarrior settings supplying the process environment and
            the output cap

    Raises:
        ExecutionError: if the process cannot be started, exits non-zero, or
            writes more than ``settings.max_output_bytes`` to stdout
    """
    command_line = invocation.command_line
    limit = settings.max_output_bytes
    logger.debug("Running: %s", command_line, extra={"shell": invocation.shell})

    with _execution_lock:
        try:
            process = subprocess.Popen(
                command_line,
                shell=True,
                executable=invocation.shell,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                env=settings.process_env(),
                start_new_session=True,
            )
        except OSError as exc:
            raise ExecutionError(
                f"Failed to run '{command_line}': {exc}", command=command_line
            ) from exc

        with process:
            stderr_sink: List[bytes] = []
            drain = threading.Thread(
                target=_drain, args=(process.stderr, stderr_sink), daemon=True
            )
            drain.start()

            stdout = _read_capped(process.stdout, limit)
            if stdout is None:
                _kill_group(process)
                process.wait()
                drain.join()
                raise ExecutionError(
                    f"Output of '{command_line}' exceeded {limit} bytes",
                    command=command_line,
                )

            returncode = process.wait()
            drain.join()

    out_text = stdout.decode("utf-8", errors="replace")
    err_text = b"".join(stderr_sink).decode("utf-8", errors="replace")

    if returncode != 0:
        raise ExecutionError(
            _failure_message(invocation, returncode, out_text, err_text),
            command=command_line,
            returncode=returncode,
        )

    return out_text.strip()
