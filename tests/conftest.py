"""
Root pytest configuration and shared fixtures.
"""

import io
from typing import Callable, List, Optional, Tuple
from unittest.mock import patch

import pytest

from taskwarrior_mcp.config import TaskwarriorSettings
from taskwarrior_mcp.core.commands import CommandInvocation
from taskwarrior_mcp.tools.operations import build_router
from taskwarrior_mcp.tools.router import OperationRouter


class RecordingRunner:
    """Stands in for the executor: records invocations, returns canned output."""

    def __init__(self, output: str = "ok\n"):
        self.output = output
        self.calls: List[Tuple[CommandInvocation, TaskwarriorSettings]] = []

    def __call__(self, invocation: CommandInvocation, settings: TaskwarriorSettings) -> str:
        self.calls.append((invocation, settings))
        return self.output

    @property
    def command_lines(self) -> List[str]:
        return [invocation.command_line for invocation, _ in self.calls]


class FakeStream(io.BytesIO):
    """In-memory pipe; ``on_read`` runs before every chunked read."""

    def __init__(self, data: bytes = b"", on_read: Optional[Callable[[], object]] = None):
        super().__init__(data)
        self.on_read = on_read

    def read1(self, size: int = -1) -> bytes:
        if self.on_read is not None:
            self.on_read()
        return super().read1(size)


class FakeProcess:
    """Minimal ``subprocess.Popen`` double with canned pipes and exit status."""

    def __init__(
        self,
        stdout: bytes = b"",
        stderr: bytes = b"",
        returncode: int = 0,
        on_exit: Optional[Callable[[], object]] = None,
    ):
        self.pid = 4242
        self.stdout = FakeStream(stdout)
        self.stderr = io.BytesIO(stderr)
        self.returncode: Optional[int] = None
        self.killed = False
        self._exit_status = returncode
        self._on_exit = on_exit

    def kill(self) -> None:
        self.killed = True

    def wait(self, timeout: Optional[float] = None) -> int:
        if self.returncode is None:
            self.returncode = -9 if self.killed else self._exit_status
            if self._on_exit is not None:
                self._on_exit()
        return self.returncode

    def __enter__(self) -> "FakeProcess":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stdout.close()
        self.stderr.close()
        self.wait()


@pytest.fixture
def settings() -> TaskwarriorSettings:
    return TaskwarriorSettings()


@pytest.fixture
def runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture
def router(settings: TaskwarriorSettings, runner: RecordingRunner) -> OperationRouter:
    """Router over the full catalog that never spawns a process."""
    return build_router(settings, runner=runner)


@pytest.fixture
def fake_process():
    """The ``FakeProcess`` class, for building canned processes in tests."""
    return FakeProcess


@pytest.fixture
def fake_popen():
    """Patch the executor's ``Popen`` and ``os.killpg``.

    ``fake_popen.return_value`` starts as a process printing ``"  output\\n"``;
    the patched ``killpg`` is available as ``fake_popen.killpg``.
    """
    with patch("taskwarrior_mcp.core.executor.subprocess.Popen") as popen, patch(
        "taskwarrior_mcp.core.executor.os.killpg"
    ) as killpg:
        popen.return_value = FakeProcess(stdout=b"  output\n")
        popen.killpg = killpg
        yield popen
