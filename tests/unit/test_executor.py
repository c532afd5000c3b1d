"""Tests for the command executor."""

import itertools
import shutil
import signal
import subprocess
import threading
import time
from pathlib import Path
from unittest.mock import patch

import pytest

from taskwarrior_mcp.config import TaskwarriorSettings
from taskwarrior_mcp.core.commands import CommandInvocation
from taskwarrior_mcp.core.errors import ExecutionError
from taskwarrior_mcp.core.executor import run_invocation
from taskwarrior_mcp.core.responses import ErrorCode


def _run_in_thread(invocation, settings):
    """Start ``run_invocation`` on a thread; the returned dict collects its outcome."""
    outcome = {}

    def target():
        try:
            outcome["result"] = run_invocation(invocation, settings)
        except Exception as exc:
            outcome["error"] = exc

    thread = threading.Thread(target=target, daemon=True)
    thread.start()
    return thread, outcome


class TestRunInvocation:
    """Process spawning and result handling."""

    def test_returns_stripped_stdout(self, fake_popen):
        result = run_invocation(CommandInvocation(args=("next",)), TaskwarriorSettings())
        assert result == "output"

    def test_runs_command_line_through_shell(self, fake_popen):
        run_invocation(CommandInvocation(args=("1", "info")), TaskwarriorSettings())

        args, kwargs = fake_popen.call_args
        assert args[0] == "task 1 info"
        assert kwargs["shell"] is True
        assert kwargs["executable"] is None
        assert kwargs["stdout"] == subprocess.PIPE
        assert kwargs["stderr"] == subprocess.PIPE
        assert kwargs["start_new_session"] is True

    def test_bulk_uses_configured_shell(self, fake_popen):
        invocation = CommandInvocation(
            args=("+x", "modify", "+y"), auto_confirm=True, shell="/bin/bash"
        )
        run_invocation(invocation, TaskwarriorSettings())

        args, kwargs = fake_popen.call_args
        assert args[0] == "yes | task +x modify +y"
        assert kwargs["executable"] == "/bin/bash"

    def test_environment_carries_taskrc_and_taskdata(self, fake_popen, tmp_path):
        settings = TaskwarriorSettings(
            taskrc=tmp_path / "taskrc", data_location=tmp_path / "data"
        )
        run_invocation(CommandInvocation(args=("next",)), settings)

        env = fake_popen.call_args.kwargs["env"]
        assert env["TASKRC"] == str(tmp_path / "taskrc")
        assert env["TASKDATA"] == str(tmp_path / "data")

    def test_pipes_closed_after_run(self, fake_popen):
        process = fake_popen.return_value
        run_invocation(CommandInvocation(args=("next",)), TaskwarriorSettings())

        assert process.stdout.closed
        assert process.stderr.closed

    def test_nonzero_exit_reports_stderr(self, fake_popen, fake_process):
        fake_popen.return_value = fake_process(
            stdout=b"partial", stderr=b"No matches.\n", returncode=1
        )

        with pytest.raises(ExecutionError) as exc_info:
            run_invocation(CommandInvocation(args=("99", "info")), TaskwarriorSettings())

        err = exc_info.value
        assert err.message == "No matches."
        assert err.returncode == 1
        assert err.command == "task 99 info"
        assert err.error_code is ErrorCode.EXECUTION_FAILED

    def test_nonzero_exit_falls_back_to_stdout(self, fake_popen, fake_process):
        fake_popen.return_value = fake_process(stdout=b"Task not found\n", returncode=2)

        with pytest.raises(ExecutionError) as exc_info:
            run_invocation(CommandInvocation(args=("99", "done")), TaskwarriorSettings())

        assert exc_info.value.message == "Task not found"

    def test_nonzero_exit_without_output_names_status(self, fake_popen, fake_process):
        fake_popen.return_value = fake_process(returncode=127)

        with pytest.raises(ExecutionError) as exc_info:
            run_invocation(CommandInvocation(args=("next",)), TaskwarriorSettings())

        assert "exited with status 127" in exc_info.value.message

    def test_spawn_failure_becomes_execution_error(self, fake_popen):
        fake_popen.side_effect = FileNotFoundError("No such file: /bin/bash")

        with pytest.raises(ExecutionError) as exc_info:
            run_invocation(
                CommandInvocation(args=("modify",), shell="/bin/bash"), TaskwarriorSettings()
            )

        assert "No such file" in exc_info.value.message
        assert exc_info.value.returncode is None

    def test_invalid_utf8_replaced(self, fake_popen, fake_process):
        fake_popen.return_value = fake_process(stdout=b"caf\xe9")
        assert run_invocation(CommandInvocation(args=("next",)), TaskwarriorSettings()) == (
            "caf�"
        )


class TestOutputCap:
    """Stdout beyond ``max_output_bytes`` kills the process and fails the call."""

    def test_output_over_cap_fails(self, fake_popen, fake_process):
        fake_popen.return_value = fake_process(stdout=b"x" * 11)

        with pytest.raises(ExecutionError) as exc_info:
            run_invocation(
                CommandInvocation(args=("all",)), TaskwarriorSettings(max_output_bytes=10)
            )

        assert "exceeded 10 bytes" in exc_info.value.message
        assert exc_info.value.command == "task all"

    def test_output_at_cap_succeeds(self, fake_popen, fake_process):
        fake_popen.return_value = fake_process(stdout=b"x" * 10)
        result = run_invocation(
            CommandInvocation(args=("all",)), TaskwarriorSettings(max_output_bytes=10)
        )
        assert result == "x" * 10
        fake_popen.killpg.assert_not_called()

    def test_stops_reading_once_cap_exceeded(self, fake_popen, fake_process):
        """The rest of the stream is left unread once the cap is crossed."""
        reads = []
        process = fake_process(stdout=b"x" * (1024 * 1024))
        process.stdout.on_read = lambda: reads.append(1)
        fake_popen.return_value = process

        with pytest.raises(ExecutionError):
            run_invocation(
                CommandInvocation(args=("all",)),
                TaskwarriorSettings(max_output_bytes=100 * 1024),
            )

        # two 64 KiB chunks cross the 100 KiB cap; the remaining 896 KiB stay unread
        assert len(reads) == 2
        fake_popen.killpg.assert_called_once_with(4242, signal.SIGKILL)

    def test_falls_back_to_kill_when_group_is_gone(self, fake_popen, fake_process):
        process = fake_process(stdout=b"x" * 11)
        fake_popen.return_value = process
        fake_popen.killpg.side_effect = ProcessLookupError

        with pytest.raises(ExecutionError):
            run_invocation(
                CommandInvocation(args=("all",)), TaskwarriorSettings(max_output_bytes=10)
            )

        assert process.killed is True


class TestSerialization:
    """Only one task process runs at a time."""

    def test_second_spawn_waits_for_first_exit(self, fake_process):
        events = []
        release = threading.Event()
        first_running = threading.Event()
        numbers = itertools.count(1)

        def spawn(*args, **kwargs):
            n = next(numbers)
            events.append(f"spawn {n}")
            process = fake_process(stdout=b"ok", on_exit=lambda: events.append(f"exit {n}"))
            if n == 1:
                process.stdout.on_read = release.wait
                first_running.set()
            return process

        settings = TaskwarriorSettings()
        with patch("taskwarrior_mcp.core.executor.subprocess.Popen", side_effect=spawn) as popen:
            first, first_outcome = _run_in_thread(CommandInvocation(args=("next",)), settings)
            assert first_running.wait(5)

            second, second_outcome = _run_in_thread(CommandInvocation(args=("count",)), settings)
            time.sleep(0.1)
            assert popen.call_count == 1

            release.set()
            first.join(5)
            second.join(5)

        assert not first.is_alive() and not second.is_alive()
        assert first_outcome == {"result": "ok"}
        assert second_outcome == {"result": "ok"}
        assert events == ["spawn 1", "exit 1", "spawn 2", "exit 2"]


@pytest.mark.skipif(not Path("/bin/sh").exists(), reason="needs a POSIX shell")
class TestRealShell:
    """A real shell runs the command line exactly as rendered."""

    def test_echo_binary(self):
        settings = TaskwarriorSettings(binary="echo")
        invocation = CommandInvocation(args=("add", "'It'\\''s a test'")).with_settings(
            settings
        )
        assert run_invocation(invocation, settings) == "add It's a test"

    def test_failing_binary(self):
        settings = TaskwarriorSettings(binary="false")
        invocation = CommandInvocation(args=()).with_settings(settings)
        with pytest.raises(ExecutionError) as exc_info:
            run_invocation(invocation, settings)
        assert exc_info.value.returncode == 1

    @pytest.mark.skipif(shutil.which("yes") is None, reason="needs yes(1)")
    def test_endless_output_is_killed_at_cap(self):
        settings = TaskwarriorSettings(binary="yes", max_output_bytes=1024)
        invocation = CommandInvocation(args=()).with_settings(settings)

        thread, outcome = _run_in_thread(invocation, settings)
        thread.join(10)

        assert not thread.is_alive()
        assert isinstance(outcome.get("error"), ExecutionError)
        assert "exceeded 1024 bytes" in outcome["error"].message
