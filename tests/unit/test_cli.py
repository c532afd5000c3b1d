"""Tests for the click CLI."""

import json

import pytest
from click.testing import CliRunner

from taskwarrior_mcp.cli.main import cli

QUIET_ENV = {"TASKWARRIOR_MCP_LOG_LEVEL": "ERROR"}


def _last_json(output: str):
    return json.loads(output.strip().splitlines()[-1])


@pytest.fixture
def cli_runner(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("TASKWARRIOR_MCP_CONFIG_FILE", raising=False)
    return CliRunner()


class TestToolsCommand:
    def test_lists_catalog(self, cli_runner):
        result = cli_runner.invoke(cli, ["tools"], env=QUIET_ENV)

        assert result.exit_code == 0
        tools = _last_json(result.output)
        assert len(tools) == 18
        assert {"name", "description", "inputSchema"} <= set(tools[0])


class TestCallCommand:
    def test_dry_run_prints_command_line(self, cli_runner):
        result = cli_runner.invoke(
            cli,
            [
                "call",
                "modify_tasks_bulk",
                "--args",
                '{"filter": "project:work", "tags": ["a"], "tags_remove": ["b"]}',
                "--dry-run",
            ],
            env=QUIET_ENV,
        )

        assert result.exit_code == 0
        payload = _last_json(result.output)
        assert payload["success"] is True
        assert payload["text"] == "yes | task project:work modify +a -b"
        assert payload["meta"]["dry_run"] is True
        assert payload["meta"]["shell"] == "/bin/bash"

    def test_dry_run_uses_configured_binary(self, cli_runner):
        env = dict(QUIET_ENV, TASKWARRIOR_MCP_TASK_BINARY="task-dev")
        result = cli_runner.invoke(
            cli, ["call", "get_task_info", "--args", '{"identifier": 3}', "--dry-run"], env=env
        )
        assert _last_json(result.output)["text"] == "task-dev 3 info"

    def test_dry_run_validation_error(self, cli_runner):
        result = cli_runner.invoke(
            cli, ["call", "add_task", "--args", '{"due": "someday"}', "--dry-run"], env=QUIET_ENV
        )

        assert result.exit_code == 1
        payload = _last_json(result.output)
        assert payload["success"] is False
        assert payload["meta"]["error_code"] == "VALIDATION_ERROR"

    def test_invalid_json_arguments(self, cli_runner):
        result = cli_runner.invoke(cli, ["call", "add_task", "--args", "{nope"], env=QUIET_ENV)

        assert result.exit_code == 1
        assert "--args is not valid JSON" in _last_json(result.output)["error"]

    def test_unknown_tool(self, cli_runner):
        result = cli_runner.invoke(cli, ["call", "frobnicate"], env=QUIET_ENV)

        assert result.exit_code == 1
        assert _last_json(result.output)["text"] == "Error: Unknown tool: frobnicate"

    def test_runs_task_process(self, cli_runner, fake_popen, fake_process):
        fake_popen.return_value = fake_process(stdout=b"3\n")

        result = cli_runner.invoke(
            cli, ["call", "count_tasks", "--args", '{"status": "pending"}'], env=QUIET_ENV
        )

        assert result.exit_code == 0
        assert _last_json(result.output)["text"] == "3"
        assert fake_popen.call_args.args[0] == "task status:pending count"

    def test_process_failure_exit_code(self, cli_runner, fake_popen, fake_process):
        fake_popen.return_value = fake_process(stderr=b"Task 99 not found.\n", returncode=1)

        result = cli_runner.invoke(
            cli, ["call", "mark_task_done", "--args", '{"identifier": "99"}'], env=QUIET_ENV
        )

        assert result.exit_code == 1
        payload = _last_json(result.output)
        assert payload["text"] == "Error: Task 99 not found."
        assert payload["meta"]["error_code"] == "EXECUTION_FAILED"
