"""taskwarrior-mcp CLI entry point.

``serve`` (the default) runs the MCP server over stdio. ``tools`` and
``call`` expose the same catalog and dispatch path from a shell, printing
JSON envelopes.
"""

import json
from typing import Any, Optional

import click

from taskwarrior_mcp.cli.output import emit, emit_error, emit_response
from taskwarrior_mcp.config import ServerConfig, set_config
from taskwarrior_mcp.core.context import request_context
from taskwarrior_mcp.core.errors import TaskwarriorMCPError
from taskwarrior_mcp.core.responses import ErrorCode, success_response
from taskwarrior_mcp.tools.operations import build_router


def _load_config(ctx: click.Context) -> ServerConfig:
    config: ServerConfig = ctx.obj["config"]
    config.setup_logging()
    return config


@click.group(invoke_without_command=True)
@click.option(
    "--config",
    "config_file",
    envvar="TASKWARRIOR_MCP_CONFIG_FILE",
    type=click.Path(dir_okay=False),
    help="Path to a taskwarrior-mcp TOML config file",
)
@click.pass_context
def cli(ctx: click.Context, config_file: Optional[str]) -> None:
    """Taskwarrior MCP server.

    Runs the stdio server when no command is given.
    """
    ctx.ensure_object(dict)
    config = ServerConfig.from_env(config_file)
    set_config(config)
    ctx.obj["config"] = config
    if ctx.invoked_subcommand is None:
        ctx.invoke(serve)


@cli.command()
@click.pass_context
def serve(ctx: click.Context) -> None:
    """Run the MCP server over stdio."""
    from taskwarrior_mcp.server import main as server_main

    server_main(ctx.obj["config"])


@cli.command()
@click.pass_context
def tools(ctx: click.Context) -> None:
    """Print the tool catalog with input schemas."""
    config = _load_config(ctx)
    router = build_router(config.taskwarrior)
    emit(
        [
            {
                "name": definition.name,
                "description": definition.description,
                "inputSchema": definition.input_schema(),
            }
            for definition in router.definitions()
        ]
    )


def _parse_arguments(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        emit_error(f"--args is not valid JSON: {exc}", ErrorCode.VALIDATION_ERROR)


@cli.command()
@click.argument("tool")
@click.option("--args", "raw_args", default="{}", help="Tool arguments as a JSON object")
@click.option(
    "--dry-run",
    is_flag=True,
    help="Print the command line that would run instead of running it",
)
@click.pass_context
def call(ctx: click.Context, tool: str, raw_args: str, dry_run: bool) -> None:
    """Run one tool call and print its response envelope."""
    config = _load_config(ctx)
    router = build_router(config.taskwarrior)
    arguments = _parse_arguments(raw_args)

    if not dry_run:
        emit_response(router.dispatch(tool, arguments))
        return

    with request_context():
        try:
            invocation = router.build(tool, arguments)
        except TaskwarriorMCPError as exc:
            emit_error(exc.message, exc.error_code, operation=tool)
        emit_response(
            success_response(
                invocation.command_line,
                operation=tool,
                meta={"dry_run": True, "shell": invocation.shell},
            )
        )


if __name__ == "__main__":
    cli()
