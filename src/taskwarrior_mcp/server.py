"""MCP server for taskwarrior-mcp.

Tools are advertised from the operation catalog, with input schemas
generated from the request models. Calls are handed to the
``OperationRouter`` unvalidated: argument checking happens in the router so
that malformed calls come back as ``Error: ...`` tool results like any other
failure.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Any, Dict, List, Optional

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from taskwarrior_mcp.config import ServerConfig, get_config
from taskwarrior_mcp.tools.operations import build_router
from taskwarrior_mcp.tools.router import OperationRouter

logger = logging.getLogger(__name__)


def tool_catalog(router: OperationRouter) -> List[types.Tool]:
    """Describe every registered operation as an MCP tool."""
    return [
        types.Tool(
            name=definition.name,
            description=definition.description,
            inputSchema=definition.input_schema(),
        )
        for definition in router.definitions()
    ]


def create_server(
    config: Optional[ServerConfig] = None,
    router: Optional[OperationRouter] = None,
) -> Server:
    """Create and configure the MCP server instance."""

    if config is None:
        config = get_config()

    config.setup_logging()

    if router is None:
        router = build_router(config.taskwarrior)

    server: Server = Server(config.server_name, version=config.server_version)
    tools = tool_catalog(router)

    @server.list_tools()
    async def list_tools() -> List[types.Tool]:
        return tools

    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: Dict[str, Any]) -> types.CallToolResult:
        # The executor blocks on the task process; keep the event loop free
        response = await asyncio.to_thread(router.dispatch, name, arguments)
        return response.to_call_tool_result()

    logger.info(
        "Server created: %s v%s (%d tools)",
        config.server_name,
        config.server_version,
        len(tools),
    )
    return server


async def serve_stdio(server: Server) -> None:
    """Run ``server`` over stdin/stdout until the client disconnects."""
    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )


def main(config: Optional[ServerConfig] = None) -> None:
    """Main entry point for the taskwarrior-mcp server."""

    try:
        config = config or get_config()
        server = create_server(config)

        logger.info("Starting %s v%s", config.server_name, config.server_version)
        asyncio.run(serve_stdio(server))

    except KeyboardInterrupt:
        logger.info("Server shutdown requested")
        sys.exit(0)
    except Exception as exc:
        logger.error("Server error: %s: %s", type(exc).__name__, exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
