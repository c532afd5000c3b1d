"""Tests for MCP server wiring."""

import mcp.types as types

from taskwarrior_mcp.config import ServerConfig
from taskwarrior_mcp.server import create_server, tool_catalog
from taskwarrior_mcp.tools.operations import OPERATIONS


class TestToolCatalog:
    """Tool advertisement."""

    def test_one_tool_per_operation(self, router):
        tools = tool_catalog(router)
        assert [tool.name for tool in tools] == [op.name for op in OPERATIONS]

    def test_schemas_from_request_models(self, router):
        tools = {tool.name: tool for tool in tool_catalog(router)}
        add_schema = tools["add_task"].inputSchema
        assert add_schema["required"] == ["description"]
        assert set(add_schema["properties"]) >= {"description", "due", "priority", "tags"}
        assert tools["undo_last"].inputSchema["type"] == "object"


class TestServerHandlers:
    """Request handlers registered on the low-level server."""

    async def test_list_tools(self, router):
        server = create_server(ServerConfig(log_level="ERROR"), router=router)

        handler = server.request_handlers[types.ListToolsRequest]
        result = await handler(types.ListToolsRequest(method="tools/list"))

        assert len(result.root.tools) == len(OPERATIONS)

    async def test_call_tool_success(self, router, runner):
        runner.output = "Created task 1.\n"
        server = create_server(ServerConfig(log_level="ERROR"), router=router)

        handler = server.request_handlers[types.CallToolRequest]
        result = await handler(
            types.CallToolRequest(
                method="tools/call",
                params=types.CallToolRequestParams(
                    name="add_task", arguments={"description": "Buy milk"}
                ),
            )
        )

        assert result.root.isError is False
        assert result.root.content[0].text == "Created task 1."
        assert runner.command_lines == ["task add 'Buy milk'"]

    async def test_call_tool_invalid_arguments_not_rejected_by_transport(
        self, router, runner
    ):
        server = create_server(ServerConfig(log_level="ERROR"), router=router)

        handler = server.request_handlers[types.CallToolRequest]
        result = await handler(
            types.CallToolRequest(
                method="tools/call",
                params=types.CallToolRequestParams(name="add_task", arguments={}),
            )
        )

        assert result.root.isError is True
        assert result.root.content[0].text.startswith(
            "Error: Invalid arguments for add_task: description:"
        )
        assert runner.calls == []
