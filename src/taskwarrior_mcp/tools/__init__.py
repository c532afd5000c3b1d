"""Tool catalog and dispatch."""

from taskwarrior_mcp.tools.operations import OPERATIONS, build_router
from taskwarrior_mcp.tools.router import OperationDefinition, OperationRouter

__all__ = ["OPERATIONS", "OperationDefinition", "OperationRouter", "build_router"]
