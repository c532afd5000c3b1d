"""Taskwarrior MCP - MCP server that drives the Taskwarrior CLI."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("taskwarrior-mcp-server")
except PackageNotFoundError:
    # Package not installed (development mode without editable install)
    __version__ = "0.1.0"

from taskwarrior_mcp.server import create_server, main

__all__ = ["__version__", "create_server", "main"]
