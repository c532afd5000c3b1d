"""Command-line interface for taskwarrior-mcp."""

from taskwarrior_mcp.cli.main import cli

__all__ = ["cli"]
