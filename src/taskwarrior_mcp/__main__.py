"""Allow ``python -m taskwarrior_mcp``."""

from taskwarrior_mcp.cli.main import cli

if __name__ == "__main__":
    cli()
