"""
Server configuration for taskwarrior-mcp.

Settings are layered, later layers winning:

1. defaults
2. a TOML file: ``TASKWARRIOR_MCP_CONFIG_FILE``, or the first of
   ``taskwarrior-mcp.toml`` / ``.taskwarrior-mcp.toml`` in the working
   directory
3. environment variables

Environment variables:
- TASKWARRIOR_MCP_CONFIG_FILE: Path to TOML config file
- TASKWARRIOR_MCP_TASK_BINARY: Taskwarrior executable (default: task)
- TASKWARRIOR_MCP_TASKRC: Path exported to the task process as TASKRC
- TASKWARRIOR_MCP_TASKDATA: Path exported to the task process as TASKDATA
- TASKWARRIOR_MCP_MAX_OUTPUT_BYTES: Cap on captured stdout (default: 10 MiB)
- TASKWARRIOR_MCP_BULK_SHELL: Shell used for bulk modifications (default: /bin/bash)
- TASKWARRIOR_MCP_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
- TASKWARRIOR_MCP_STRUCTURED_LOGGING: JSON log lines (true/false)
"""

import functools
import logging
import os
import time
from dataclasses import dataclass, field
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_package_version
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, TypeVar

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # Python < 3.11 fallback

from taskwarrior_mcp.core.logging_config import configure_logging


logger = logging.getLogger(__name__)

DEFAULT_MAX_OUTPUT_BYTES = 10 * 1024 * 1024
DEFAULT_CONFIG_FILES = ("taskwarrior-mcp.toml", ".taskwarrior-mcp.toml")

T = TypeVar("T")


def _package_version() -> str:
    try:
        return get_package_version("taskwarrior-mcp-server")
    except PackageNotFoundError:
        return "0.1.0"


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"true", "1", "yes", "on"}


def _optional_path(value: Any) -> Optional[Path]:
    return Path(str(value)).expanduser() if value else None


@dataclass
class TaskwarriorSettings:
    """How the task binary is located and invoked.

    Attributes:
        binary: Executable name or path placed first on every command line
        taskrc: Optional rc file exported as TASKRC
        data_location: Optional data directory exported as TASKDATA
        max_output_bytes: Largest stdout accepted before the call fails
        bulk_shell: Shell executable used for auto-confirmed bulk modifications
        confirm_command: Command piped into bulk modifications to answer prompts
    """

    binary: str = "task"
    taskrc: Optional[Path] = None
    data_location: Optional[Path] = None
    max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES
    bulk_shell: str = "/bin/bash"
    confirm_command: str = "yes"

    def update(self, values: Mapping[str, Any]) -> None:
        """Apply the keys of a ``[taskwarrior]`` table that are present."""
        for key in ("binary", "bulk_shell", "confirm_command"):
            if key in values:
                setattr(self, key, str(values[key]))
        for key in ("taskrc", "data_location"):
            if key in values:
                setattr(self, key, _optional_path(values[key]))
        if "max_output_bytes" in values:
            self.max_output_bytes = int(values["max_output_bytes"])

    def process_env(self) -> Dict[str, str]:
        """Environment for the task process: the server's own plus overrides."""
        env = dict(os.environ)
        if self.taskrc is not None:
            env["TASKRC"] = str(self.taskrc)
        if self.data_location is not None:
            env["TASKDATA"] = str(self.data_location)
        return env


@dataclass
class ServerConfig:
    """Server configuration with support for env vars and TOML overrides."""

    taskwarrior: TaskwarriorSettings = field(default_factory=TaskwarriorSettings)

    log_level: str = "INFO"
    structured_logging: bool = True

    server_name: str = "taskwarrior-mcp"
    server_version: str = field(default_factory=_package_version)

    @classmethod
    def from_env(cls, config_file: Optional[str] = None) -> "ServerConfig":
        """Build a config from defaults, then the TOML file, then the environment."""
        config = cls()

        path = config_file or os.environ.get("TASKWARRIOR_MCP_CONFIG_FILE")
        if path:
            config.load_toml(Path(path))
        else:
            found = next((Path(p) for p in DEFAULT_CONFIG_FILES if Path(p).exists()), None)
            if found is not None:
                config.load_toml(found)

        config.load_env(os.environ)
        return config

    def load_toml(self, path: Path) -> None:
        """Merge ``[taskwarrior]``, ``[logging]`` and ``[server]`` from ``path``.

        A missing or unreadable file is logged and otherwise ignored.
        """
        if not path.exists():
            logger.warning("Config file not found: %s", path)
            return

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
            self.taskwarrior.update(data.get("taskwarrior", {}))
        except (OSError, ValueError) as e:
            # TOMLDecodeError is a ValueError
            logger.error("Error loading config file %s: %s", path, e)
            return

        log_section = data.get("logging", {})
        if "level" in log_section:
            self.log_level = str(log_section["level"]).upper()
        if "structured" in log_section:
            self.structured_logging = _parse_bool(log_section["structured"])

        server_section = data.get("server", {})
        self.server_name = str(server_section.get("name", self.server_name))
        self.server_version = str(server_section.get("version", self.server_version))

    def load_env(self, environ: Mapping[str, str]) -> None:
        """Apply ``TASKWARRIOR_MCP_*`` variables that are set and non-empty."""
        tw = self.taskwarrior
        prefix = "TASKWARRIOR_MCP_"

        def get(name: str) -> Optional[str]:
            return environ.get(prefix + name) or None

        tw.binary = get("TASK_BINARY") or tw.binary
        tw.bulk_shell = get("BULK_SHELL") or tw.bulk_shell
        tw.taskrc = _optional_path(get("TASKRC")) or tw.taskrc
        tw.data_location = _optional_path(get("TASKDATA")) or tw.data_location

        max_output = get("MAX_OUTPUT_BYTES")
        if max_output is not None:
            try:
                tw.max_output_bytes = int(max_output)
            except ValueError:
                logger.warning("Ignoring non-integer %sMAX_OUTPUT_BYTES=%r", prefix, max_output)

        level = get("LOG_LEVEL")
        if level is not None:
            self.log_level = level.upper()
        structured = get("STRUCTURED_LOGGING")
        if structured is not None:
            self.structured_logging = _parse_bool(structured)

    def setup_logging(self) -> None:
        """Configure the package logger from ``log_level`` and ``structured_logging``."""
        configure_logging(
            level=getattr(logging, self.log_level, logging.INFO),
            format="structured" if self.structured_logging else "human",
        )


_config: Optional[ServerConfig] = None


def get_config() -> ServerConfig:
    """Return the process-wide config, loading it from the environment on first use."""
    global _config
    if _config is None:
        _config = ServerConfig.from_env()
    return _config


def set_config(config: Optional[ServerConfig]) -> None:
    """Replace the process-wide config (None forces a reload on next use)."""
    global _config
    _config = config


def timed(
    metric_name: Optional[str] = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Log the wall-clock duration of each call at DEBUG.

    The record carries ``metric``, ``duration_ms`` and ``success`` extras,
    plus ``error`` when the call raised.
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        name = metric_name or func.__name__
        log = logging.getLogger(func.__module__)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            extra: Dict[str, Any] = {"metric": name, "success": True}
            start = time.perf_counter()
            try:
                return func(*args, **kwargs)
            except Exception as e:
                extra.update(success=False, error=str(e))
                raise
            finally:
                extra["duration_ms"] = round((time.perf_counter() - start) * 1000, 2)
                log.debug("Timer: %s", name, extra=extra)

        return wrapper

    return decorator
