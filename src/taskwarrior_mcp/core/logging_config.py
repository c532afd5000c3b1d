"""Logging setup for the ``taskwarrior_mcp`` logger tree.

Output always goes to stderr: under the stdio transport, stdout is the MCP
protocol stream and a stray log line there corrupts it. Records emitted
during a tool call are stamped with the call's correlation id and elapsed
time by ``ContextFilter``.

Two formats are available:

``structured``
    one JSON object per line, with any ``extra=`` fields under ``"extra"``::

        {"timestamp": "2024-01-15T10:30:45.123000+00:00", "level": "INFO",
         "logger": "taskwarrior_mcp.tools.router", "message": "Dispatching add_task",
         "correlation_id": "req_a1b2c3d4e5f6", "elapsed_ms": 0.12,
         "extra": {"operation": "add_task"}}

``human``
    ``2024-01-15 10:30:45 [INFO] [req_a1b2c3d4e5f6] tools.router: Dispatching add_task``
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TextIO, Union

from taskwarrior_mcp.core.context import get_current_context

__all__ = [
    "ROOT_LOGGER_NAME",
    "ContextFilter",
    "StructuredFormatter",
    "HumanReadableFormatter",
    "configure_logging",
]

ROOT_LOGGER_NAME = "taskwarrior_mcp"

# Attributes every LogRecord has; anything else came in through ``extra=``
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime", "taskName", "correlation_id", "elapsed_ms"}


class ContextFilter(logging.Filter):
    """Stamp records with ``correlation_id`` and ``elapsed_ms``."""

    def filter(self, record: logging.LogRecord) -> bool:
        ctx = get_current_context()
        record.correlation_id = ctx.correlation_id or "-"
        record.elapsed_ms = round(ctx.elapsed_ms, 2)
        return True


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RECORD_ATTRS
    }


class StructuredFormatter(logging.Formatter):
    """One JSON document per record."""

    def __init__(self, *, include_extra: bool = True):
        super().__init__()
        self.include_extra = include_extra

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": getattr(record, "correlation_id", "-"),
            "elapsed_ms": getattr(record, "elapsed_ms", 0.0),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        if self.include_extra:
            extra = _extra_fields(record)
            if extra:
                entry["extra"] = extra
        # Unserializable extras fall back to str()
        return json.dumps(entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """Single-line text with the correlation id, when there is one."""

    def format(self, record: logging.LogRecord) -> str:
        when = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        parts = [when, f"[{record.levelname}]"]

        corr_id = getattr(record, "correlation_id", "-")
        if corr_id != "-":
            parts.append(f"[{corr_id}]")

        name = record.name
        if name.startswith(ROOT_LOGGER_NAME + "."):
            name = name[len(ROOT_LOGGER_NAME) + 1:]
        parts.append(f"{name}: {record.getMessage()}")

        text = " ".join(parts)
        if record.exc_info:
            text += "\n" + self.formatException(record.exc_info)
        return text


def configure_logging(
    *,
    level: Union[int, str] = logging.INFO,
    format: str = "structured",
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """Install a single stderr handler on the ``taskwarrior_mcp`` logger.

    Calling it again replaces the previous handler rather than adding one.

    Args:
        level: Logger and handler level
        format: ``"structured"`` (JSON lines) or ``"human"``
        stream: Destination; defaults to ``sys.stderr`` at call time

    Returns:
        The configured package logger
    """
    formatter: logging.Formatter = (
        StructuredFormatter() if format == "structured" else HumanReadableFormatter()
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(ContextFilter())

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()
    logger.addHandler(handler)
    return logger
