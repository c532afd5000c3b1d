"""Request-to-command translation core for taskwarrior-mcp."""

from taskwarrior_mcp.core.errors import (
    DateFormatError,
    ExecutionError,
    RequestValidationError,
    TaskwarriorMCPError,
    UnknownOperationError,
)
from taskwarrior_mcp.core.responses import (
    ErrorCode,
    ToolResponse,
    error_response,
    success_response,
)

__all__ = [
    "TaskwarriorMCPError",
    "RequestValidationError",
    "DateFormatError",
    "ExecutionError",
    "UnknownOperationError",
    "ErrorCode",
    "ToolResponse",
    "error_response",
    "success_response",
]
