"""
Standard response contract for Taskwarrior MCP tool calls.

Every tool call, successful or not, produces exactly one ``ToolResponse``:

    ToolResponse(
        success=True | False,
        text="<task output>" | "Error: <message>",
        error=None | "<message>",
        meta={
            "version": "response-v1",
            "request_id": "req_abc123"?,
            "operation": "add_task"?,
            "error_code": "VALIDATION_ERROR"?,
        },
    )

Key Principle:
    - ``success=True`` means the task process ran and exited cleanly; ``text``
      is its trimmed standard output, even when that output is empty.
    - ``success=False`` covers malformed requests as well as failed
      invocations. Both are ordinary responses marked as errors, never
      transport faults, so a client can show them without special handling.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from mcp.types import CallToolResult, TextContent

from taskwarrior_mcp.core.context import get_correlation_id


RESPONSE_VERSION = "response-v1"


class ErrorCode(str, Enum):
    """Machine-readable error codes attached to error responses."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_FORMAT = "INVALID_FORMAT"
    UNKNOWN_OPERATION = "UNKNOWN_OPERATION"
    EXECUTION_FAILED = "EXECUTION_FAILED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


@dataclass
class ToolResponse:
    """
    Uniform envelope handed to the transport layer.

    Attributes:
        success: Whether the operation completed successfully
        text: Text shown to the caller (task output, or ``Error: ...``)
        error: Bare error message if success is False, None otherwise
        meta: Response metadata including version identifier
    """

    success: bool
    text: str = ""
    error: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=lambda: {"version": RESPONSE_VERSION})

    @property
    def is_error(self) -> bool:
        return not self.success

    def to_call_tool_result(self) -> CallToolResult:
        """Convert to the MCP ``CallToolResult`` wire type."""
        return CallToolResult(
            content=[TextContent(type="text", text=self.text)],
            isError=not self.success,
        )


def _build_meta(
    *,
    request_id: Optional[str] = None,
    operation: Optional[str] = None,
    extra: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """Construct a metadata payload that always includes the response version.

    The request id falls back to the correlation id of the active request
    context when not passed explicitly.
    """
    meta: Dict[str, Any] = {"version": RESPONSE_VERSION}

    effective_request_id = request_id or get_correlation_id() or None
    if effective_request_id:
        meta["request_id"] = effective_request_id
    if operation:
        meta["operation"] = operation
    if extra:
        meta.update(dict(extra))

    return meta


def success_response(
    text: str,
    *,
    operation: Optional[str] = None,
    request_id: Optional[str] = None,
    meta: Optional[Mapping[str, Any]] = None,
) -> ToolResponse:
    """Create a success response carrying the process output.

    Args:
        text: Captured standard output; leading/trailing whitespace is trimmed.
        operation: Tool name the response belongs to.
        request_id: Correlation identifier propagated through logs.
        meta: Arbitrary extra metadata to merge into ``meta``.
    """
    return ToolResponse(
        success=True,
        text=text.strip(),
        error=None,
        meta=_build_meta(request_id=request_id, operation=operation, extra=meta),
    )


def error_response(
    message: str,
    *,
    error_code: Optional[Union[ErrorCode, str]] = None,
    operation: Optional[str] = None,
    request_id: Optional[str] = None,
    meta: Optional[Mapping[str, Any]] = None,
) -> ToolResponse:
    """Create an error response.

    The caller-visible text is always ``Error: <message>``.

    Args:
        message: Human-readable description of the failure.
        error_code: Canonical error code (``ErrorCode`` or its string value).
        operation: Tool name the response belongs to.
        request_id: Correlation identifier propagated through logs.
        meta: Arbitrary extra metadata to merge into ``meta``.

    Example:
        >>> error_response(
        ...     "Unknown tool: frobnicate",
        ...     error_code=ErrorCode.UNKNOWN_OPERATION,
        ... ).text
        'Error: Unknown tool: frobnicate'
    """
    effective_code: Union[ErrorCode, str] = (
        error_code if error_code is not None else ErrorCode.INTERNAL_ERROR
    )
    code_value = (
        effective_code.value if isinstance(effective_code, Enum) else effective_code
    )

    extra: Dict[str, Any] = {"error_code": code_value}
    if meta:
        extra.update(dict(meta))

    return ToolResponse(
        success=False,
        text=f"Error: {message}",
        error=message,
        meta=_build_meta(request_id=request_id, operation=operation, extra=extra),
    )
