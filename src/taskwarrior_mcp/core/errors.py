"""Error taxonomy for the request-to-command pipeline.

Every failure a single request can hit is one of these exception types.
They are raised by the validator, the argument builder and the executor,
and are all recovered in ``OperationRouter.dispatch`` where they become
ordinary error responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from taskwarrior_mcp.core.responses import ErrorCode

__all__ = [
    "TaskwarriorMCPError",
    "FieldIssue",
    "RequestValidationError",
    "DateFormatError",
    "ExecutionError",
    "UnknownOperationError",
]


class TaskwarriorMCPError(Exception):
    """Base class for errors reported back to the caller as error responses."""

    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


@dataclass(frozen=True)
class FieldIssue:
    """A single field that failed validation and the rule it broke."""

    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


class RequestValidationError(TaskwarriorMCPError):
    """Raised when raw arguments do not match an operation's request schema."""

    error_code = ErrorCode.VALIDATION_ERROR

    def __init__(self, operation: str, issues: Sequence[FieldIssue]):
        self.operation = operation
        self.issues: List[FieldIssue] = list(issues)
        details = "; ".join(str(issue) for issue in self.issues)
        super().__init__(f"Invalid arguments for {operation}: {details}")


class DateFormatError(TaskwarriorMCPError):
    """Raised when a date field does not match any accepted date grammar."""

    error_code = ErrorCode.INVALID_FORMAT

    def __init__(self, field: str, value: str):
        self.field = field
        self.value = value
        super().__init__(
            f'Invalid date format for {field}: "{value}". Supported formats: '
            "ISO timestamps (2024-01-15T10:30:00Z), relative dates (+7d, -2w), "
            "special dates (today, tomorrow, eom), day names (monday), "
            "month names (january), or ordinal dates (15th)"
        )


class ExecutionError(TaskwarriorMCPError):
    """Raised when the task process fails or its output exceeds the cap."""

    error_code = ErrorCode.EXECUTION_FAILED

    def __init__(
        self,
        message: str,
        *,
        command: Optional[str] = None,
        returncode: Optional[int] = None,
    ):
        super().__init__(message)
        self.command = command
        self.returncode = returncode


class UnknownOperationError(TaskwarriorMCPError):
    """Raised when a tool name is not part of the operation catalog."""

    error_code = ErrorCode.UNKNOWN_OPERATION

    def __init__(self, name: str, allowed: Sequence[str] = ()):
        self.name = name
        self.allowed = list(allowed)
        super().__init__(f"Unknown tool: {name}")
