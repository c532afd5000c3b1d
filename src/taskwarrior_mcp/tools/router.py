"""Operation routing: name -> validate -> build -> run -> respond."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Type

from taskwarrior_mcp.config import TaskwarriorSettings
from taskwarrior_mcp.core.commands import CommandInvocation
from taskwarrior_mcp.core.context import request_context
from taskwarrior_mcp.core.errors import TaskwarriorMCPError, UnknownOperationError
from taskwarrior_mcp.core.executor import run_invocation
from taskwarrior_mcp.core.responses import (
    ErrorCode,
    ToolResponse,
    error_response,
    success_response,
)
from taskwarrior_mcp.core.schemas import TaskRequest, validate_request

logger = logging.getLogger(__name__)

Runner = Callable[[CommandInvocation, TaskwarriorSettings], str]


@dataclass(frozen=True)
class OperationDefinition:
    """One entry of the operation catalog.

    Attributes:
        name: Tool name advertised to clients
        description: One-line summary shown in the tool listing
        request_model: Model the raw arguments are validated against
        builder: Turns a validated request into a command line
    """

    name: str
    description: str
    request_model: Type[TaskRequest]
    builder: Callable[[Any], CommandInvocation]

    def input_schema(self) -> Dict[str, Any]:
        return self.request_model.model_json_schema()


class OperationRouter:
    """Dispatch tool calls to their operation definitions.

    Every outcome, including unknown names and malformed arguments, is
    returned as a ``ToolResponse``; ``dispatch`` never raises.
    """

    def __init__(
        self,
        operations: Iterable[OperationDefinition],
        *,
        settings: Optional[TaskwarriorSettings] = None,
        runner: Runner = run_invocation,
    ) -> None:
        self._operations: Dict[str, OperationDefinition] = {}
        for definition in operations:
            if definition.name in self._operations:
                raise ValueError(f"Duplicate operation '{definition.name}'")
            self._operations[definition.name] = definition
        self.settings = settings or TaskwarriorSettings()
        self._runner = runner

    def names(self) -> List[str]:
        return list(self._operations)

    def definitions(self) -> List[OperationDefinition]:
        return list(self._operations.values())

    def get(self, name: str) -> OperationDefinition:
        try:
            return self._operations[name]
        except KeyError:
            raise UnknownOperationError(name, self.names()) from None

    def build(
        self, name: str, arguments: Optional[Mapping[str, Any]] = None
    ) -> CommandInvocation:
        """Validate ``arguments`` and build the command line, without running it.

        Raises:
            UnknownOperationError: before any validation, if ``name`` is unknown
            RequestValidationError: if the arguments do not fit the request model
            DateFormatError: if a date field uses an unsupported format
        """
        definition = self.get(name)
        request = validate_request(definition.request_model, arguments, operation=name)
        return definition.builder(request).with_settings(self.settings)

    def dispatch(
        self,
        name: str,
        arguments: Optional[Mapping[str, Any]] = None,
        *,
        correlation_id: Optional[str] = None,
    ) -> ToolResponse:
        """Run one tool call end to end and wrap the outcome."""
        with request_context(correlation_id=correlation_id):
            logger.info("Dispatching %s", name, extra={"operation": name})
            try:
                invocation = self.build(name, arguments)
                logger.debug(
                    "Command line for %s: %s",
                    name,
                    invocation.command_line,
                    extra={"operation": name},
                )
                output = self._runner(invocation, self.settings)
            except TaskwarriorMCPError as exc:
                logger.warning(
                    "%s failed: %s",
                    name,
                    exc.message,
                    extra={"operation": name, "error_code": exc.error_code.value},
                )
                return error_response(
                    exc.message, error_code=exc.error_code, operation=name
                )
            except Exception as exc:
                logger.exception("Unexpected error while handling %s", name)
                return error_response(
                    str(exc) or type(exc).__name__,
                    error_code=ErrorCode.INTERNAL_ERROR,
                    operation=name,
                )
            return success_response(output, operation=name)
