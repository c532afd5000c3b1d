"""JSON output helpers for the taskwarrior-mcp CLI.

Every command prints exactly one minified JSON document: results go to
stdout, errors to stderr followed by exit status 1. Envelopes are the same
``ToolResponse`` objects the MCP server returns, so scripted callers see
identical shapes on both surfaces.
"""

import json
import sys
from dataclasses import asdict
from typing import Any, Mapping, NoReturn, Optional

from taskwarrior_mcp.core.responses import ErrorCode, ToolResponse, error_response


def emit(data: Any) -> None:
    """Emit JSON to stdout."""
    print(json.dumps(data, separators=(",", ":"), default=str))


def emit_response(response: ToolResponse) -> None:
    """Emit a tool response, exiting 1 when it is an error."""
    payload = json.dumps(asdict(response), separators=(",", ":"), default=str)
    if not response.is_error:
        print(payload)
        return
    print(payload, file=sys.stderr)
    sys.exit(1)


def emit_error(
    message: str,
    code: ErrorCode = ErrorCode.INTERNAL_ERROR,
    *,
    operation: Optional[str] = None,
    meta: Optional[Mapping[str, Any]] = None,
) -> NoReturn:
    """Emit an error envelope to stderr and exit with code 1."""
    response = error_response(message, error_code=code, operation=operation, meta=meta)
    print(json.dumps(asdict(response), separators=(",", ":"), default=str), file=sys.stderr)
    sys.exit(1)
