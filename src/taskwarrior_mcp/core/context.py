"""Per-call request context.

A tool call runs inside ``request_context()``, which publishes a
``RequestContext`` (correlation id and start time) through a context
variable. Log records and responses produced during the call read it back,
so every line and envelope of one call carries the same id. Worker threads
started with ``asyncio.to_thread`` inherit the variable.

    with request_context() as ctx:
        ctx.correlation_id  # "req_a1b2c3d4e5f6"
"""

from __future__ import annotations

import secrets
import time
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional

__all__ = [
    "RequestContext",
    "generate_correlation_id",
    "request_context",
    "get_current_context",
    "get_correlation_id",
]


@dataclass(frozen=True)
class RequestContext:
    """Identity and timing of the call being handled.

    An empty ``correlation_id`` and zero ``start_time`` mean "no call in
    flight".
    """

    correlation_id: str = ""
    start_time: float = 0.0

    @property
    def elapsed_ms(self) -> float:
        if self.start_time <= 0:
            return 0.0
        return (time.time() - self.start_time) * 1000

    def to_dict(self) -> Dict[str, Any]:
        return {
            "correlation_id": self.correlation_id,
            "start_time": self.start_time,
            "elapsed_ms": round(self.elapsed_ms, 2),
        }


_IDLE = RequestContext()
_current: ContextVar[RequestContext] = ContextVar("taskwarrior_mcp_request", default=_IDLE)


def generate_correlation_id(prefix: str = "req") -> str:
    """Return ``<prefix>_`` followed by 12 random hex characters."""
    return f"{prefix}_{secrets.token_hex(6)}"


@contextmanager
def request_context(*, correlation_id: Optional[str] = None) -> Iterator[RequestContext]:
    """Publish a fresh context for the duration of the block.

    Args:
        correlation_id: Id to use; generated when omitted
    """
    ctx = RequestContext(
        correlation_id=correlation_id or generate_correlation_id(),
        start_time=time.time(),
    )
    token = _current.set(ctx)
    try:
        yield ctx
    finally:
        _current.reset(token)


def get_current_context() -> RequestContext:
    return _current.get()


def get_correlation_id() -> str:
    """Correlation id of the call in flight, or ``""``."""
    return _current.get().correlation_id