"""Date shorthand validation for Taskwarrior date attributes.

Taskwarrior resolves date expressions itself; this module only decides
whether a value belongs to the subset of date grammars we pass through.
Accepted forms:

- ISO-8601 dates and timestamps: ``2024-01-15``, ``2024-01-15T10:30:00Z``
- relative offsets: ``+3d``, ``-2w``, ``+1m``, ``+1q``, ``-1y``
- named dates: ``eom eoq eoy som soq soy today tomorrow yesterday now``
- weekday names: ``monday`` .. ``sunday``
- month names: ``january`` .. ``december``
- ordinal days: ``1st`` .. ``31st``

Named forms are case-insensitive.
"""

from __future__ import annotations

import re

from taskwarrior_mcp.core.errors import DateFormatError

__all__ = ["is_valid_date", "validate_date"]

_ISO_RE = re.compile(
    r"\d{4}-\d{2}-\d{2}(T\d{2}:\d{2}:\d{2}(\.\d{3})?(Z|[+-]\d{2}:\d{2})?)?"
)
_RELATIVE_RE = re.compile(r"[+-]\d+[dwmqy]")
_NAMED_RE = re.compile(
    r"(eom|eoq|eoy|som|soq|soy|today|tomorrow|yesterday|now)", re.IGNORECASE
)
_WEEKDAY_RE = re.compile(
    r"(monday|tuesday|wednesday|thursday|friday|saturday|sunday)", re.IGNORECASE
)
_MONTH_RE = re.compile(
    r"(january|february|march|april|may|june|july|august|september|october"
    r"|november|december)",
    re.IGNORECASE,
)
# Only the day number is range-checked; the suffix need not agree with it
# ("1th", "2st" and "01st" all pass).
_ORDINAL_RE = re.compile(r"(\d{1,2})(st|nd|rd|th)", re.IGNORECASE)


def _is_ordinal_day(value: str) -> bool:
    match = _ORDINAL_RE.fullmatch(value)
    if match is None:
        return False
    return 1 <= int(match.group(1)) <= 31


def is_valid_date(value: str) -> bool:
    """Return True if ``value`` matches one of the accepted date grammars."""
    return bool(
        _ISO_RE.fullmatch(value)
        or _RELATIVE_RE.fullmatch(value)
        or _NAMED_RE.fullmatch(value)
        or _WEEKDAY_RE.fullmatch(value)
        or _MONTH_RE.fullmatch(value)
        or _is_ordinal_day(value)
    )


def validate_date(field: str, value: str) -> str:
    """Return ``value`` unchanged, or raise DateFormatError naming the field."""
    if not is_valid_date(value):
        raise DateFormatError(field, value)
    return value
