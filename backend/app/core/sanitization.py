"""
Sanitization of user-provided strings before they reach the logs.
"""
import re
from typing import Any, Iterable

_LINE_BREAKS = re.compile(r'[\r\n]')
_CONTROL_CHARS = re.compile(r'[\x00-\x1f\x7f-\x9f]')


def sanitize_for_logging(value: Any, max_length: int = 500) -> str:
    """
    Make a value safe to interpolate into a log line (prevents log injection).

    Args:
        value: Value to sanitize; non-strings are converted with str()
        max_length: Maximum length before truncation

    Returns:
        Single-line string without control characters
    """
    if value is None or value == "":
        return ""

    text = _LINE_BREAKS.sub(' ', str(value))
    text = _CONTROL_CHARS.sub('', text)

    if len(text) > max_length:
        text = text[:max_length] + "..."

    return text


def sanitize_headers_for_logging(headers: Iterable[Any], max_items: int = 20) -> str:
    """Comma-joined, sanitized column names, truncated after `max_items`."""
    headers = list(headers)
    shown = ", ".join(sanitize_for_logging(h, max_length=60) for h in headers[:max_items])
    if len(headers) > max_items:
        shown += f" (+{len(headers) - max_items} more)"
    return shown
