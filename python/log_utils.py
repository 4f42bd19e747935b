"""
Shared logging helpers

Everything a client sends can end up in a log line (usernames, paths,
validation input). These helpers make such values safe to interpolate.
"""

import re
from typing import Any

MAX_LOGGED_LENGTH = 500

_CONTROL_CHARS = re.compile(r'[\r\n\x00-\x1f\x7f-\x9f]')
_WHITESPACE_RUNS = re.compile(r'\s+')


def sanitize_for_logging(text: Any) -> str:
    """Sanitize user input for safe logging, preventing log injection

    Removes newlines, carriage returns, and other control characters
    that could be used to inject fake log entries.

    Args:
        text: User input (converted with str())

    Returns:
        Sanitized text, at most 500 characters
    """
    if text is None or text == '':
        return ''
    sanitized = _CONTROL_CHARS.sub(' ', str(text))
    sanitized = _WHITESPACE_RUNS.sub(' ', sanitized).strip()
    return sanitized[:MAX_LOGGED_LENGTH]
