"""
Logging filters for httpchain.

Redirect and transport log lines carry URLs and headers, which may hold
credentials; :class:`SensitiveDataFilter` masks them before any handler
writes the record.
"""

import logging
import re
from typing import List, Pattern, Tuple

MASK = "***MASKED***"


class SensitiveDataFilter(logging.Filter):
    """Filter to mask credentials, tokens and cookies in log messages."""

    def __init__(self) -> None:
        super().__init__()

        self.patterns: List[Tuple[Pattern[str], str]] = [
            # Authorization: Basic/Bearer <credentials>
            (
                re.compile(r"(authorization['\"]?\s*[:=]\s*['\"]?(?:basic|bearer)\s+)([^\s'\",}]+)", re.IGNORECASE),
                rf"\1{MASK}",
            ),
            (re.compile(r"(bearer\s+)([a-zA-Z0-9._~+/=-]{8,})", re.IGNORECASE), rf"\1{MASK}"),
            # Cookie and Set-Cookie values
            (
                re.compile(r"((?:set-)?cookie['\"]?\s*[:=]\s*['\"]?)([^'\"\n}]+)", re.IGNORECASE),
                rf"\1{MASK}",
            ),
            # Passwords and tokens in key=value form
            (
                re.compile(r"((?:password|passwd|pwd|oauth_token|api[_-]?key|token|secret)['\"]?\s*[:=]\s*['\"]?)([^\s'\"&,}]+)", re.IGNORECASE),
                rf"\1{MASK}",
            ),
            # URLs with credentials
            (re.compile(r"(https?://[^:/\s@]+):([^@/\s]+)@", re.IGNORECASE), rf"\1:{MASK}@"),
        ]

    def mask(self, message: str) -> str:
        for pattern, replacement in self.patterns:
            message = pattern.sub(replacement, message)
        return message

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            # Let the handler report the broken format arguments itself
            return True

        record.msg = self.mask(message)
        record.args = ()
        return True


class ComponentFilter(logging.Filter):
    """Only let through records from one logger namespace."""

    def __init__(self, component: str) -> None:
        super().__init__(component)
        self.component = component
