"""Logging configuration for the MCP server.

Logs go to stderr only: stdout carries the MCP stdio transport.
"""

from __future__ import annotations

import logging
import re
import sys

REDACTED = "[REDACTED]"

_SENSITIVE_KEYS = (
    "password",
    "token",
    "api_key",
    "apikey",
    "secret",
    "authorization",
    "cookie",
    "session",
    "jwt",
    "bearer",
    "private_key",
    "credentials",
)

_SENSITIVE_PATTERN = re.compile(
    r"(?P<key>\b\w*(?:" + "|".join(_SENSITIVE_KEYS) + r")\w*)(?P<sep>\s*[=:]\s*)(?P<value>\"[^\"]*\"|'[^']*'|\S+)",
    re.IGNORECASE,
)


def redact(message: str) -> str:
    """Replace the value of ``key=value`` / ``key: value`` pairs with sensitive keys."""
    return _SENSITIVE_PATTERN.sub(lambda m: f"{m.group('key')}{m.group('sep')}{REDACTED}", message)


class SensitiveDataFilter(logging.Filter):
    """Redact secrets from the rendered log message."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        cleaned = redact(message)
        if cleaned != message:
            record.msg = cleaned
            record.args = None
        return True


def setup_logging(level: str | int = logging.INFO) -> None:
    """Configure the root logger with a single stderr handler.

    Call this once, before the server starts.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    handler.addFilter(SensitiveDataFilter())
    root.addHandler(handler)

    logging.captureWarnings(True)
