"""Exception types raised by the task store and query engine."""

from __future__ import annotations

from pathlib import Path
from typing import Any


class StoreError(Exception):
    """Base class for document store failures.

    Attributes:
        path: File the operation targeted.
        operation: Low-level operation: ``read``, ``write``, ``delete`` or ``list``.
        context: Extra context attached by callers (e.g. the repository action).
    """

    def __init__(self, message: str, path: str | Path, operation: str) -> None:
        super().__init__(message)
        self.path = Path(path)
        self.operation = operation
        self.context: dict[str, Any] = {}


class DocumentNotFoundError(StoreError):
    """The target file does not exist."""


class CorruptDocumentError(StoreError):
    """The file exists but does not contain valid JSON.

    The message names the path only; the raw content is never included.
    """


class InvalidDocumentError(StoreError):
    """The JSON value does not match the expected schema."""

    def __init__(self, message: str, path: str | Path, operation: str, errors: list[str]) -> None:
        super().__init__(message, path, operation)
        self.errors = errors


class StoreIOError(StoreError):
    """A transient I/O failure persisted through every retry attempt.

    The last underlying error is available as ``__cause__``.
    """

    def __init__(self, message: str, path: str | Path, operation: str, attempts: int) -> None:
        super().__init__(message, path, operation)
        self.attempts = attempts


class SearchQueryTooLongError(ValueError):
    """Search text exceeds the maximum query length."""

    def __init__(self, length: int, max_length: int) -> None:
        super().__init__(f"Search query too long ({length} characters, max {max_length})")
        self.length = length
        self.max_length = max_length
