"""Atomic JSON document storage.

Documents are validated with a pydantic model on both read and write. Writes
go to a temporary file in the target directory which is fsynced and then
renamed over the target, so readers only ever see the old or the new content.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import time
import uuid
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from taskplan_mcp.errors import (
    CorruptDocumentError,
    DocumentNotFoundError,
    InvalidDocumentError,
    StoreIOError,
)
from taskplan_mcp.storage.retry import DEFAULT_BASE_DELAY, DEFAULT_MAX_ATTEMPTS, retry_with_backoff

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)
T = TypeVar("T")

JSON_INDENT = 2


def _is_transient(error: BaseException) -> bool:
    # Semantic failures are StoreError subclasses, never OSError
    return isinstance(error, OSError)


def _summarize_validation_error(error: ValidationError) -> list[str]:
    """Location and message for each error; input values are left out."""
    summary = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ())) or "<root>"
        summary.append(f"{location}: {item.get('msg', 'invalid value')}")
    return summary


def _validate(schema: type[ModelT], data: Any, path: Path, operation: str) -> ModelT:
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        errors = _summarize_validation_error(e)
        raise InvalidDocumentError(
            f"Schema validation failed for {path}: {'; '.join(errors)}",
            path,
            operation,
            errors,
        ) from None


def _parse_json(raw: bytes, path: Path) -> Any:
    try:
        return json.loads(raw.decode("utf-8"))
    except UnicodeDecodeError:
        raise CorruptDocumentError(f"File is not valid UTF-8: {path}", path, "read") from None
    except json.JSONDecodeError as e:
        raise CorruptDocumentError(
            f"Invalid JSON in file: {path} (line {e.lineno}, column {e.colno})", path, "read"
        ) from None


def _fsync_directory(directory: Path) -> None:
    """Flush a directory entry after a rename (POSIX only, best effort)."""
    if os.name != "posix":
        return
    with contextlib.suppress(OSError):
        fd = os.open(directory, os.O_RDONLY)
        try:
            os.fsync(fd)
        finally:
            os.close(fd)


class AtomicDocumentStore:
    """Durable, schema-validated JSON files.

    Transient ``OSError``s are retried with exponential backoff; missing,
    corrupt and invalid files fail immediately.

    Args:
        max_attempts: Attempts per operation before giving up.
        base_delay: Seconds before the first retry; doubled for each retry.
        sleep_func: Injectable sleep for tests.
    """

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay: float = DEFAULT_BASE_DELAY,
        sleep_func: Callable[[float], None] = time.sleep,
    ) -> None:
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self._sleep = sleep_func

    def _with_retry(self, func: Callable[[], T], path: Path, operation: str) -> T:
        try:
            return retry_with_backoff(
                func,
                max_attempts=self.max_attempts,
                base_delay=self.base_delay,
                is_retryable=_is_transient,
                sleep_func=self._sleep,
            )
        except OSError as e:
            raise StoreIOError(
                f"Failed to {operation} file after {self.max_attempts} attempts: {path}",
                path,
                operation,
                self.max_attempts,
            ) from e

    # =========================================================================
    # Documents
    # =========================================================================

    def read(self, path: str | Path, schema: type[ModelT]) -> ModelT:
        """Read, parse and validate a JSON document.

        Raises:
            DocumentNotFoundError: The file does not exist.
            CorruptDocumentError: The file is not valid JSON.
            InvalidDocumentError: The JSON does not match ``schema``.
            StoreIOError: Any other I/O error outlasted the retries.
        """
        path = Path(path)

        def attempt() -> ModelT:
            try:
                raw = path.read_bytes()
            except FileNotFoundError:
                raise DocumentNotFoundError(f"File not found: {path}", path, "read") from None
            return _validate(schema, _parse_json(raw, path), path, "read")

        return self._with_retry(attempt, path, "read")

    def read_or_default(self, path: str | Path, schema: type[ModelT], default: ModelT) -> ModelT:
        """Like :meth:`read`, but return ``default`` when the file does not exist."""
        try:
            return self.read(path, schema)
        except DocumentNotFoundError:
            return default

    def write(self, path: str | Path, value: BaseModel | dict[str, Any], schema: type[ModelT]) -> None:
        """Validate ``value`` and atomically replace the file at ``path`` with it.

        Validation happens before anything touches the filesystem.

        Raises:
            InvalidDocumentError: ``value`` does not match ``schema``.
            StoreIOError: The write kept failing after every retry.
        """
        path = Path(path)
        payload = value.model_dump(mode="json", by_alias=True) if isinstance(value, BaseModel) else value
        document = _validate(schema, payload, path, "write")
        text = json.dumps(document.model_dump(mode="json", by_alias=True), indent=JSON_INDENT, ensure_ascii=False)

        def attempt() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            temp_path = path.with_name(f"{path.name}.tmp.{uuid.uuid4().hex}")
            try:
                with open(temp_path, "w", encoding="utf-8") as f:
                    f.write(text)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(temp_path, path)
            except Exception:
                with contextlib.suppress(OSError):
                    os.unlink(temp_path)
                raise
            _fsync_directory(path.parent)

        self._with_retry(attempt, path, "write")
        logger.debug("Wrote %s (%d bytes)", path, len(text))

    # =========================================================================
    # File primitives
    # =========================================================================

    def exists(self, path: str | Path) -> bool:
        return Path(path).exists()

    def list_files(self, directory: str | Path) -> list[str]:
        """Names of the regular files directly inside ``directory``, sorted."""
        directory = Path(directory)
        try:
            with os.scandir(directory) as entries:
                return sorted(entry.name for entry in entries if entry.is_file())
        except FileNotFoundError:
            raise DocumentNotFoundError(f"Directory not found: {directory}", directory, "list") from None
        except OSError as e:
            raise StoreIOError(f"Failed to list files in directory: {directory}", directory, "list", 1) from e

    def delete(self, path: str | Path) -> None:
        """Delete a file. Deleting a file that does not exist is not an error."""
        path = Path(path)

        def attempt() -> None:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(path)

        self._with_retry(attempt, path, "delete")
