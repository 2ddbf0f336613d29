"""Named task snapshots and completed-task backups.

Snapshots live in ``<data_dir>/memory`` and backups in ``<data_dir>/backups``,
both as task documents written through the atomic store. Only listing is
exposed as a tool (``taskplan_list_snapshots``); saving, loading and deleting
are for library callers.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from pathlib import Path

from taskplan_mcp.config import sanitize_path
from taskplan_mcp.enums import TaskStatus
from taskplan_mcp.errors import StoreError
from taskplan_mcp.models.results import SnapshotInfo
from taskplan_mcp.models.task import TaskDocument
from taskplan_mcp.storage.files import AtomicDocumentStore

logger = logging.getLogger(__name__)

MEMORY_DIR = "memory"
BACKUP_DIR = "backups"

MAX_FILENAME_LENGTH = 100
MAX_SNAPSHOT_SIZE_BYTES = 10 * 1024 * 1024

_TIMESTAMP_FORMAT = "%Y-%m-%dT%H-%M-%S-%fZ"
_TIMESTAMP_SUFFIX = re.compile(r"_(\d{4}-\d{2}-\d{2}T\d{2}-\d{2}-\d{2}-\d{6}Z)\.json$")


def sanitize_filename(filename: str) -> str:
    """Strip path separators, control and reserved characters from a snapshot name."""
    cleaned = re.sub(r"[/\\:\x00-\x1f\x7f<>\"|?*]", "", filename)
    cleaned = re.sub(r"\s+", "_", cleaned)
    cleaned = cleaned.strip(". ")
    return re.sub(r"_+", "_", cleaned)


def _file_timestamp(now: datetime) -> str:
    return now.strftime(_TIMESTAMP_FORMAT)


def _with_json_suffix(name: str) -> str:
    return name if name.endswith(".json") else f"{name}.json"


class SnapshotStore:
    """Save, list, load and delete task document snapshots."""

    def __init__(self, data_dir: str | Path, store: AtomicDocumentStore | None = None) -> None:
        self.data_dir = Path(data_dir)
        self.memory_dir = self.data_dir / MEMORY_DIR
        self.backup_dir = self.data_dir / BACKUP_DIR
        self.store = store or AtomicDocumentStore()

    def save_snapshot(self, name: str, document: TaskDocument) -> Path:
        """Write ``document`` as ``<name>_<timestamp>.json``.

        Raises:
            ValueError: The sanitized name is empty or too long, or the document is too large.
        """
        safe_name = sanitize_filename(name)
        if not safe_name:
            raise ValueError("Snapshot name cannot be empty after sanitization")
        if len(safe_name) > MAX_FILENAME_LENGTH:
            raise ValueError(f"Snapshot name too long (max {MAX_FILENAME_LENGTH} characters after sanitization)")

        size = len(document.model_dump_json(by_alias=True).encode("utf-8"))
        if size > MAX_SNAPSHOT_SIZE_BYTES:
            raise ValueError(f"Snapshot too large ({size} bytes, max {MAX_SNAPSHOT_SIZE_BYTES})")

        path = sanitize_path(f"{safe_name}_{_file_timestamp(datetime.now(timezone.utc))}.json", self.memory_dir)
        self.store.write(path, document, TaskDocument)
        logger.info("Saved snapshot %s with %d task(s)", path.name, len(document.tasks))
        return path

    def load_snapshot(self, name: str) -> TaskDocument:
        """Load a snapshot by file name (``.json`` optional).

        Raises:
            PathTraversalError: ``name`` escapes the snapshot directory.
            DocumentNotFoundError: No such snapshot.
        """
        path = sanitize_path(_with_json_suffix(name), self.memory_dir)
        return self.store.read(path, TaskDocument)

    def list_snapshots(self) -> list[SnapshotInfo]:
        """Snapshots newest first. Unreadable snapshot files are skipped."""
        if not self.store.exists(self.memory_dir):
            return []

        snapshots: list[SnapshotInfo] = []
        for filename in self.store.list_files(self.memory_dir):
            if not filename.endswith(".json"):
                continue
            path = self.memory_dir / filename
            try:
                document = self.store.read(path, TaskDocument)
            except StoreError as e:
                logger.warning("Skipping unreadable snapshot %s: %s", filename, e)
                continue

            match = _TIMESTAMP_SUFFIX.search(filename)
            if match:
                timestamp = datetime.strptime(match.group(1), _TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)
            else:
                timestamp = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)

            snapshots.append(
                SnapshotInfo(
                    name=filename[: -len(".json")],
                    path=path,
                    timestamp=timestamp,
                    task_count=len(document.tasks),
                )
            )

        return sorted(snapshots, key=lambda s: s.timestamp, reverse=True)

    def delete_snapshot(self, name: str) -> bool:
        """Delete a snapshot. Returns ``False`` when it does not exist."""
        path = sanitize_path(_with_json_suffix(name), self.memory_dir)
        if not self.store.exists(path):
            return False
        self.store.delete(path)
        return True

    def create_backup(self, document: TaskDocument) -> Path:
        """Back up the completed tasks of ``document`` to ``backups/``.

        Raises:
            ValueError: ``document`` has no completed tasks.
        """
        completed = [t for t in document.tasks if t.status == TaskStatus.COMPLETED]
        if not completed:
            raise ValueError("No completed tasks to backup")

        path = self.backup_dir / f"backup_{_file_timestamp(datetime.now(timezone.utc))}.json"
        self.store.write(path, TaskDocument(version=document.version, tasks=completed), TaskDocument)
        logger.info("Backed up %d completed task(s) to %s", len(completed), path.name)
        return path
