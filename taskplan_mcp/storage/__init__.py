"""Durable storage for task documents."""

from taskplan_mcp.storage.files import AtomicDocumentStore
from taskplan_mcp.storage.repository import TaskChangeHandler, TaskRepository, to_dependencies, utc_timestamp
from taskplan_mcp.storage.retry import backoff_delays, retry_with_backoff
from taskplan_mcp.storage.snapshots import SnapshotStore, sanitize_filename

__all__ = [
    "AtomicDocumentStore",
    "TaskRepository",
    "TaskChangeHandler",
    "SnapshotStore",
    "retry_with_backoff",
    "backoff_delays",
    "to_dependencies",
    "utc_timestamp",
    "sanitize_filename",
]
