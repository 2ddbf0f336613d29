"""Task repository: the only reader and writer of ``tasks.json``.

Every mutation reads the whole document, builds a new one and writes it back
atomically. There is no lock around that read-modify-write cycle: two
concurrent mutations against the same data directory are last-writer-wins.
Repository methods are synchronous, so tool calls served from one event loop
never interleave inside a cycle.
"""

from __future__ import annotations

import contextlib
import logging
import re
import uuid
from collections.abc import Callable, Iterable, Iterator
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from taskplan_mcp.config import TASKS_FILE_NAME
from taskplan_mcp.enums import ChangeType, TaskStatus
from taskplan_mcp.errors import StoreError
from taskplan_mcp.models.requests import CLEAR, TaskCreateRequest, TaskUpdateRequest, apply_patch
from taskplan_mcp.models.results import ClearAllResult, TaskChangeEvent
from taskplan_mcp.models.task import TaskDependency, TaskDocument, TaskItem
from taskplan_mcp.storage.files import AtomicDocumentStore
from taskplan_mcp.storage.snapshots import SnapshotStore

logger = logging.getLogger(__name__)

TaskChangeHandler = Callable[[TaskChangeEvent], None]

_UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)

# Fields whose CLEAR patch is ignored because the schema does not allow null
_REQUIRED_FIELDS = ("name", "description", "status")
_OPTIONAL_TEXT_FIELDS = (
    "notes",
    "summary",
    "analysis_result",
    "agent",
    "implementation_guide",
    "verification_criteria",
)


def utc_timestamp() -> str:
    """Current UTC time as fixed-width ISO-8601 with milliseconds, e.g. ``2024-05-01T12:00:00.000Z``."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def to_dependencies(dependency_strings: Iterable[str], all_tasks: Iterable[TaskItem]) -> list[TaskDependency]:
    """Resolve free-form dependency strings to task references.

    Each string is trimmed and tried first as an exact task id (when it looks
    like a UUID), then as an exact, case-sensitive task name. Strings that
    match neither are dropped.
    """
    tasks = list(all_tasks)
    by_id = {t.id: t for t in tasks}
    by_name: dict[str, TaskItem] = {}
    for t in tasks:
        by_name.setdefault(t.name, t)

    dependencies: list[TaskDependency] = []
    for raw in dependency_strings:
        trimmed = (raw or "").strip()
        if not trimmed:
            continue

        if _UUID_RE.match(trimmed) and trimmed in by_id:
            dependencies.append(TaskDependency(task_id=trimmed))
            continue

        if match := by_name.get(trimmed):
            dependencies.append(TaskDependency(task_id=match.id))
            continue

        logger.debug("Dropping unresolved dependency %r", trimmed)

    return dependencies


class TaskRepository:
    """CRUD for the task document with dependency resolution and change events.

    Args:
        data_dir: Directory holding ``tasks.json``.
        store: Document store (a default one is created when omitted).
        snapshots: Optional snapshot store; when set, ``clear_all`` backs up
            completed tasks before clearing.
        clock: Returns the current time as an ISO-8601 string.
    """

    def __init__(
        self,
        data_dir: str | Path,
        store: AtomicDocumentStore | None = None,
        snapshots: SnapshotStore | None = None,
        clock: Callable[[], str] = utc_timestamp,
    ) -> None:
        self.data_dir = Path(data_dir)
        self.tasks_file = self.data_dir / TASKS_FILE_NAME
        self.store = store or AtomicDocumentStore()
        self.snapshots = snapshots
        self._clock = clock
        self._handlers: list[TaskChangeHandler] = []

    # =========================================================================
    # Change events
    # =========================================================================

    def on_change(self, handler: TaskChangeHandler) -> Callable[[], None]:
        """Register a handler called after every successful mutation.

        Returns:
            A function that unregisters the handler. Calling it twice is harmless.
        """
        self._handlers.append(handler)

        def unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._handlers.remove(handler)

        return unsubscribe

    def _notify(self, event: TaskChangeEvent) -> None:
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception:
                logger.exception("Error in task change handler for %s event", event.type.value)

    # =========================================================================
    # Queries
    # =========================================================================

    def get_all(self) -> list[TaskItem]:
        """All tasks in document order."""
        return self._read_document().tasks

    def get_by_id(self, task_id: str) -> TaskItem | None:
        return next((t for t in self.get_all() if t.id == task_id), None)

    # =========================================================================
    # Mutations
    # =========================================================================

    def create(self, request: TaskCreateRequest) -> TaskItem:
        """Create a task and persist it.

        Returns:
            The new task, once the document has been written.
        """
        with self._error_context("create"):
            document = self._read_document()
            now = self._clock()
            task = TaskItem(
                id=str(uuid.uuid4()),
                name=request.name,
                description=request.description,
                notes=request.notes,
                status=TaskStatus.PENDING,
                dependencies=to_dependencies(request.dependencies, document.tasks),
                created_at=now,
                updated_at=now,
                completed_at=None,
                summary=None,
                related_files=request.related_files,
                analysis_result=request.analysis_result,
                agent=request.agent,
                implementation_guide=request.implementation_guide,
                verification_criteria=request.verification_criteria,
            )
            self._write_document(TaskDocument(version=document.version, tasks=[*document.tasks, task]))

        logger.info("Created task %s (%s)", task.id, task.name)
        self._notify(TaskChangeEvent(ChangeType.CREATED, task))
        return task

    def update(self, task_id: str, request: TaskUpdateRequest) -> TaskItem | None:
        """Apply a partial update.

        Returns:
            The updated task, or ``None`` when no task has ``task_id`` (nothing is written).
        """
        with self._error_context("update", task_id):
            document = self._read_document()
            index = self._find_index(document.tasks, task_id)
            if index is None:
                return None

            updated = self._apply_updates(document.tasks[index], request, document.tasks)
            tasks = list(document.tasks)
            tasks[index] = updated
            self._write_document(TaskDocument(version=document.version, tasks=tasks))

        logger.info("Updated task %s fields=%s", task_id, ",".join(request.changed_fields()) or "-")
        self._notify(TaskChangeEvent(ChangeType.UPDATED, updated))
        return updated

    def delete(self, task_id: str) -> bool:
        """Remove a task. Returns whether anything was removed."""
        with self._error_context("delete", task_id):
            document = self._read_document()
            index = self._find_index(document.tasks, task_id)
            if index is None:
                return False

            removed = document.tasks[index]
            tasks = [t for i, t in enumerate(document.tasks) if i != index]
            self._write_document(TaskDocument(version=document.version, tasks=tasks))

        logger.info("Deleted task %s (%s)", removed.id, removed.name)
        self._notify(TaskChangeEvent(ChangeType.DELETED, removed))
        return True

    def clear_all(self) -> ClearAllResult:
        """Replace the document with an empty one in a single write.

        Completed tasks are backed up first when a snapshot store is configured.
        """
        with self._error_context("clear_all"):
            document = self._read_document()
            count = len(document.tasks)
            if count == 0:
                return ClearAllResult(success=True, message="No tasks to clear.", cleared_count=0)

            backup_file = None
            if self.snapshots is not None and any(t.status == TaskStatus.COMPLETED for t in document.tasks):
                backup_file = str(self.snapshots.create_backup(document))

            self._write_document(TaskDocument.empty())

        logger.warning("Cleared %d task(s), backup=%s", count, backup_file or "none")
        self._notify(TaskChangeEvent(ChangeType.CLEARED))
        return ClearAllResult(
            success=True,
            message=f"Cleared {count} task(s).",
            cleared_count=count,
            backup_file=backup_file,
        )

    # =========================================================================
    # Internals
    # =========================================================================

    @contextlib.contextmanager
    def _error_context(self, action: str, task_id: str | None = None) -> Iterator[None]:
        """Attach the repository action to store errors before they propagate."""
        try:
            yield
        except StoreError as e:
            e.context.setdefault("action", action)
            if task_id is not None:
                e.context.setdefault("task_id", task_id)
            logger.error("Task %s failed: %s", action, e)
            raise

    def _read_document(self) -> TaskDocument:
        return self.store.read_or_default(self.tasks_file, TaskDocument, TaskDocument.empty())

    def _write_document(self, document: TaskDocument) -> None:
        self.store.write(self.tasks_file, document, TaskDocument)

    @staticmethod
    def _find_index(tasks: list[TaskItem], task_id: str) -> int | None:
        return next((i for i, t in enumerate(tasks) if t.id == task_id), None)

    def _apply_updates(
        self,
        existing: TaskItem,
        request: TaskUpdateRequest,
        all_tasks: list[TaskItem],
    ) -> TaskItem:
        data: dict[str, Any] = existing.model_dump()

        for name in _REQUIRED_FIELDS:
            patch = getattr(request, name)
            if patch is not CLEAR:
                data[name] = apply_patch(patch, data[name])

        for name in _OPTIONAL_TEXT_FIELDS:
            data[name] = apply_patch(getattr(request, name), data[name])

        dependencies = apply_patch(request.dependencies, None, cleared=[])
        if dependencies is not None:
            data["dependencies"] = [d.model_dump() for d in to_dependencies(dependencies, all_tasks)]
        data["related_files"] = apply_patch(request.related_files, data["related_files"], cleared=[])

        now = self._now_after(existing)
        # A completion time survives edits while the task stays completed
        if data["status"] == TaskStatus.COMPLETED:
            data["completed_at"] = existing.completed_at or now
        else:
            data["completed_at"] = None
        data["updated_at"] = now

        return TaskItem.model_validate(data)

    def _now_after(self, existing: TaskItem) -> str:
        """Current time, but never earlier than the task's last update."""
        return max(self._clock(), existing.updated_at)
