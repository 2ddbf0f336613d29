"""Query parameters, results and events produced by the task layer."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, Field

from taskplan_mcp.enums import ChangeType, SortDirection, SortField, TaskStatus
from taskplan_mcp.models.task import TaskItem


class SearchQuery(BaseModel):
    """Parameters for :func:`taskplan_mcp.search.search_tasks`.

    Paging values are normalized by the search engine rather than rejected.
    """

    query: str | None = None
    status: TaskStatus | None = None
    page: int = 1
    page_size: float | None = None
    sort_by: SortField = SortField.CREATED_AT
    sort_direction: SortDirection = SortDirection.DESC


class SearchResults(BaseModel):
    """One page of search results."""

    tasks: list[TaskItem] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 10
    total_pages: int = 0
    has_more: bool = False


class ClearAllResult(BaseModel):
    success: bool
    message: str
    cleared_count: int = 0
    backup_file: str | None = None


class SplitResult(BaseModel):
    """Outcome of a bulk split."""

    created: list[TaskItem] = Field(default_factory=list)
    updated: list[TaskItem] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    cleared_count: int = 0

    @property
    def affected(self) -> list[TaskItem]:
        return self.created + self.updated


@dataclass(frozen=True)
class TaskChangeEvent:
    """Notification delivered to change handlers after a durable write.

    ``task`` is the created, updated or deleted task; it is ``None`` for
    ``cleared`` events.
    """

    type: ChangeType
    task: TaskItem | None = None


@dataclass(frozen=True)
class SnapshotInfo:
    name: str
    path: Path
    timestamp: datetime
    task_count: int
