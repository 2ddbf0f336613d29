"""Pydantic models for Taskplan MCP."""

from taskplan_mcp.models.inputs import (
    ClearAllTasksInput,
    CreateTaskInput,
    DeleteTaskInput,
    ExecuteTaskInput,
    GetTaskInput,
    ListSnapshotsInput,
    ListTasksInput,
    QueryTaskInput,
    SplitTaskItem,
    SplitTasksInput,
    UpdateTaskInput,
    VerifyTaskInput,
)
from taskplan_mcp.models.requests import (
    CLEAR,
    UNSET,
    FieldPatch,
    SetTo,
    SplitTasksRequest,
    TaskCreateRequest,
    TaskUpdateRequest,
)
from taskplan_mcp.models.results import (
    ClearAllResult,
    SearchQuery,
    SearchResults,
    SnapshotInfo,
    SplitResult,
    TaskChangeEvent,
)
from taskplan_mcp.models.task import RelatedFile, TaskDependency, TaskDocument, TaskItem

__all__ = [
    # Persisted models
    "TaskDependency",
    "RelatedFile",
    "TaskItem",
    "TaskDocument",
    # Repository requests
    "TaskCreateRequest",
    "TaskUpdateRequest",
    "SplitTasksRequest",
    "FieldPatch",
    "SetTo",
    "UNSET",
    "CLEAR",
    # Results and events
    "SearchQuery",
    "SearchResults",
    "ClearAllResult",
    "SplitResult",
    "TaskChangeEvent",
    "SnapshotInfo",
    # Tool input models
    "CreateTaskInput",
    "ListTasksInput",
    "GetTaskInput",
    "QueryTaskInput",
    "UpdateTaskInput",
    "DeleteTaskInput",
    "ListSnapshotsInput",
    "ClearAllTasksInput",
    "SplitTaskItem",
    "SplitTasksInput",
    "ExecuteTaskInput",
    "VerifyTaskInput",
]
