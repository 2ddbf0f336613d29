"""
MCP Server for task planning.

This server keeps a plan of tasks in a JSON document under a workspace data
directory and provides tools to create, search, update, split, execute and
verify tasks. Every write to the document is atomic.
"""

# Re-export enums
from taskplan_mcp.enums import (
    ChangeType,
    RelatedFileType,
    ResponseFormat,
    SortDirection,
    SortField,
    StatusFilter,
    TaskStatus,
    UpdateMode,
)

# Re-export errors
from taskplan_mcp.errors import (
    CorruptDocumentError,
    DocumentNotFoundError,
    InvalidDocumentError,
    SearchQueryTooLongError,
    StoreError,
    StoreIOError,
)

# Re-export models
from taskplan_mcp.models import (
    CLEAR,
    UNSET,
    ClearAllResult,
    ClearAllTasksInput,
    CreateTaskInput,
    DeleteTaskInput,
    ExecuteTaskInput,
    GetTaskInput,
    ListSnapshotsInput,
    ListTasksInput,
    QueryTaskInput,
    RelatedFile,
    SearchQuery,
    SearchResults,
    SetTo,
    SplitResult,
    SplitTaskItem,
    SplitTasksInput,
    SplitTasksRequest,
    TaskChangeEvent,
    TaskCreateRequest,
    TaskDependency,
    TaskDocument,
    TaskItem,
    TaskUpdateRequest,
    UpdateTaskInput,
    VerifyTaskInput,
)

# Re-export the search engine and storage layer
from taskplan_mcp.search import search_tasks

# Re-export MCP server instance
from taskplan_mcp.server import mcp
from taskplan_mcp.storage import AtomicDocumentStore, SnapshotStore, TaskRepository

# Re-export tools
from taskplan_mcp.tools import (
    taskplan_clear_all,
    taskplan_create,
    taskplan_delete,
    taskplan_execute,
    taskplan_get,
    taskplan_list,
    taskplan_list_snapshots,
    taskplan_query,
    taskplan_split,
    taskplan_update,
    taskplan_verify,
)

# Re-export utilities (including private functions used by tests)
from taskplan_mcp.utils import (
    _format_task_concise,
    _format_task_markdown,
    _format_tasks_concise,
    _format_tasks_markdown,
)

__all__ = [
    # Enums
    "ResponseFormat",
    "TaskStatus",
    "StatusFilter",
    "RelatedFileType",
    "SortField",
    "SortDirection",
    "UpdateMode",
    "ChangeType",
    # Errors
    "StoreError",
    "DocumentNotFoundError",
    "CorruptDocumentError",
    "InvalidDocumentError",
    "StoreIOError",
    "SearchQueryTooLongError",
    # Task models
    "TaskDependency",
    "RelatedFile",
    "TaskItem",
    "TaskDocument",
    # Requests and results
    "TaskCreateRequest",
    "TaskUpdateRequest",
    "SplitTasksRequest",
    "SetTo",
    "UNSET",
    "CLEAR",
    "SearchQuery",
    "SearchResults",
    "ClearAllResult",
    "SplitResult",
    "TaskChangeEvent",
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
    # Storage and search
    "AtomicDocumentStore",
    "TaskRepository",
    "SnapshotStore",
    "search_tasks",
    # Utility functions
    "_format_task_concise",
    "_format_task_markdown",
    "_format_tasks_concise",
    "_format_tasks_markdown",
    # Core tools
    "taskplan_create",
    "taskplan_list",
    "taskplan_get",
    "taskplan_query",
    "taskplan_update",
    "taskplan_delete",
    "taskplan_clear_all",
    "taskplan_list_snapshots",
    # Workflow tools
    "taskplan_split",
    "taskplan_execute",
    "taskplan_verify",
    # MCP server instance
    "mcp",
]
