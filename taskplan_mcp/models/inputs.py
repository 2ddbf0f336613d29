"""Input models for Taskplan MCP tools."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from taskplan_mcp.enums import (
    ResponseFormat,
    SortDirection,
    SortField,
    StatusFilter,
    TaskStatus,
    UpdateMode,
)
from taskplan_mcp.models.task import UUID_PATTERN, RelatedFile

# ============================================================================
# Core Tool Input Models
# ============================================================================


class CreateTaskInput(BaseModel):
    """Input model for creating a task."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., description="Task name (unique names make dependencies easy)", min_length=1, max_length=500)
    description: str = Field(..., description="What needs to be done", min_length=1, max_length=5000)
    dependencies: list[str] | None = Field(
        default=None,
        description="Tasks this task depends on, by ID or exact name. Unknown entries are ignored.",
    )
    related_files: list[RelatedFile] | None = Field(default=None, description="Files related to the task")
    implementation_guide: str | None = Field(default=None, description="How to implement the task", max_length=10000)
    verification_criteria: str | None = Field(
        default=None, description="How to verify the task is done", max_length=5000
    )
    notes: str | None = Field(default=None, description="Additional notes", max_length=5000)
    agent: str | None = Field(default=None, description="Agent assigned to the task", max_length=200)
    response_format: ResponseFormat = Field(
        default=ResponseFormat.MARKDOWN,
        description="Output format: 'markdown', 'concise' or 'json'",
    )

    @field_validator("dependencies")
    @classmethod
    def validate_dependencies(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return v
        if any(len(dep) > 500 for dep in v):
            raise ValueError("Dependency references cannot exceed 500 characters")
        return v


class ListTasksInput(BaseModel):
    """Input model for listing tasks."""

    model_config = ConfigDict(str_strip_whitespace=True)

    status: StatusFilter = Field(
        default=StatusFilter.ALL,
        description="Filter by status: all, pending, in_progress, completed or blocked",
    )
    response_format: ResponseFormat = Field(
        default=ResponseFormat.MARKDOWN,
        description="Output format: 'markdown', 'concise' or 'json'",
    )


class GetTaskInput(BaseModel):
    """Input model for getting a single task."""

    model_config = ConfigDict(str_strip_whitespace=True)

    task_id: str = Field(..., description="Task ID (UUID)", pattern=UUID_PATTERN)
    response_format: ResponseFormat = Field(
        default=ResponseFormat.MARKDOWN,
        description="Output format: 'markdown', 'concise' or 'json'",
    )


class QueryTaskInput(BaseModel):
    """Input model for searching tasks."""

    model_config = ConfigDict(str_strip_whitespace=True)

    query: str = Field(..., description="Keyword to search for, or a task ID when is_id is true", min_length=1, max_length=500)
    is_id: bool = Field(default=False, description="Treat the query as an exact task ID")
    status: TaskStatus | None = Field(default=None, description="Only return tasks with this status")
    page: int = Field(default=1, description="Page number (1-based)", ge=1)
    page_size: int = Field(default=10, description="Results per page", ge=1, le=100)
    sort_by: SortField = Field(default=SortField.CREATED_AT, description="Sort field")
    sort_direction: SortDirection = Field(default=SortDirection.DESC, description="Sort direction")
    response_format: ResponseFormat = Field(
        default=ResponseFormat.MARKDOWN,
        description="Output format: 'markdown', 'concise' or 'json'",
    )


class UpdateTaskInput(BaseModel):
    """Input model for updating a task.

    Omitted fields keep their values; fields sent as null are cleared.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    task_id: str = Field(..., description="Task ID (UUID) to update", pattern=UUID_PATTERN)
    name: str | None = Field(default=None, description="New task name", min_length=1, max_length=500)
    description: str | None = Field(default=None, description="New description", max_length=5000)
    status: TaskStatus | None = Field(default=None, description="New status")
    notes: str | None = Field(default=None, description="New notes (null clears)", max_length=5000)
    dependencies: list[str] | None = Field(
        default=None, description="Replacement dependencies by ID or name (null clears)"
    )
    related_files: list[RelatedFile] | None = Field(
        default=None, description="Replacement related files (null clears)"
    )
    summary: str | None = Field(default=None, description="Completion summary (null clears)", max_length=5000)
    agent: str | None = Field(default=None, description="Assigned agent (null clears)", max_length=200)
    implementation_guide: str | None = Field(
        default=None, description="Implementation guide (null clears)", max_length=10000
    )
    verification_criteria: str | None = Field(
        default=None, description="Verification criteria (null clears)", max_length=5000
    )


class DeleteTaskInput(BaseModel):
    """Input model for deleting a task."""

    model_config = ConfigDict(str_strip_whitespace=True)

    task_id: str = Field(..., description="Task ID (UUID) to delete", pattern=UUID_PATTERN)


class ClearAllTasksInput(BaseModel):
    """Input model for clearing every task."""

    confirm: bool = Field(default=False, description="Must be true to actually clear tasks")


class ListSnapshotsInput(BaseModel):
    """Input model for listing saved snapshots."""

    response_format: ResponseFormat = Field(
        default=ResponseFormat.MARKDOWN,
        description="Output format: 'markdown', 'concise' or 'json'",
    )


# ============================================================================
# Workflow Tool Input Models
# ============================================================================


class SplitTaskItem(BaseModel):
    """One task inside a split request."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=500)
    description: str = Field(..., min_length=1, max_length=5000)
    dependencies: list[str] | None = Field(default=None, description="Dependencies by ID or name")
    related_files: list[RelatedFile] | None = None
    implementation_guide: str | None = Field(default=None, max_length=10000)
    verification_criteria: str | None = Field(default=None, max_length=5000)
    notes: str | None = Field(default=None, max_length=5000)
    agent: str | None = Field(default=None, max_length=200)


class SplitTasksInput(BaseModel):
    """Input model for splitting work into several tasks."""

    model_config = ConfigDict(str_strip_whitespace=True)

    update_mode: UpdateMode = Field(
        ...,
        description=(
            "append: add all tasks; overwrite: update same-named tasks and add the rest; "
            "selective: skip same-named tasks; clearAllTasks: clear everything first"
        ),
    )
    tasks: list[SplitTaskItem] = Field(..., description="Tasks to create", min_length=1, max_length=100)
    global_analysis_result: str | None = Field(
        default=None, description="Analysis shared by all tasks in this split", max_length=20000
    )
    response_format: ResponseFormat = Field(
        default=ResponseFormat.MARKDOWN,
        description="Output format: 'markdown', 'concise' or 'json'",
    )


class ExecuteTaskInput(BaseModel):
    """Input model for starting work on a task."""

    model_config = ConfigDict(str_strip_whitespace=True)

    task_id: str = Field(..., description="Task ID (UUID) to execute", pattern=UUID_PATTERN)


class VerifyTaskInput(BaseModel):
    """Input model for verifying and completing a task."""

    model_config = ConfigDict(str_strip_whitespace=True)

    task_id: str = Field(..., description="Task ID (UUID) to verify", pattern=UUID_PATTERN)
    score: int = Field(..., description="Verification score between 0 and 100", ge=0, le=100)
    summary: str = Field(..., description="Summary of what was done", min_length=1, max_length=2000)
