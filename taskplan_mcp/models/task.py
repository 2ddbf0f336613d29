"""Persisted task models.

These models are the schema of ``tasks.json``. Attribute names are snake_case
in Python and camelCase on disk.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from taskplan_mcp.enums import RelatedFileType, TaskStatus

UUID_PATTERN = r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"

CURRENT_DOCUMENT_VERSION = "1.0"


def _check_timestamp(value: str | None) -> str | None:
    if value is None:
        return value
    try:
        # fromisoformat only accepts a trailing "Z" from Python 3.11 on
        datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise ValueError(f"Invalid ISO-8601 timestamp: {value!r}") from e
    return value


class DocumentModel(BaseModel):
    """Base for models serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        """Dump using the on-disk (camelCase) field names."""
        return self.model_dump(mode="json", by_alias=True)


class TaskDependency(DocumentModel):
    """Reference to another task by id."""

    task_id: str = Field(..., pattern=UUID_PATTERN)


class RelatedFile(DocumentModel):
    """A file associated with a task."""

    path: str = Field(..., min_length=1, max_length=1000)
    type: RelatedFileType
    description: str | None = Field(default=None, max_length=1000)
    line_start: int | None = Field(default=None, ge=1)
    line_end: int | None = Field(default=None, ge=1)


class TaskItem(DocumentModel):
    """A single task record."""

    id: str = Field(..., pattern=UUID_PATTERN)
    name: str = Field(..., min_length=1, max_length=500)
    description: str = Field(..., max_length=5000)
    notes: str | None = Field(default=None, max_length=5000)
    status: TaskStatus
    dependencies: list[TaskDependency] = Field(default_factory=list)
    created_at: str
    updated_at: str
    completed_at: str | None = None
    summary: str | None = Field(default=None, max_length=5000)
    related_files: list[RelatedFile] = Field(default_factory=list)
    analysis_result: str | None = Field(default=None, max_length=20000)
    agent: str | None = Field(default=None, max_length=200)
    implementation_guide: str | None = Field(default=None, max_length=10000)
    verification_criteria: str | None = Field(default=None, max_length=5000)

    @field_validator("created_at", "updated_at", "completed_at")
    @classmethod
    def validate_timestamp(cls, v: str | None) -> str | None:
        return _check_timestamp(v)


class TaskDocument(DocumentModel):
    """Root of the task file: a version tag and the ordered task list."""

    version: str = Field(default=CURRENT_DOCUMENT_VERSION, pattern=r"^\d+\.\d+$")
    tasks: list[TaskItem] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_unique_ids(self) -> TaskDocument:
        seen: set[str] = set()
        for task in self.tasks:
            if task.id in seen:
                raise ValueError(f"Duplicate task id: {task.id}")
            seen.add(task.id)
        return self

    @classmethod
    def empty(cls) -> TaskDocument:
        return cls(version=CURRENT_DOCUMENT_VERSION, tasks=[])
