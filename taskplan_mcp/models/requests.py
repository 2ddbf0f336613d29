"""Request models accepted by the task repository."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any, Generic, TypeVar, Union

from pydantic import BaseModel, Field

from taskplan_mcp.enums import TaskStatus, UpdateMode
from taskplan_mcp.models.task import RelatedFile

T = TypeVar("T")


class _Unset:
    """Field omitted from an update: keep the existing value."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


class _Clear:
    """Field explicitly set to null: clear the existing value."""

    _instance: _Clear | None = None

    def __new__(cls) -> _Clear:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "CLEAR"


UNSET = _Unset()
CLEAR = _Clear()


@dataclass(frozen=True)
class SetTo(Generic[T]):
    """Field present with a value: replace the existing value."""

    value: T


FieldPatch = Union[_Unset, _Clear, SetTo[T]]


def patch_from_value(value: Any) -> FieldPatch:
    """Map a raw value that was present in a request to a patch (``None`` clears)."""
    if value is None:
        return CLEAR
    return SetTo(value)


def apply_patch(patch: FieldPatch, current: Any, cleared: Any = None) -> Any:
    """Resolve a patch against the current value.

    Args:
        patch: The field patch
        current: Existing value
        cleared: Value to use when the patch clears the field

    Returns:
        The new field value
    """
    if isinstance(patch, SetTo):
        return patch.value
    if patch is CLEAR:
        return cleared
    return current


class TaskCreateRequest(BaseModel):
    """Fields a caller may set when creating a task.

    ``dependencies`` holds free-form strings (task ids or task names) that are
    resolved against the current document at creation time.
    """

    name: str = Field(..., min_length=1, max_length=500)
    description: str = Field(..., max_length=5000)
    notes: str | None = Field(default=None, max_length=5000)
    dependencies: list[str] = Field(default_factory=list)
    related_files: list[RelatedFile] = Field(default_factory=list)
    analysis_result: str | None = Field(default=None, max_length=20000)
    agent: str | None = Field(default=None, max_length=200)
    implementation_guide: str | None = Field(default=None, max_length=10000)
    verification_criteria: str | None = Field(default=None, max_length=5000)


@dataclass(frozen=True)
class TaskUpdateRequest:
    """Partial update for an existing task.

    Every field is a :data:`FieldPatch`: ``UNSET`` keeps the stored value,
    ``CLEAR`` clears it and ``SetTo(value)`` replaces it. ``name``,
    ``description`` and ``status`` cannot be cleared; ``CLEAR`` leaves them
    unchanged. Clearing ``dependencies`` or ``related_files`` empties the list.
    """

    name: FieldPatch[str] = UNSET
    description: FieldPatch[str] = UNSET
    notes: FieldPatch[str] = UNSET
    status: FieldPatch[TaskStatus] = UNSET
    dependencies: FieldPatch[list[str]] = UNSET
    related_files: FieldPatch[list[RelatedFile]] = UNSET
    summary: FieldPatch[str] = UNSET
    analysis_result: FieldPatch[str] = UNSET
    agent: FieldPatch[str] = UNSET
    implementation_guide: FieldPatch[str] = UNSET
    verification_criteria: FieldPatch[str] = UNSET

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> TaskUpdateRequest:
        """Build a request from the keys a caller actually sent.

        Keys absent from ``values`` stay ``UNSET``; ``None`` values become
        ``CLEAR``. Unknown keys raise ``ValueError``.
        """
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ValueError(f"Unknown task fields: {', '.join(sorted(unknown))}")
        return cls(**{key: patch_from_value(value) for key, value in values.items()})

    def changed_fields(self) -> list[str]:
        """Names of fields this request touches, in declaration order."""
        return [f.name for f in fields(self) if getattr(self, f.name) is not UNSET]


class SplitTasksRequest(BaseModel):
    """Bulk creation of tasks under an update mode."""

    update_mode: UpdateMode
    tasks: list[TaskCreateRequest] = Field(..., min_length=1, max_length=100)
    global_analysis_result: str | None = Field(default=None, max_length=20000)
