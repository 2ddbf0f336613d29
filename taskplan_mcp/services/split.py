"""Bulk task creation ("split") with update modes."""

from __future__ import annotations

import logging

from taskplan_mcp.enums import UpdateMode
from taskplan_mcp.models.requests import SetTo, SplitTasksRequest, TaskCreateRequest, TaskUpdateRequest
from taskplan_mcp.models.results import SplitResult
from taskplan_mcp.storage.repository import TaskRepository

logger = logging.getLogger(__name__)


def _overwrite_request(task: TaskCreateRequest) -> TaskUpdateRequest:
    """Replace the planning fields of a same-named task, leaving empty ones untouched."""
    optional = {
        "notes": task.notes,
        "analysis_result": task.analysis_result,
        "agent": task.agent,
        "implementation_guide": task.implementation_guide,
        "verification_criteria": task.verification_criteria,
    }
    return TaskUpdateRequest(
        description=SetTo(task.description),
        dependencies=SetTo(task.dependencies),
        related_files=SetTo(task.related_files),
        **{name: SetTo(value) for name, value in optional.items() if value is not None},
    )


def split_tasks(repository: TaskRepository, request: SplitTasksRequest) -> SplitResult:
    """Create (or overwrite) a batch of tasks.

    Tasks are processed in order and each is written on its own, so a task may
    depend on one created earlier in the same batch by name.

    Modes:
        append: create every task.
        overwrite: update tasks whose name already exists, create the rest.
        selective: skip tasks whose name already exists, create the rest.
        clearAllTasks: clear the document, then create every task.
    """
    result = SplitResult()

    if request.update_mode == UpdateMode.CLEAR_ALL_TASKS:
        result.cleared_count = repository.clear_all().cleared_count

    name_to_id: dict[str, str] = {}
    for existing in repository.get_all():
        name_to_id.setdefault(existing.name, existing.id)

    for item in request.tasks:
        if request.global_analysis_result is not None:
            item = item.model_copy(update={"analysis_result": request.global_analysis_result})
        existing_id = name_to_id.get(item.name)

        if existing_id and request.update_mode == UpdateMode.OVERWRITE:
            updated = repository.update(existing_id, _overwrite_request(item))
            if updated is not None:
                result.updated.append(updated)
                continue
            # Deleted since the lookup above; fall through and recreate it

        elif existing_id and request.update_mode == UpdateMode.SELECTIVE:
            logger.debug("Skipping existing task %r (selective mode)", item.name)
            result.skipped.append(item.name)
            continue

        created = repository.create(item)
        name_to_id.setdefault(created.name, created.id)
        result.created.append(created)

    logger.info(
        "Split tasks mode=%s created=%d updated=%d skipped=%d",
        request.update_mode.value,
        len(result.created),
        len(result.updated),
        len(result.skipped),
    )
    return result
