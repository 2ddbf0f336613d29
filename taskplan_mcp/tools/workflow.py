"""Workflow MCP tools: planning splits, starting work and verifying results."""

import json
import logging

from mcp.types import ToolAnnotations

from taskplan_mcp.container import get_container
from taskplan_mcp.enums import ResponseFormat, TaskStatus
from taskplan_mcp.errors import StoreError
from taskplan_mcp.models.inputs import ExecuteTaskInput, SplitTasksInput, VerifyTaskInput
from taskplan_mcp.models.requests import SetTo, SplitTasksRequest, TaskCreateRequest, TaskUpdateRequest
from taskplan_mcp.server import mcp
from taskplan_mcp.services.split import split_tasks
from taskplan_mcp.utils.formatters import (
    _format_error,
    _format_split_result_markdown,
    _format_task_markdown,
    _format_tasks_concise,
)

logger = logging.getLogger(__name__)


@mcp.tool(
    name="taskplan_split",
    annotations=ToolAnnotations(
        title="Split Work Into Tasks",
        readOnlyHint=False,
        destructiveHint=True,
        idempotentHint=False,
        openWorldHint=False,
    ),
)
async def taskplan_split(params: SplitTasksInput) -> str:
    """
    Break a piece of work into several tasks in one call.

    Tasks are created in the order given, so a later task may list an earlier
    one (by name) as a dependency.

    UPDATE MODES:
    - append: add every task
    - overwrite: update tasks whose name already exists, add the rest
    - selective: skip tasks whose name already exists, add the rest
    - clearAllTasks: remove every existing task first (completed ones are backed up)

    USE THIS WHEN:
    - Turning a plan into tasks
    - Re-planning an existing set of tasks by name

    DO NOT USE WHEN:
    - Adding one task → use taskplan_create instead

    Args:
        params: SplitTasksInput containing update_mode, tasks, global_analysis_result
            and response_format

    Returns:
        The created and updated tasks and the names of skipped tasks

    Examples:
        - New plan: params with update_mode="clearAllTasks", tasks=[{name, description}, ...]
        - Extend plan: params with update_mode="selective", tasks=[...]
    """
    request = SplitTasksRequest(
        update_mode=params.update_mode,
        tasks=[TaskCreateRequest(**item.model_dump(exclude_none=True)) for item in params.tasks],
        global_analysis_result=params.global_analysis_result,
    )
    try:
        result = split_tasks(get_container().repository, request)
    except (StoreError, ValueError) as e:
        return _format_error(e)

    if params.response_format == ResponseFormat.JSON:
        return json.dumps(
            {
                "updateMode": params.update_mode.value,
                "clearedCount": result.cleared_count,
                "created": [t.to_json_dict() for t in result.created],
                "updated": [t.to_json_dict() for t in result.updated],
                "skipped": result.skipped,
            },
            indent=2,
        )

    if params.response_format == ResponseFormat.CONCISE:
        return _format_tasks_concise(result.affected, f"{params.update_mode.value}, {len(result.skipped)} skipped")

    return _format_split_result_markdown(result, params.update_mode.value)


@mcp.tool(
    name="taskplan_execute",
    annotations=ToolAnnotations(
        title="Execute Task",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    ),
)
async def taskplan_execute(params: ExecuteTaskInput) -> str:
    """
    Start work on a task: check its dependencies and mark it in progress.

    The task is refused while any dependency that still exists is not completed.
    Dependencies on deleted tasks are ignored.

    USE THIS WHEN:
    - Picking up the next task to work on

    DO NOT USE WHEN:
    - Finishing a task → use taskplan_verify instead

    Args:
        params: ExecuteTaskInput containing task_id

    Returns:
        The task with its implementation guide and completed dependencies,
        or the list of dependencies that are still open
    """
    repository = get_container().repository
    try:
        all_tasks = repository.get_all()
        by_id = {t.id: t for t in all_tasks}
        task = by_id.get(params.task_id)
        if task is None:
            return f"Error: Task {params.task_id} not found."

        dependency_tasks = [by_id[d.task_id] for d in task.dependencies if d.task_id in by_id]
        incomplete = [d for d in dependency_tasks if d.status != TaskStatus.COMPLETED]
        if incomplete:
            logger.info("Refusing to execute %s: %d incomplete dependencies", task.id, len(incomplete))
            lines = [f'Error: Task "{task.name}" has {len(incomplete)} incomplete dependencies:']
            lines.extend(f"  - {d.name} ({d.status.value})" for d in incomplete)
            return "\n".join(lines)

        if task.status != TaskStatus.IN_PROGRESS:
            task = repository.update(task.id, TaskUpdateRequest(status=SetTo(TaskStatus.IN_PROGRESS))) or task
    except (StoreError, ValueError) as e:
        return _format_error(e)

    return f"Task started.\n\n{_format_task_markdown(task, all_tasks)}"


@mcp.tool(
    name="taskplan_verify",
    annotations=ToolAnnotations(
        title="Verify Task",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    ),
)
async def taskplan_verify(params: VerifyTaskInput) -> str:
    """
    Record a verification score and summary, and mark the task completed.

    Args:
        params: VerifyTaskInput containing task_id, score (0-100) and summary

    Returns:
        The completed task, or an error message if no task has that ID
    """
    request = TaskUpdateRequest(status=SetTo(TaskStatus.COMPLETED), summary=SetTo(params.summary))
    try:
        task = get_container().repository.update(params.task_id, request)
    except (StoreError, ValueError) as e:
        return _format_error(e)

    if task is None:
        return f"Error: Task {params.task_id} not found."

    logger.info("Task %s verified with score %d", task.id, params.score)
    return f"Task verified (score {params.score}/100) and marked completed.\n\n{_format_task_markdown(task)}"
