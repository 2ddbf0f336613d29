"""Core MCP tool definitions for task management."""

import json

from mcp.types import ToolAnnotations
from pydantic import ValidationError

from taskplan_mcp.container import get_container
from taskplan_mcp.enums import ResponseFormat, StatusFilter
from taskplan_mcp.errors import StoreError
from taskplan_mcp.models.inputs import (
    ClearAllTasksInput,
    CreateTaskInput,
    DeleteTaskInput,
    GetTaskInput,
    ListSnapshotsInput,
    ListTasksInput,
    QueryTaskInput,
    UpdateTaskInput,
)
from taskplan_mcp.models.requests import TaskCreateRequest, TaskUpdateRequest
from taskplan_mcp.models.results import SearchQuery, SearchResults
from taskplan_mcp.search import search_tasks
from taskplan_mcp.server import mcp
from taskplan_mcp.utils.formatters import (
    _format_error,
    _format_search_results_markdown,
    _format_task_concise,
    _format_task_markdown,
    _format_tasks_concise,
    _format_tasks_markdown,
)


@mcp.tool(
    name="taskplan_list",
    annotations=ToolAnnotations(
        title="List Tasks",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    ),
)
async def taskplan_list(params: ListTasksInput) -> str:
    """
    List tasks, optionally filtered by status.

    USE THIS WHEN:
    - Getting an overview of the plan
    - Finding what is pending, in progress, blocked or done

    DO NOT USE WHEN:
    - You have a task ID → use taskplan_get instead
    - Searching by keyword → use taskplan_query instead

    Args:
        params: ListTasksInput containing status and response_format

    Returns:
        Formatted list of tasks in document order (markdown, concise or JSON)

    Examples:
        - Everything: params with status="all"
        - Work left: params with status="pending"
    """
    try:
        tasks = get_container().repository.get_all()
    except StoreError as e:
        return _format_error(e)

    if params.status != StatusFilter.ALL:
        tasks = [t for t in tasks if t.status.value == params.status.value]

    if params.response_format == ResponseFormat.JSON:
        return json.dumps({"total": len(tasks), "tasks": [t.to_json_dict() for t in tasks]}, indent=2)

    if params.response_format == ResponseFormat.CONCISE:
        return _format_tasks_concise(tasks, params.status.value)

    title = "Tasks"
    if params.status != StatusFilter.ALL:
        title += f" ({params.status.value})"
    return _format_tasks_markdown(tasks, title)


@mcp.tool(
    name="taskplan_create",
    annotations=ToolAnnotations(
        title="Create Task",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=False,
    ),
)
async def taskplan_create(params: CreateTaskInput) -> str:
    """
    Create a new task in the plan.

    New tasks start as pending. Dependencies may be given as task IDs or exact
    task names; entries that match no task are ignored.

    USE THIS WHEN:
    - Adding a single task to track

    DO NOT USE WHEN:
    - Breaking work into several tasks at once → use taskplan_split instead
    - Changing an existing task → use taskplan_update instead

    Args:
        params: CreateTaskInput containing name, description and optional details

    Returns:
        The created task

    Examples:
        - Simple: params with name="Write API", description="Add the REST endpoints"
        - With dependency: params with name="Write tests", dependencies=["Write API"]
    """
    request = TaskCreateRequest(
        name=params.name,
        description=params.description,
        notes=params.notes,
        dependencies=params.dependencies or [],
        related_files=params.related_files or [],
        agent=params.agent,
        implementation_guide=params.implementation_guide,
        verification_criteria=params.verification_criteria,
    )
    try:
        task = get_container().repository.create(request)
    except (StoreError, ValidationError) as e:
        return _format_error(e)

    if params.response_format == ResponseFormat.JSON:
        return json.dumps(task.to_json_dict(), indent=2)
    if params.response_format == ResponseFormat.CONCISE:
        return f"Created {_format_task_concise(task)}"
    return f"Task created.\n\n{_format_task_markdown(task)}"


@mcp.tool(
    name="taskplan_get",
    annotations=ToolAnnotations(
        title="Get Task Details",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    ),
)
async def taskplan_get(params: GetTaskInput) -> str:
    """
    Get full details of one task, with dependency names resolved.

    Args:
        params: GetTaskInput containing task_id and response_format

    Returns:
        Task details, or an error message if no task has that ID
    """
    try:
        all_tasks = get_container().repository.get_all()
    except StoreError as e:
        return _format_error(e)

    task = next((t for t in all_tasks if t.id == params.task_id), None)
    if task is None:
        return f"Error: Task {params.task_id} not found."

    if params.response_format == ResponseFormat.JSON:
        return json.dumps(task.to_json_dict(), indent=2)
    if params.response_format == ResponseFormat.CONCISE:
        return _format_task_concise(task)
    return _format_task_markdown(task, all_tasks)


@mcp.tool(
    name="taskplan_query",
    annotations=ToolAnnotations(
        title="Search Tasks",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    ),
)
async def taskplan_query(params: QueryTaskInput) -> str:
    """
    Search tasks by keyword (or look one up by ID) with paging and sorting.

    The keyword is matched literally and case-insensitively against the name,
    description and notes of each task.

    USE THIS WHEN:
    - Finding tasks about a topic
    - Paging through a long plan in a stable order

    DO NOT USE WHEN:
    - Listing everything with a given status → use taskplan_list instead

    Args:
        params: QueryTaskInput containing query, is_id, status, page, page_size,
            sort_by, sort_direction and response_format

    Returns:
        One page of matching tasks with paging information

    Examples:
        - Keyword: params with query="auth"
        - Second page: params with query="auth", page=2
        - By ID: params with query="<uuid>", is_id=True
    """
    try:
        if params.is_id:
            task = get_container().repository.get_by_id(params.query)
            matches = [task] if task is not None else []
            results = SearchResults(
                tasks=matches,
                total=len(matches),
                page=1,
                page_size=params.page_size,
                total_pages=len(matches),
                has_more=False,
            )
        else:
            query = SearchQuery(
                query=params.query,
                status=params.status,
                page=params.page,
                page_size=params.page_size,
                sort_by=params.sort_by,
                sort_direction=params.sort_direction,
            )
            results = search_tasks(get_container().repository.get_all(), query)
    except (StoreError, ValueError) as e:
        return _format_error(e)

    if params.response_format == ResponseFormat.JSON:
        payload = results.model_dump(mode="json", exclude={"tasks"})
        payload["tasks"] = [t.to_json_dict() for t in results.tasks]
        return json.dumps(payload, indent=2)

    if params.response_format == ResponseFormat.CONCISE:
        return _format_tasks_concise(
            results.tasks, f"page {results.page}/{max(results.total_pages, 1)} of {results.total}"
        )

    return _format_search_results_markdown(results, params.query)


@mcp.tool(
    name="taskplan_update",
    annotations=ToolAnnotations(
        title="Update Task",
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    ),
)
async def taskplan_update(params: UpdateTaskInput) -> str:
    """
    Update fields of an existing task.

    Only the fields you send are changed. Sending null clears an optional field
    (notes, summary, agent, implementation_guide, verification_criteria) or
    empties a list (dependencies, related_files). Setting status to completed
    records the completion time.

    USE THIS WHEN:
    - Renaming, re-describing or re-prioritizing a task
    - Replacing a task's dependencies or related files

    DO NOT USE WHEN:
    - Starting work on a task → use taskplan_execute instead
    - Finishing a task with a summary → use taskplan_verify instead

    Args:
        params: UpdateTaskInput containing task_id and the fields to change

    Returns:
        The updated task, or an error message

    Examples:
        - Block a task: params with task_id="<uuid>", status="blocked"
        - Clear notes: params with task_id="<uuid>", notes=None
    """
    sent = {name: getattr(params, name) for name in params.model_fields_set - {"task_id"}}
    if not sent:
        return "Error: No fields to update. Provide at least one field to change."

    try:
        task = get_container().repository.update(params.task_id, TaskUpdateRequest.from_mapping(sent))
    except (StoreError, ValueError) as e:
        return _format_error(e)

    if task is None:
        return f"Error: Task {params.task_id} not found."
    return f"Task updated ({', '.join(sorted(sent))}).\n\n{_format_task_markdown(task)}"


@mcp.tool(
    name="taskplan_delete",
    annotations=ToolAnnotations(
        title="Delete Task",
        readOnlyHint=False,
        destructiveHint=True,
        idempotentHint=True,
        openWorldHint=False,
    ),
)
async def taskplan_delete(params: DeleteTaskInput) -> str:
    """
    Delete a task permanently.

    Other tasks that depend on it keep the dangling reference.

    Args:
        params: DeleteTaskInput containing task_id

    Returns:
        Confirmation message, or an error message if no task has that ID
    """
    try:
        deleted = get_container().repository.delete(params.task_id)
    except StoreError as e:
        return _format_error(e)

    if not deleted:
        return f"Error: Task {params.task_id} not found."
    return f"Task {params.task_id} deleted."


@mcp.tool(
    name="taskplan_clear_all",
    annotations=ToolAnnotations(
        title="Clear All Tasks",
        readOnlyHint=False,
        destructiveHint=True,
        idempotentHint=True,
        openWorldHint=False,
    ),
)
async def taskplan_clear_all(params: ClearAllTasksInput) -> str:
    """
    Remove every task. Completed tasks are backed up first.

    Requires confirm=true.

    Args:
        params: ClearAllTasksInput containing confirm

    Returns:
        How many tasks were cleared and where the backup was written
    """
    if not params.confirm:
        return "Error: Clearing all tasks requires confirm=true."

    try:
        result = get_container().repository.clear_all()
    except (StoreError, ValueError) as e:
        return _format_error(e)

    message = result.message
    if result.backup_file:
        message += f" Completed tasks backed up to {result.backup_file}."
    return message


@mcp.tool(
    name="taskplan_list_snapshots",
    annotations=ToolAnnotations(
        title="List Snapshots",
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    ),
)
async def taskplan_list_snapshots(params: ListSnapshotsInput) -> str:
    """
    List saved task snapshots, newest first.

    Snapshots are copies of the task document kept in the data directory's
    memory folder. Unreadable snapshot files are skipped.

    Args:
        params: ListSnapshotsInput containing response_format

    Returns:
        Snapshot names with their timestamps and task counts
    """
    try:
        snapshots = get_container().snapshots.list_snapshots()
    except StoreError as e:
        return _format_error(e)

    if params.response_format == ResponseFormat.JSON:
        return json.dumps(
            {
                "total": len(snapshots),
                "snapshots": [
                    {"name": s.name, "timestamp": s.timestamp.isoformat(), "taskCount": s.task_count}
                    for s in snapshots
                ],
            },
            indent=2,
        )

    if not snapshots:
        return "No snapshots found."

    if params.response_format == ResponseFormat.CONCISE:
        lines = [f"{len(snapshots)} snapshot(s)"]
        lines.extend(f"{s.name} ({s.task_count} tasks)" for s in snapshots)
        return "\n".join(lines)

    lines = ["# Snapshots", f"*{len(snapshots)} snapshot(s)*", ""]
    for s in snapshots:
        lines.append(f"- **{s.name}** | {s.timestamp:%Y-%m-%d %H:%M:%S} UTC | {s.task_count} task(s)")
    return "\n".join(lines)
