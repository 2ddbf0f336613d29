"""Formatting utilities for task output."""

from pydantic import ValidationError

from taskplan_mcp.errors import StoreError
from taskplan_mcp.models.results import SearchResults, SplitResult
from taskplan_mcp.models.task import TaskItem

_STATUS_ICON = {
    "pending": "[ ]",
    "in_progress": "[~]",
    "completed": "[x]",
    "blocked": "[!]",
}


def _short_id(task_id: str) -> str:
    return task_id[:8]


def _format_task_concise(task: TaskItem) -> str:
    """
    Format a single task in concise format for token efficiency.

    Output: "[1a2b3c4d] Write API (pending, deps:2)"
    """
    meta = [task.status.value]
    if task.dependencies:
        meta.append(f"deps:{len(task.dependencies)}")
    if task.agent:
        meta.append(f"agent:{task.agent}")
    return f"[{_short_id(task.id)}] {task.name[:60]} ({', '.join(meta)})"


def _format_tasks_concise(tasks: list[TaskItem], title: str | None = None) -> str:
    """
    Format a list of tasks in concise format for token efficiency.

    Output:
    2 task(s) | pending
    [1a2b3c4d] Write API (pending)
    [5e6f7a8b] Write tests (pending, deps:1)
    """
    if not tasks:
        return "0 tasks"

    header = f"{len(tasks)} task(s)"
    if title:
        header = f"{len(tasks)} task(s) | {title}"
    return "\n".join([header] + [_format_task_concise(task) for task in tasks])


def _format_dependency_lines(task: TaskItem, all_tasks: list[TaskItem] | None) -> list[str]:
    by_id = {t.id: t for t in all_tasks or []}
    lines = []
    for dep in task.dependencies:
        dep_task = by_id.get(dep.task_id)
        if dep_task:
            lines.append(f"  - {dep_task.name} (`{_short_id(dep.task_id)}`, {dep_task.status.value})")
        elif all_tasks is None:
            lines.append(f"  - `{dep.task_id}`")
        else:
            lines.append(f"  - `{dep.task_id}` (missing)")
    return lines


def _format_task_markdown(task: TaskItem, all_tasks: list[TaskItem] | None = None) -> str:
    """Format a single task as markdown.

    When ``all_tasks`` is given, dependency ids are shown with their names.
    """
    icon = _STATUS_ICON.get(task.status.value, "")
    lines = [f"### {icon} {task.name}"]

    details = [f"**ID**: `{task.id}`", f"**Status**: {task.status.value}"]
    if task.agent:
        details.append(f"**Agent**: {task.agent}")
    details.append(f"**Updated**: {task.updated_at}")
    if task.completed_at:
        details.append(f"**Completed**: {task.completed_at}")
    lines.append(" | ".join(details))

    if task.description:
        lines.append("")
        lines.append(task.description)

    if task.notes:
        lines.append(f"**Notes:** {task.notes}")

    if task.dependencies:
        lines.append(f"**Dependencies** ({len(task.dependencies)}):")
        lines.extend(_format_dependency_lines(task, all_tasks))

    if task.related_files:
        lines.append("**Related files:**")
        for rf in task.related_files:
            span = ""
            if rf.line_start:
                span = f":{rf.line_start}" + (f"-{rf.line_end}" if rf.line_end else "")
            desc = f" - {rf.description}" if rf.description else ""
            lines.append(f"  - [{rf.type.value}] `{rf.path}{span}`{desc}")

    if task.implementation_guide:
        lines.append(f"**Implementation guide:** {task.implementation_guide}")
    if task.verification_criteria:
        lines.append(f"**Verification criteria:** {task.verification_criteria}")
    if task.summary:
        lines.append(f"**Summary:** {task.summary}")

    return "\n".join(lines)


def _format_tasks_markdown(tasks: list[TaskItem], title: str = "Tasks") -> str:
    """Format a list of tasks as markdown."""
    if not tasks:
        return f"# {title}\n\nNo tasks found."

    lines = [f"# {title}", f"*{len(tasks)} task(s)*", ""]

    for task in tasks:
        lines.append(_format_task_markdown(task))
        lines.append("")

    return "\n".join(lines)


def _format_search_results_markdown(results: SearchResults, query: str) -> str:
    """Format one page of search results as markdown."""
    title = f"Search results for '{query}'"
    if not results.tasks:
        if results.total:
            return f"# {title}\n\nNo tasks on page {results.page} ({results.total} match(es), {results.total_pages} page(s))."
        return f"# {title}\n\nNo tasks found."

    lines = [
        f"# {title}",
        f"*Page {results.page} of {results.total_pages} | {results.total} match(es)*",
        "",
    ]
    for task in results.tasks:
        lines.append(_format_task_markdown(task))
        lines.append("")
    if results.has_more:
        lines.append(f"More results available: request page {results.page + 1}.")
    return "\n".join(lines)


def _format_split_result_markdown(result: SplitResult, mode: str) -> str:
    """Format the outcome of a bulk split as markdown."""
    lines = [f"# Split tasks ({mode})"]
    if result.cleared_count:
        lines.append(f"Cleared {result.cleared_count} existing task(s).")
    lines.append(
        f"*{len(result.created)} created | {len(result.updated)} updated | {len(result.skipped)} skipped*"
    )
    lines.append("")

    affected = result.affected
    for task in affected:
        lines.append(_format_task_markdown(task, affected))
        lines.append("")

    if result.skipped:
        lines.append("**Skipped (already exist):**")
        lines.extend(f"  - {name}" for name in result.skipped)

    return "\n".join(lines)


def _format_error(e: Exception) -> str:
    """Render an exception as a tool error string."""
    if isinstance(e, ValidationError):
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or 'value'}: {err['msg']}" for err in e.errors()
        )
        return f"Error: Invalid task data: {problems}"
    if isinstance(e, StoreError):
        return f"Error: {e} ({e.operation} {e.path.name})"
    return f"Error: {e}"
