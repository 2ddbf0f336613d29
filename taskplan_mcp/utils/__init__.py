"""Utility functions for Taskplan MCP."""

from taskplan_mcp.utils.formatters import (
    _format_error,
    _format_search_results_markdown,
    _format_split_result_markdown,
    _format_task_concise,
    _format_task_markdown,
    _format_tasks_concise,
    _format_tasks_markdown,
)

__all__ = [
    "_format_task_concise",
    "_format_tasks_concise",
    "_format_task_markdown",
    "_format_tasks_markdown",
    "_format_search_results_markdown",
    "_format_split_result_markdown",
    "_format_error",
]
