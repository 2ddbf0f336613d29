"""In-memory task search: text filter, status filter, sort and pagination.

Pure functions over a snapshot of tasks; nothing here performs I/O or mutates
its input.
"""

from __future__ import annotations

import locale
import math
import re
from collections.abc import Callable, Sequence
from typing import Any

from taskplan_mcp.enums import SortDirection, SortField, TaskStatus
from taskplan_mcp.errors import SearchQueryTooLongError
from taskplan_mcp.models.results import SearchQuery, SearchResults
from taskplan_mcp.models.task import TaskItem

MAX_QUERY_LENGTH = 100
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 1000

_SORT_KEYS: dict[SortField, Callable[[TaskItem], Any]] = {
    # Case only breaks ties between otherwise equal names
    SortField.NAME: lambda t: (locale.strxfrm(t.name.casefold()), locale.strxfrm(t.name)),
    # ISO-8601 timestamps are fixed width, so string order is time order
    SortField.CREATED_AT: lambda t: t.created_at,
    SortField.UPDATED_AT: lambda t: t.updated_at,
    SortField.STATUS: lambda t: t.status.value,
}


def filter_by_query(tasks: Sequence[TaskItem], query: str | None) -> list[TaskItem]:
    """Case-insensitive literal match against name, description and notes.

    Raises:
        SearchQueryTooLongError: The trimmed query exceeds MAX_QUERY_LENGTH.
    """
    trimmed = (query or "").strip()
    if not trimmed:
        return list(tasks)
    if len(trimmed) > MAX_QUERY_LENGTH:
        raise SearchQueryTooLongError(len(trimmed), MAX_QUERY_LENGTH)

    pattern = re.compile(re.escape(trimmed), re.IGNORECASE)
    return [t for t in tasks if pattern.search(" ".join((t.name, t.description, t.notes or "")))]


def filter_by_status(tasks: Sequence[TaskItem], status: TaskStatus | None) -> list[TaskItem]:
    if status is None:
        return list(tasks)
    return [t for t in tasks if t.status == status]


def sort_tasks(tasks: Sequence[TaskItem], sort_by: SortField, direction: SortDirection) -> list[TaskItem]:
    """Return a new, stably sorted list."""
    return sorted(tasks, key=_SORT_KEYS[sort_by], reverse=direction == SortDirection.DESC)


def normalize_page_size(page_size: float | None) -> int:
    """Default to 10, floor, and clamp to [1, MAX_PAGE_SIZE]."""
    if page_size is None:
        return DEFAULT_PAGE_SIZE
    return min(MAX_PAGE_SIZE, max(1, math.floor(page_size)))


def paginate(tasks: Sequence[TaskItem], page: int, page_size: int) -> list[TaskItem]:
    start = (page - 1) * page_size
    return list(tasks[start : start + page_size])


def search_tasks(tasks: Sequence[TaskItem], query: SearchQuery | None = None) -> SearchResults:
    """Filter, sort and paginate a task snapshot.

    Args:
        tasks: All tasks, typically from ``TaskRepository.get_all()``
        query: Search parameters; defaults list everything newest first

    Returns:
        SearchResults for the requested page. Pages past the end are empty.

    Raises:
        SearchQueryTooLongError: The text query is longer than MAX_QUERY_LENGTH.
    """
    query = query or SearchQuery()

    matched = filter_by_query(tasks, query.query)
    matched = filter_by_status(matched, query.status)
    ordered = sort_tasks(matched, query.sort_by, query.sort_direction)

    page = max(1, query.page)
    page_size = normalize_page_size(query.page_size)
    total = len(ordered)

    return SearchResults(
        tasks=paginate(ordered, page, page_size),
        total=total,
        page=page,
        page_size=page_size,
        total_pages=math.ceil(total / page_size),
        has_more=page * page_size < total,
    )
