"""Tests for the in-memory search engine."""

import math
import uuid

import pytest

from taskplan_mcp.enums import SortDirection, SortField, TaskStatus
from taskplan_mcp.errors import SearchQueryTooLongError
from taskplan_mcp.models import SearchQuery, TaskItem
from taskplan_mcp.search import MAX_PAGE_SIZE, normalize_page_size, search_tasks, sort_tasks


def make_task(name, minute, description="", notes=None, status=TaskStatus.PENDING):
    timestamp = f"2024-01-01T00:{minute:02d}:00.000Z"
    return TaskItem(
        id=str(uuid.uuid4()),
        name=name,
        description=description,
        notes=notes,
        status=status,
        created_at=timestamp,
        updated_at=timestamp,
    )


@pytest.fixture
def four_tasks():
    return [
        make_task("Write API", 1, "REST endpoints"),
        make_task("Design schema", 2, "Tables for the api layer"),
        make_task("Write docs", 3, "User guide", notes="Link the API reference", status=TaskStatus.COMPLETED),
        make_task("Deploy", 4, "Ship it"),
    ]


class TestTextFilter:
    """Tests for keyword matching."""

    def test_query_matches_case_insensitively_newest_first(self, four_tasks):
        results = search_tasks(four_tasks, SearchQuery(query="API"))

        assert [t.name for t in results.tasks] == ["Write docs", "Design schema", "Write API"]
        assert results.total == 3

    def test_query_is_trimmed(self, four_tasks):
        assert search_tasks(four_tasks, SearchQuery(query="  deploy  ")).total == 1

    def test_blank_query_matches_everything(self, four_tasks):
        assert search_tasks(four_tasks, SearchQuery(query="   ")).total == 4

    def test_regex_metacharacters_are_literal(self):
        tasks = [make_task("a.b* literal", 1), make_task("aXbbb", 2)]

        results = search_tasks(tasks, SearchQuery(query="a.b*"))

        assert [t.name for t in results.tasks] == ["a.b* literal"]

    def test_query_too_long(self, four_tasks):
        with pytest.raises(SearchQueryTooLongError) as exc_info:
            search_tasks(four_tasks, SearchQuery(query="x" * 101))
        assert exc_info.value.max_length == 100

    def test_query_at_limit_is_accepted(self, four_tasks):
        assert search_tasks(four_tasks, SearchQuery(query="x" * 100)).total == 0


class TestStatusFilterAndSort:
    def test_status_filter(self, four_tasks):
        results = search_tasks(four_tasks, SearchQuery(status=TaskStatus.COMPLETED))
        assert [t.name for t in results.tasks] == ["Write docs"]

    def test_sort_by_name_ascending(self, four_tasks):
        query = SearchQuery(sort_by=SortField.NAME, sort_direction=SortDirection.ASC)
        names = [t.name for t in search_tasks(four_tasks, query).tasks]
        assert names == ["Deploy", "Design schema", "Write API", "Write docs"]

    def test_sort_by_name_ignores_case(self):
        tasks = [make_task("banana", 1), make_task("Cherry", 2), make_task("apple", 3)]
        query = SearchQuery(sort_by=SortField.NAME, sort_direction=SortDirection.ASC)

        names = [t.name for t in search_tasks(tasks, query).tasks]

        assert names == ["apple", "banana", "Cherry"]

    def test_sort_by_name_case_breaks_ties(self):
        tasks = [make_task("deploy", 1), make_task("Deploy", 2)]
        query = SearchQuery(sort_by=SortField.NAME, sort_direction=SortDirection.ASC)

        assert [t.name for t in search_tasks(tasks, query).tasks] == ["Deploy", "deploy"]

    def test_sort_by_created_ascending(self, four_tasks):
        query = SearchQuery(sort_by=SortField.CREATED_AT, sort_direction=SortDirection.ASC)
        assert search_tasks(four_tasks, query).tasks == four_tasks

    def test_sort_does_not_mutate_input(self, four_tasks):
        original = list(four_tasks)
        sort_tasks(four_tasks, SortField.NAME, SortDirection.DESC)
        assert four_tasks == original

    def test_sort_is_stable_for_equal_keys(self):
        tasks = [make_task("first", 1), make_task("second", 1), make_task("third", 1)]
        ordered = sort_tasks(tasks, SortField.STATUS, SortDirection.ASC)
        assert ordered == tasks


class TestPagination:
    """Tests for paging."""

    @pytest.mark.parametrize("count,page_size", [(0, 10), (1, 1), (7, 3), (10, 5), (25, 10)])
    def test_pages_cover_every_task_once(self, count, page_size):
        tasks = [make_task(f"task {i}", i) for i in range(count)]
        pages = max(1, math.ceil(count / page_size))

        seen = []
        for page in range(1, pages + 1):
            results = search_tasks(tasks, SearchQuery(page=page, page_size=page_size))
            seen.extend(t.id for t in results.tasks)
            assert results.has_more == (page < math.ceil(count / page_size))

        assert sorted(seen) == sorted(t.id for t in tasks)
        assert len(seen) == count

    def test_page_beyond_end_is_empty(self):
        tasks = [make_task(f"task {i}", i) for i in range(4)]

        results = search_tasks(tasks, SearchQuery(page=5, page_size=2))

        assert results.tasks == []
        assert results.has_more is False
        assert results.total == 4
        assert results.total_pages == 2

    @pytest.mark.parametrize("page", [0, -3])
    def test_page_below_one_is_first_page(self, page):
        tasks = [make_task(f"task {i}", i) for i in range(4)]
        query = SearchQuery(page=page, page_size=2, sort_direction=SortDirection.ASC)

        results = search_tasks(tasks, query)

        assert results.page == 1
        assert results.tasks == tasks[:2]
        assert results.has_more is True

    def test_defaults(self, four_tasks):
        results = search_tasks(four_tasks)
        assert results.page == 1
        assert results.page_size == 10
        assert results.total_pages == 1
        assert results.has_more is False

    def test_empty_result(self):
        results = search_tasks([])
        assert results.total == 0
        assert results.total_pages == 0
        assert results.has_more is False

    @pytest.mark.parametrize(
        "requested,expected",
        [(None, 10), (0, 1), (-5, 1), (2.9, 2), (5000, MAX_PAGE_SIZE)],
    )
    def test_page_size_normalization(self, requested, expected):
        assert normalize_page_size(requested) == expected
