"""Tests for the MCP tool functions."""

import json
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from taskplan_mcp import (
    ClearAllTasksInput,
    CreateTaskInput,
    DeleteTaskInput,
    ExecuteTaskInput,
    GetTaskInput,
    ListSnapshotsInput,
    ListTasksInput,
    QueryTaskInput,
    ResponseFormat,
    SortDirection,
    SortField,
    SplitTaskItem,
    SplitTasksInput,
    StatusFilter,
    TaskStatus,
    UpdateMode,
    UpdateTaskInput,
    VerifyTaskInput,
    taskplan_clear_all,
    taskplan_create,
    taskplan_delete,
    taskplan_execute,
    taskplan_get,
    taskplan_list,
    taskplan_list_snapshots,
    taskplan_query,
    taskplan_split,
    taskplan_update,
    taskplan_verify,
)
from taskplan_mcp import (
    _format_task_concise as format_task_concise,
)
from taskplan_mcp import (
    _format_task_markdown as format_task_markdown,
)
from taskplan_mcp.models import TaskCreateRequest, TaskDocument

MISSING_ID = "0b1f3c9e-2d4a-4c8b-9e7f-1a2b3c4d5e6f"


@pytest.fixture
def planned(container, sample_requests):
    """Sample tasks stored through the container's repository."""
    return [container.repository.create(request) for request in sample_requests]


class TestInputModels:
    """Tests for Pydantic input models."""

    def test_list_tasks_input_defaults(self):
        input_model = ListTasksInput()
        assert input_model.status == StatusFilter.ALL
        assert input_model.response_format == ResponseFormat.MARKDOWN

    def test_create_task_input_strips_whitespace(self):
        input_model = CreateTaskInput(name="  Write API  ", description=" REST ")
        assert input_model.name == "Write API"
        assert input_model.description == "REST"

    def test_create_task_input_limits(self):
        with pytest.raises(ValidationError):
            CreateTaskInput(name="", description="x")
        with pytest.raises(ValidationError):
            CreateTaskInput(name="x" * 501, description="x")
        with pytest.raises(ValidationError):
            CreateTaskInput(name="x", description="x", dependencies=["y" * 501])

    def test_get_task_input_requires_uuid(self):
        with pytest.raises(ValidationError):
            GetTaskInput(task_id="42")

    def test_query_page_size_bounds(self):
        assert QueryTaskInput(query="x", page_size=100).page_size == 100
        with pytest.raises(ValidationError):
            QueryTaskInput(query="x", page_size=101)
        with pytest.raises(ValidationError):
            QueryTaskInput(query="x", page=0)

    def test_verify_score_bounds(self):
        with pytest.raises(ValidationError):
            VerifyTaskInput(task_id=MISSING_ID, score=101, summary="done")

    def test_split_requires_tasks(self):
        with pytest.raises(ValidationError):
            SplitTasksInput(update_mode=UpdateMode.APPEND, tasks=[])


class TestFormatters:
    def test_concise(self, planned):
        line = format_task_concise(planned[1])
        assert line.startswith(f"[{planned[1].id[:8]}] Write API")
        assert "deps:1" in line

    def test_markdown_resolves_dependency_names(self, planned):
        result = format_task_markdown(planned[1], planned)
        assert "Design schema" in result
        assert "Use the existing auth middleware" in result

    def test_markdown_marks_missing_dependencies(self, planned):
        result = format_task_markdown(planned[1], [planned[1]])
        assert "(missing)" in result


class TestTaskplanCreate:
    """Tests for the taskplan_create tool."""

    @pytest.mark.asyncio
    async def test_create_markdown(self, container):
        result = await taskplan_create(CreateTaskInput(name="Write API", description="REST endpoints"))

        assert "Task created" in result
        assert "Write API" in result
        assert len(container.repository.get_all()) == 1

    @pytest.mark.asyncio
    async def test_create_json(self, container):
        params = CreateTaskInput(name="Write API", description="REST", response_format=ResponseFormat.JSON)
        data = json.loads(await taskplan_create(params))

        assert data["status"] == "pending"
        assert data["createdAt"] == data["updatedAt"]

    @pytest.mark.asyncio
    async def test_create_store_failure(self, container):
        with patch("taskplan_mcp.storage.files.os.replace", side_effect=OSError("disk full")):
            with patch.object(container.store, "_sleep", lambda delay: None):
                result = await taskplan_create(CreateTaskInput(name="Write API", description="REST"))

        assert result.startswith("Error:")
        assert container.repository.get_all() == []


class TestTaskplanList:
    """Tests for the taskplan_list tool."""

    @pytest.mark.asyncio
    async def test_list_markdown(self, planned):
        result = await taskplan_list(ListTasksInput())
        assert "3 task(s)" in result
        assert "Write tests" in result

    @pytest.mark.asyncio
    async def test_list_status_filter(self, planned):
        await taskplan_verify(VerifyTaskInput(task_id=planned[0].id, score=80, summary="Done"))

        params = ListTasksInput(status=StatusFilter.COMPLETED, response_format=ResponseFormat.JSON)
        data = json.loads(await taskplan_list(params))

        assert data["total"] == 1
        assert data["tasks"][0]["id"] == planned[0].id

    @pytest.mark.asyncio
    async def test_list_concise(self, planned):
        result = await taskplan_list(ListTasksInput(response_format=ResponseFormat.CONCISE))
        assert result.startswith("3 task(s)")

    @pytest.mark.asyncio
    async def test_list_corrupt_document(self, container):
        container.settings.data_dir.mkdir(parents=True)
        container.settings.tasks_file.write_text("{", encoding="utf-8")

        result = await taskplan_list(ListTasksInput())
        assert result.startswith("Error:")


class TestTaskplanGetAndQuery:
    @pytest.mark.asyncio
    async def test_get(self, planned):
        result = await taskplan_get(GetTaskInput(task_id=planned[2].id))
        assert "Write tests" in result
        assert "Write API" in result

    @pytest.mark.asyncio
    async def test_get_missing(self, planned):
        result = await taskplan_get(GetTaskInput(task_id=MISSING_ID))
        assert "not found" in result

    @pytest.mark.asyncio
    async def test_query_json(self, planned):
        params = QueryTaskInput(
            query="write",
            page_size=1,
            sort_by=SortField.NAME,
            sort_direction=SortDirection.ASC,
            response_format=ResponseFormat.JSON,
        )
        data = json.loads(await taskplan_query(params))

        assert data["total"] == 2
        assert data["total_pages"] == 2
        assert data["has_more"] is True
        assert data["tasks"][0]["name"] == "Write API"

    @pytest.mark.asyncio
    async def test_query_by_id(self, planned):
        params = QueryTaskInput(query=planned[0].id, is_id=True, response_format=ResponseFormat.JSON)
        data = json.loads(await taskplan_query(params))
        assert [t["id"] for t in data["tasks"]] == [planned[0].id]

    @pytest.mark.asyncio
    async def test_query_too_long(self, planned):
        result = await taskplan_query(QueryTaskInput(query="x" * 150))
        assert result.startswith("Error:")
        assert "too long" in result

    @pytest.mark.asyncio
    async def test_query_page_beyond_end(self, planned):
        result = await taskplan_query(QueryTaskInput(query="write", page=9))
        assert "No tasks on page 9" in result


class TestTaskplanUpdate:
    """Tests for the taskplan_update tool."""

    @pytest.mark.asyncio
    async def test_update_only_sent_fields(self, container, planned):
        task = planned[1]
        result = await taskplan_update(UpdateTaskInput(task_id=task.id, status=TaskStatus.BLOCKED))

        assert "Task updated (status)" in result
        stored = container.repository.get_by_id(task.id)
        assert stored.status == TaskStatus.BLOCKED
        assert stored.notes == task.notes
        assert len(stored.dependencies) == 1

    @pytest.mark.asyncio
    async def test_update_null_clears(self, container, planned):
        task = planned[1]
        await taskplan_update(UpdateTaskInput(task_id=task.id, notes=None, dependencies=None))

        stored = container.repository.get_by_id(task.id)
        assert stored.notes is None
        assert stored.dependencies == []

    @pytest.mark.asyncio
    async def test_update_nothing(self, planned):
        result = await taskplan_update(UpdateTaskInput(task_id=planned[0].id))
        assert result.startswith("Error: No fields to update")

    @pytest.mark.asyncio
    async def test_update_missing(self, container):
        result = await taskplan_update(UpdateTaskInput(task_id=MISSING_ID, name="x"))
        assert "not found" in result


class TestTaskplanDeleteAndClear:
    @pytest.mark.asyncio
    async def test_delete(self, container, planned):
        result = await taskplan_delete(DeleteTaskInput(task_id=planned[0].id))
        assert "deleted" in result
        assert len(container.repository.get_all()) == 2

    @pytest.mark.asyncio
    async def test_delete_missing(self, container):
        result = await taskplan_delete(DeleteTaskInput(task_id=MISSING_ID))
        assert "not found" in result

    @pytest.mark.asyncio
    async def test_clear_requires_confirm(self, container, planned):
        result = await taskplan_clear_all(ClearAllTasksInput())
        assert result.startswith("Error:")
        assert len(container.repository.get_all()) == 3

    @pytest.mark.asyncio
    async def test_clear_with_backup(self, container, planned):
        await taskplan_verify(VerifyTaskInput(task_id=planned[0].id, score=90, summary="Schema reviewed"))

        result = await taskplan_clear_all(ClearAllTasksInput(confirm=True))

        assert "Cleared 3 task(s)." in result
        assert "backed up" in result
        assert container.repository.get_all() == []


class TestWorkflowTools:
    """Tests for split, execute and verify."""

    @pytest.mark.asyncio
    async def test_split(self, container):
        params = SplitTasksInput(
            update_mode=UpdateMode.APPEND,
            tasks=[
                SplitTaskItem(name="Design schema", description="Tables"),
                SplitTaskItem(name="Write API", description="Endpoints", dependencies=["Design schema"]),
            ],
            global_analysis_result="Small CRUD service",
            response_format=ResponseFormat.JSON,
        )
        data = json.loads(await taskplan_split(params))

        assert [t["name"] for t in data["created"]] == ["Design schema", "Write API"]
        assert data["created"][1]["dependencies"] == [{"taskId": data["created"][0]["id"]}]
        assert data["created"][0]["analysisResult"] == "Small CRUD service"

    @pytest.mark.asyncio
    async def test_execute_refuses_incomplete_dependencies(self, container, planned):
        result = await taskplan_execute(ExecuteTaskInput(task_id=planned[1].id))

        assert "incomplete dependencies" in result
        assert "Design schema (pending)" in result
        assert container.repository.get_by_id(planned[1].id).status == TaskStatus.PENDING

    @pytest.mark.asyncio
    async def test_execute_then_verify(self, container, planned):
        started = await taskplan_execute(ExecuteTaskInput(task_id=planned[0].id))
        assert "Task started" in started
        assert container.repository.get_by_id(planned[0].id).status == TaskStatus.IN_PROGRESS

        verified = await taskplan_verify(VerifyTaskInput(task_id=planned[0].id, score=95, summary="Done"))
        assert "score 95/100" in verified
        task = container.repository.get_by_id(planned[0].id)
        assert task.status == TaskStatus.COMPLETED
        assert task.summary == "Done"
        assert task.completed_at is not None

        # The dependent task can start now
        result = await taskplan_execute(ExecuteTaskInput(task_id=planned[1].id))
        assert "Task started" in result

    @pytest.mark.asyncio
    async def test_execute_ignores_deleted_dependencies(self, container, planned):
        container.repository.delete(planned[0].id)
        result = await taskplan_execute(ExecuteTaskInput(task_id=planned[1].id))
        assert "Task started" in result

    @pytest.mark.asyncio
    async def test_verify_missing(self, container):
        result = await taskplan_verify(VerifyTaskInput(task_id=MISSING_ID, score=50, summary="x"))
        assert "not found" in result

    @pytest.mark.asyncio
    async def test_execute_missing(self, container):
        container.repository.create(TaskCreateRequest(name="Other", description="x"))
        result = await taskplan_execute(ExecuteTaskInput(task_id=MISSING_ID))
        assert "not found" in result


class TestTaskplanListSnapshots:
    """Tests for the taskplan_list_snapshots tool."""

    @pytest.mark.asyncio
    async def test_no_snapshots(self, container):
        result = await taskplan_list_snapshots(ListSnapshotsInput())
        assert result == "No snapshots found."

    @pytest.mark.asyncio
    async def test_lists_saved_snapshots(self, container, planned):
        document = TaskDocument(tasks=container.repository.get_all())
        path = container.snapshots.save_snapshot("before refactor", document)

        data = json.loads(await taskplan_list_snapshots(ListSnapshotsInput(response_format=ResponseFormat.JSON)))

        assert data["total"] == 1
        assert data["snapshots"][0]["name"] == path.stem
        assert data["snapshots"][0]["taskCount"] == 3

        markdown = await taskplan_list_snapshots(ListSnapshotsInput())
        assert path.stem in markdown
        assert "3 task(s)" in markdown
