"""Tests for the atomic document store."""

import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from taskplan_mcp.errors import (
    CorruptDocumentError,
    DocumentNotFoundError,
    InvalidDocumentError,
    StoreIOError,
)
from taskplan_mcp.models import TaskDocument

TASK_ID = "0b1f3c9e-2d4a-4c8b-9e7f-1a2b3c4d5e6f"


def task_json(**overrides):
    task = {
        "id": TASK_ID,
        "name": "Write API",
        "description": "Implement REST endpoints",
        "status": "pending",
        "dependencies": [],
        "createdAt": "2024-01-01T00:00:00.000Z",
        "updatedAt": "2024-01-01T00:00:00.000Z",
        "relatedFiles": [],
    }
    task.update(overrides)
    return task


def leftover_temp_files(directory: Path):
    return [p.name for p in directory.iterdir() if ".tmp." in p.name]


class TestRead:
    """Tests for AtomicDocumentStore.read."""

    def test_read_valid_document(self, store, tmp_path):
        path = tmp_path / "tasks.json"
        path.write_text(json.dumps({"version": "1.0", "tasks": [task_json()]}), encoding="utf-8")

        document = store.read(path, TaskDocument)
        assert document.version == "1.0"
        assert document.tasks[0].id == TASK_ID
        assert document.tasks[0].created_at == "2024-01-01T00:00:00.000Z"

    def test_missing_file_is_not_retried(self, store, sleeps, tmp_path):
        with pytest.raises(DocumentNotFoundError) as exc_info:
            store.read(tmp_path / "missing.json", TaskDocument)
        assert exc_info.value.operation == "read"
        assert sleeps == []

    def test_corrupt_file(self, store, sleeps, tmp_path):
        path = tmp_path / "tasks.json"
        path.write_text('{"version": "1.0", "password": "hunter2"', encoding="utf-8")

        with pytest.raises(CorruptDocumentError) as exc_info:
            store.read(path, TaskDocument)
        assert str(path) in str(exc_info.value)
        assert "hunter2" not in str(exc_info.value)
        assert sleeps == []

    def test_invalid_document(self, store, sleeps, tmp_path):
        path = tmp_path / "tasks.json"
        path.write_text(json.dumps({"version": "1.0", "tasks": [task_json(status="done")]}), encoding="utf-8")

        with pytest.raises(InvalidDocumentError) as exc_info:
            store.read(path, TaskDocument)
        assert any("status" in err for err in exc_info.value.errors)
        assert sleeps == []

    def test_duplicate_ids_are_invalid(self, store, tmp_path):
        path = tmp_path / "tasks.json"
        path.write_text(json.dumps({"version": "1.0", "tasks": [task_json(), task_json()]}), encoding="utf-8")

        with pytest.raises(InvalidDocumentError):
            store.read(path, TaskDocument)

    def test_transient_read_failure_is_retried(self, store, sleeps, tmp_path):
        path = tmp_path / "tasks.json"
        content = json.dumps({"version": "1.0", "tasks": []}).encode("utf-8")

        with patch.object(Path, "read_bytes", side_effect=[OSError("EBUSY"), content]):
            document = store.read(path, TaskDocument)

        assert document.tasks == []
        assert sleeps == pytest.approx([0.1])

    def test_read_or_default(self, store, tmp_path):
        default = TaskDocument.empty()
        assert store.read_or_default(tmp_path / "missing.json", TaskDocument, default) is default


class TestWrite:
    """Tests for AtomicDocumentStore.write."""

    def test_write_then_read(self, store, tmp_path):
        path = tmp_path / "nested" / "tasks.json"
        document = TaskDocument.model_validate({"version": "1.0", "tasks": [task_json(notes="résumé")]})

        store.write(path, document, TaskDocument)

        assert store.read(path, TaskDocument) == document
        assert leftover_temp_files(path.parent) == []

    def test_output_format(self, store, tmp_path):
        path = tmp_path / "tasks.json"
        store.write(path, {"version": "1.0", "tasks": [task_json(notes="résumé")]}, TaskDocument)

        text = path.read_text(encoding="utf-8")
        assert text.startswith('{\n  "version": "1.0"')
        assert '"createdAt"' in text
        assert "résumé" in text

    def test_validation_happens_before_disk_access(self, store, tmp_path):
        path = tmp_path / "sub" / "tasks.json"

        with pytest.raises(InvalidDocumentError) as exc_info:
            store.write(path, {"version": "one", "tasks": []}, TaskDocument)

        assert exc_info.value.operation == "write"
        assert not path.parent.exists()

    def test_invalid_write_keeps_existing_file(self, store, tmp_path):
        path = tmp_path / "tasks.json"
        store.write(path, TaskDocument.empty(), TaskDocument)
        before = path.read_bytes()

        with pytest.raises(InvalidDocumentError):
            store.write(path, {"version": "1.0", "tasks": [task_json(name="")]}, TaskDocument)

        assert path.read_bytes() == before

    def test_failed_rename_leaves_original_untouched(self, store, sleeps, tmp_path):
        path = tmp_path / "tasks.json"
        store.write(path, TaskDocument.empty(), TaskDocument)
        before = path.read_bytes()

        with patch("taskplan_mcp.storage.files.os.replace", side_effect=OSError("disk full")) as mock_replace:
            with pytest.raises(StoreIOError) as exc_info:
                store.write(path, {"version": "1.0", "tasks": [task_json()]}, TaskDocument)

        assert mock_replace.call_count == 5
        assert exc_info.value.attempts == 5
        assert isinstance(exc_info.value.__cause__, OSError)
        assert sleeps == pytest.approx([0.1, 0.2, 0.4, 0.8])
        assert path.read_bytes() == before
        assert leftover_temp_files(tmp_path) == []

    def test_transient_write_failure_recovers(self, store, sleeps, tmp_path):
        path = tmp_path / "tasks.json"
        real_replace = os.replace
        calls = []

        def flaky_replace(src, dst):
            calls.append(src)
            if len(calls) == 1:
                raise PermissionError("locked")
            return real_replace(src, dst)

        with patch("taskplan_mcp.storage.files.os.replace", side_effect=flaky_replace):
            store.write(path, {"version": "1.0", "tasks": [task_json()]}, TaskDocument)

        assert store.read(path, TaskDocument).tasks[0].id == TASK_ID
        assert sleeps == pytest.approx([0.1])
        assert leftover_temp_files(tmp_path) == []


class TestFilePrimitives:
    def test_exists(self, store, tmp_path):
        assert store.exists(tmp_path)
        assert not store.exists(tmp_path / "nope.json")

    def test_list_files_sorted_regular_files_only(self, store, tmp_path):
        (tmp_path / "b.json").write_text("{}")
        (tmp_path / "a.json").write_text("{}")
        (tmp_path / "subdir").mkdir()

        assert store.list_files(tmp_path) == ["a.json", "b.json"]

    def test_list_files_missing_directory(self, store, tmp_path):
        with pytest.raises(DocumentNotFoundError):
            store.list_files(tmp_path / "missing")

    def test_delete_is_idempotent(self, store, tmp_path):
        path = tmp_path / "tasks.json"
        path.write_text("{}")

        store.delete(path)
        store.delete(path)

        assert not path.exists()
