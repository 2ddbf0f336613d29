"""Pytest configuration and fixtures for taskplan-mcp tests."""

import pytest

from taskplan_mcp.config import Settings
from taskplan_mcp.container import create_container, set_container
from taskplan_mcp.models import TaskCreateRequest
from taskplan_mcp.storage import AtomicDocumentStore, SnapshotStore, TaskRepository


class FakeClock:
    """Deterministic clock returning one millisecond later on every call."""

    def __init__(self, start: str = "2024-01-01T00:00:00"):
        self.prefix = start
        self.calls = 0

    def __call__(self) -> str:
        self.calls += 1
        seconds, millis = divmod(self.calls, 1000)
        return f"{self.prefix[:-2]}{seconds:02d}.{millis:03d}Z"


@pytest.fixture
def sleeps():
    """Delays requested by the store's retry loop."""
    return []


@pytest.fixture
def store(sleeps):
    """Document store whose retries record delays instead of sleeping."""
    return AtomicDocumentStore(sleep_func=sleeps.append)


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / ".mcp-tasks"


@pytest.fixture
def snapshots(data_dir, store):
    return SnapshotStore(data_dir, store)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def repository(data_dir, store, snapshots, clock):
    """Repository backed by a temporary data directory."""
    return TaskRepository(data_dir, store=store, snapshots=snapshots, clock=clock)


@pytest.fixture
def container(data_dir):
    """Install a service container for the tool functions and reset it afterwards."""
    services = create_container(Settings(data_dir=data_dir))
    set_container(services)
    yield services
    set_container(None)


@pytest.fixture
def sample_requests():
    """Three tasks where the later ones depend on the earlier ones by name."""
    return [
        TaskCreateRequest(name="Design schema", description="Draft the database schema"),
        TaskCreateRequest(
            name="Write API",
            description="Implement REST endpoints",
            dependencies=["Design schema"],
            notes="Use the existing auth middleware",
        ),
        TaskCreateRequest(
            name="Write tests",
            description="Cover the API with integration tests",
            dependencies=["Write API"],
        ),
    ]
