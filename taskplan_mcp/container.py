"""Service container shared by the MCP tools.

The container is created lazily from environment settings on first use.
Tests swap it with :func:`set_container`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from taskplan_mcp.config import Settings, load_settings
from taskplan_mcp.storage.files import AtomicDocumentStore
from taskplan_mcp.storage.repository import TaskRepository
from taskplan_mcp.storage.snapshots import SnapshotStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServiceContainer:
    settings: Settings
    store: AtomicDocumentStore
    repository: TaskRepository
    snapshots: SnapshotStore


def create_container(settings: Settings | None = None, data_dir: str | Path | None = None) -> ServiceContainer:
    """Wire the store, snapshot store and repository for one data directory.

    Args:
        settings: Settings to use (loaded from the environment when omitted)
        data_dir: Overrides ``settings.data_dir``
    """
    settings = settings or load_settings()
    if data_dir is not None:
        settings = Settings(data_dir=Path(data_dir), log_level=settings.log_level)

    store = AtomicDocumentStore()
    snapshots = SnapshotStore(settings.data_dir, store)
    repository = TaskRepository(settings.data_dir, store=store, snapshots=snapshots)
    logger.info("Task data directory: %s", settings.data_dir)
    return ServiceContainer(settings=settings, store=store, repository=repository, snapshots=snapshots)


_container: ServiceContainer | None = None


def get_container() -> ServiceContainer:
    global _container
    if _container is None:
        _container = create_container()
    return _container


def set_container(container: ServiceContainer | None) -> None:
    """Replace the shared container; ``None`` resets it to lazy creation."""
    global _container
    _container = container
