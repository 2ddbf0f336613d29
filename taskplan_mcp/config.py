"""Settings loaded from environment variables.

Workspace root precedence:
1. ``TASKPLAN_WORKSPACE_ROOT``
2. ``MCP_WORKSPACE_ROOT``
3. Current working directory, unless it is a protected system directory
4. User home directory
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path, PurePosixPath, PureWindowsPath

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR_NAME = ".mcp-tasks"
DEFAULT_LOG_LEVEL = "INFO"
TASKS_FILE_NAME = "tasks.json"

PROTECTED_DIRS = (
    "/etc",
    "/usr",
    "/bin",
    "/sbin",
    "/sys",
    "/proc",
    "C:\\Windows",
    "C:\\Program Files",
)


class PathTraversalError(ValueError):
    """A caller-supplied path would escape its base directory."""


def _first_env(env: Mapping[str, str], *names: str, default: str | None = None) -> str | None:
    for n in names:
        v = env.get(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _is_protected(path: Path) -> bool:
    lowered = str(path).lower()
    return any(lowered.startswith(d.lower()) for d in PROTECTED_DIRS)


def resolve_workspace_root(env: Mapping[str, str] | None = None, cwd: Path | None = None) -> Path:
    env = os.environ if env is None else env
    configured = _first_env(env, "TASKPLAN_WORKSPACE_ROOT", "MCP_WORKSPACE_ROOT")
    if configured:
        return Path(configured).expanduser().resolve()

    cwd = Path.cwd() if cwd is None else cwd
    if not _is_protected(cwd):
        return cwd

    home = _first_env(env, "HOME", "USERPROFILE")
    if home:
        logger.debug("Working directory %s is protected, using home directory", cwd)
        return Path(home)
    return cwd


def resolve_data_dir(env: Mapping[str, str] | None = None, cwd: Path | None = None) -> Path:
    """Data directory from ``DATA_DIR``; relative values are joined to the workspace root."""
    env = os.environ if env is None else env
    data_dir = Path(_first_env(env, "DATA_DIR", default=DEFAULT_DATA_DIR_NAME)).expanduser()
    if data_dir.is_absolute():
        return data_dir
    return resolve_workspace_root(env, cwd) / data_dir


def sanitize_path(user_path: str, base_dir: str | Path) -> Path:
    """Join an untrusted relative path to ``base_dir``.

    Raises:
        PathTraversalError: ``user_path`` is absolute or resolves outside ``base_dir``.

    Examples:
        sanitize_path("tasks.json", "/app/.mcp-tasks") -> /app/.mcp-tasks/tasks.json
        sanitize_path("../../etc/passwd", "/app/.mcp-tasks") -> PathTraversalError
    """
    if "\0" in user_path:
        raise PathTraversalError("Access denied: path contains a null byte")
    if PurePosixPath(user_path).is_absolute() or PureWindowsPath(user_path).is_absolute():
        raise PathTraversalError(f"Access denied: absolute path '{user_path}' is not allowed")

    base = Path(base_dir).resolve()
    resolved = (base / user_path).resolve()
    if resolved != base and base not in resolved.parents:
        raise PathTraversalError(f"Access denied: path '{user_path}' resolves outside allowed directory")
    return resolved


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the server."""

    data_dir: Path
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def tasks_file(self) -> Path:
        return self.data_dir / TASKS_FILE_NAME


def load_settings(env: Mapping[str, str] | None = None, cwd: Path | None = None) -> Settings:
    env = os.environ if env is None else env
    level = (_first_env(env, "LOG_LEVEL", default=DEFAULT_LOG_LEVEL) or DEFAULT_LOG_LEVEL).strip().upper()
    return Settings(data_dir=resolve_data_dir(env, cwd), log_level=level)
