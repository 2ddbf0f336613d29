"""MCP tool definitions for Taskplan."""

# Import all tools to register them with the MCP server
from taskplan_mcp.tools.core import (
    taskplan_clear_all,
    taskplan_create,
    taskplan_delete,
    taskplan_get,
    taskplan_list,
    taskplan_list_snapshots,
    taskplan_query,
    taskplan_update,
)
from taskplan_mcp.tools.workflow import (
    taskplan_execute,
    taskplan_split,
    taskplan_verify,
)

__all__ = [
    # Core tools
    "taskplan_create",
    "taskplan_list",
    "taskplan_get",
    "taskplan_query",
    "taskplan_update",
    "taskplan_delete",
    "taskplan_clear_all",
    "taskplan_list_snapshots",
    # Workflow tools
    "taskplan_split",
    "taskplan_execute",
    "taskplan_verify",
]
