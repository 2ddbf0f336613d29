"""Multi-step task operations built on the repository."""

from taskplan_mcp.services.split import split_tasks

__all__ = ["split_tasks"]
