"""FastMCP server initialization for Taskplan MCP."""

from mcp.server.fastmcp import FastMCP

from taskplan_mcp.config import load_settings
from taskplan_mcp.logging_setup import setup_logging

# Initialize the MCP server
mcp = FastMCP("taskplan_mcp")


def run() -> None:
    """Run the MCP server."""
    setup_logging(load_settings().log_level)
    mcp.run()
