"""
MCP Tools Package.

Each module provides a register_*_tools() function to register tools with FastMCP.
"""

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fastmcp import FastMCP

    from recipe_mcp.database.base import RecipeDatabase

from recipe_mcp.tools.recipes import register_recipe_tools

logger = logging.getLogger(__name__)


def register_tools(mcp: "FastMCP", database: "RecipeDatabase | None") -> None:
    """
    Register all MCP tools with the FastMCP instance.

    Args:
        mcp: FastMCP instance to register tools with
        database: Recipe store shared by the tools
    """
    logger.info("Registering all MCP tools...")
    register_recipe_tools(mcp, database)
    logger.info("All MCP tools registered successfully")


__all__ = [
    "register_recipe_tools",
    "register_tools",
]
