"""Utility helpers for the Recipe Search MCP server."""
