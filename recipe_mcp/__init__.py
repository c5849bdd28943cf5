"""
Recipe Search MCP Server - semantic recipe lookup for AI assistants.

This package provides an MCP tool for searching a recipe collection by meaning,
plus a persistent OAuth 2.0 authorization server (dynamic client registration,
authorization code grant with PKCE, refresh token rotation, revocation) for
remote deployments.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
