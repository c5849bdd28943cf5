"""Logging setup for the Recipe Search MCP server.

Every module logs through a child of the ``recipe_mcp`` logger. Records carry
the id of the tool call in progress and, when the caller authenticated, a
shortened form of its client id. Credentials are only ever logged through
``redact``.
"""

import logging
import os
import sys
from contextvars import ContextVar

from .constants import TOKEN_LOG_PREFIX_LENGTH

LOGGER_NAME = "recipe_mcp"
LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(request_context)s%(message)s"

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)
client_id_ctx: ContextVar[str | None] = ContextVar("client_id", default=None)


def redact(value: str | None) -> str:
    """Shorten a credential so it can be logged without leaking it."""
    if not value:
        return "<none>"
    return f"{value[:TOKEN_LOG_PREFIX_LENGTH]}..."


class RequestIdFilter(logging.Filter):
    """Prefix records with the current request id and client."""

    def filter(self, record):
        parts = [request_id_ctx.get(), client_id_ctx.get()]
        context = " ".join(part for part in parts if part)
        record.request_context = f"[{context}] " if context else ""
        return True


def _debug_requested() -> bool:
    return os.getenv("MCP_DEBUG", "").lower() in ("true", "1", "yes")


def configure_logging(debug: bool | None = None) -> logging.Logger:
    """
    Attach the stderr handler to the package logger.

    Safe to call more than once; the handler is only added the first time.
    stdout is left alone because the stdio transport speaks JSON-RPC on it.

    Args:
        debug: Force debug level (defaults to the MCP_DEBUG variable)
    """
    package_logger = logging.getLogger(LOGGER_NAME)

    if not any(h.get_name() == LOGGER_NAME for h in package_logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.set_name(LOGGER_NAME)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler.addFilter(RequestIdFilter())
        package_logger.addHandler(handler)

    if debug is None:
        debug = _debug_requested()
    package_logger.setLevel(logging.DEBUG if debug else logging.INFO)
    if debug:
        package_logger.debug("Debug logging enabled")

    return package_logger


logger = configure_logging()
