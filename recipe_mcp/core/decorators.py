"""Decorators for MCP tool functions."""

import functools
import logging
import time
import uuid
from collections.abc import Awaitable, Callable
from typing import ParamSpec, TypeVar

from fastmcp.server.dependencies import get_access_token

from .logging import client_id_ctx, logger, redact, request_id_ctx

P = ParamSpec("P")
R = TypeVar("R")


def track_request(
    tool_name: str,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Log start, duration and failure of a tool call.

    Each call gets a short request id, and the calling OAuth client (if any)
    is attached in redacted form, so every record logged during the call can
    be traced back to it.
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            access_token = get_access_token()
            client = redact(access_token.client_id) if access_token else None

            request_token = request_id_ctx.set(uuid.uuid4().hex[:8])
            client_token = client_id_ctx.set(client)
            started = time.perf_counter()

            logger.info("%s called", tool_name)
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("%s arguments: %s", tool_name, kwargs)

            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                logger.error(
                    "%s failed after %.2fs: %s",
                    tool_name,
                    time.perf_counter() - started,
                    e,
                )
                logger.debug("%s failure details", tool_name, exc_info=True)
                raise
            else:
                logger.info("%s finished in %.2fs", tool_name, time.perf_counter() - started)
                return result
            finally:
                client_id_ctx.reset(client_token)
                request_id_ctx.reset(request_token)

        return wrapper

    return decorator
