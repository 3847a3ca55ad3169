"""Exception handling decorator for MCP tools.

Tools report expected failures themselves through ``{"success": False}``
results. Anything that still escapes a tool is logged here and turned into
the same result shape so a client always gets a structured answer.
"""

import functools
import logging
from typing import Any, Awaitable, Callable, Dict


logger = logging.getLogger(__name__)


def exception_handler(func: Callable[..., Awaitable[Dict[str, Any]]]):
    """Wrap an async tool so unhandled exceptions become error results."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs) -> Dict[str, Any]:
        try:
            return await func(*args, **kwargs)
        except Exception as e:
            logger.error(f"Tool {func.__name__} failed: {e}", exc_info=True)
            return {
                "success": False,
                "error": str(e),
                "error_type": type(e).__name__,
            }

    return wrapper
