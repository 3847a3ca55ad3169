"""Logging decorator for MCP tools."""

import functools
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional


logger = logging.getLogger(__name__)


def tool_logger(func: Callable[..., Awaitable[Dict[str, Any]]], config: Optional[Dict[str, Any]] = None):
    """Log each tool call with its outcome and duration.

    Args:
        func: Async tool function
        config: Server configuration as a dict (``ServerConfig.__dict__``)
    """
    server_name = (config or {}).get("name", "feed_normalizer")

    @functools.wraps(func)
    async def wrapper(*args, **kwargs) -> Dict[str, Any]:
        # The injected MCP context is noisy and not worth logging
        logged_kwargs = {k: v for k, v in kwargs.items() if k != "ctx"}
        logger.info(f"[{server_name}] {func.__name__} called with {logged_kwargs}")
        started = time.perf_counter()
        try:
            result = await func(*args, **kwargs)
        except Exception:
            elapsed = (time.perf_counter() - started) * 1000
            logger.warning(f"[{server_name}] {func.__name__} raised after {elapsed:.1f}ms")
            raise

        elapsed = (time.perf_counter() - started) * 1000
        success = result.get("success") if isinstance(result, dict) else None
        logger.info(f"[{server_name}] {func.__name__} finished in {elapsed:.1f}ms (success={success})")
        return result

    return wrapper
