"""feed_normalizer - MCP Server with Decorators

This module implements the MCP server using FastMCP with multi-transport support
(STDIO, SSE, and Streamable HTTP) and automatic application of decorators
(exception handling, logging) to every feed tool.
"""

import logging
from typing import Optional

from mcp.server.fastmcp import FastMCP
from mcp.server.transport_security import TransportSecuritySettings

from feed_normalizer.config import ServerConfig, get_config
from feed_normalizer.decorators.exception_handler import exception_handler
from feed_normalizer.decorators.tool_logger import tool_logger
from feed_normalizer.logging_config import setup_logging
from feed_normalizer.tools.feed_tools import feed_tools


logger = logging.getLogger(__name__)

TRANSPORTS = ("stdio", "sse", "streamable-http")


def create_mcp_server(config: Optional[ServerConfig] = None) -> FastMCP:
    """Create and configure the MCP server with decorators.

    Args:
        config: Optional server configuration

    Returns:
        Configured FastMCP server instance
    """
    if config is None:
        config = get_config()

    setup_logging(config)
    logger.info(f"Server config: {config.name} at log level {config.log_level}")

    # DNS rebinding protection is disabled by default for development
    logger.info(f"DNS rebinding protection: {'enabled' if config.dns_rebinding_protection else 'disabled'}")
    if config.dns_rebinding_protection and config.allowed_hosts:
        logger.info(f"Allowed hosts: {config.allowed_hosts}")

    mcp_server = FastMCP(
        config.name or "feed_normalizer",
        transport_security=TransportSecuritySettings(
            enable_dns_rebinding_protection=config.dns_rebinding_protection,
            allowed_hosts=config.allowed_hosts,
        ),
    )

    register_tools(mcp_server, config)

    logger.info("Server initialization complete")
    return mcp_server


def register_tools(mcp_server: FastMCP, config: ServerConfig) -> None:
    """Register all MCP tools with the server using decorators.

    Registers decorated functions directly with MCP to preserve function signatures
    for proper parameter introspection.
    """
    for tool_func in feed_tools:
        # Apply decorator chain: exception_handler → tool_logger
        decorated_func = exception_handler(tool_logger(tool_func, config.__dict__))

        tool_name = tool_func.__name__
        mcp_server.tool(name=tool_name)(decorated_func)

        logger.info(f"Registered feed tool: {tool_name}")

    logger.info(f"Server '{mcp_server.name}' initialized with decorators")


async def run_server(
    mcp_server: FastMCP,
    transport: str = "stdio",
    host: str = "127.0.0.1",
    port: int = 3001,
) -> None:
    """Run the server on the requested transport until it stops."""
    if transport == "stdio":
        logger.info("Starting server with STDIO transport")
        await mcp_server.run_stdio_async()
    elif transport == "sse":
        logger.info(f"Starting server with SSE transport on {host}:{port}")
        mcp_server.settings.host = host
        mcp_server.settings.port = port
        await mcp_server.run_sse_async()
    elif transport == "streamable-http":
        logger.info(f"Starting server with Streamable HTTP transport on {host}:{port}")
        mcp_server.settings.host = host
        mcp_server.settings.port = port
        mcp_server.settings.streamable_http_path = "/mcp"
        await mcp_server.run_streamable_http_async()
    else:
        raise ValueError(f"Unknown transport: {transport}")
