"""MCP server package initialization"""

from feed_normalizer.server.app import create_mcp_server, register_tools, run_server

__all__ = ["create_mcp_server", "register_tools", "run_server"]
