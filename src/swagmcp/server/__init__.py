"""MCP server module for swagmcp."""

from .mcp import MCPServer

__all__ = ["MCPServer"]
