"""Minimal MCP server exposing echo, add and timestamp tools over stdio or WebSocket."""

__version__ = "1.0.0"

SERVER_NAME = "mcp-simple-server"
SERVER_DESCRIPTION = "MCP server with echo, add, and timestamp tools"
