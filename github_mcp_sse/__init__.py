"""MCP server exposing GitHub repository, file and pull request tools over stdio or SSE."""

__version__ = "0.1.0"