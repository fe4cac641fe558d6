"""MCP server exposing Symfony profiler data over stdio."""

__version__ = "1.0.0"
