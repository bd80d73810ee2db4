"""
Shared helper for running chuk-mcp-elevation MCP tools directly from Python.

Provides a ToolRunner class that registers all MCP tools against a
QueryEngine, without requiring a full MCP transport layer. Demo scripts use
this to call tools as plain async functions.

Usage:
    from tool_runner import ToolRunner

    async def main():
        runner = ToolRunner(data_path="./data")
        result = await runner.run("elevation_point", longitude=116.0, latitude=34.0)
        print(result)
"""

from __future__ import annotations

import json
from typing import Any

from chuk_mcp_elevation.config import EngineSettings
from chuk_mcp_elevation.core.engine import QueryEngine
from chuk_mcp_elevation.tools.discovery import register_discovery_tools
from chuk_mcp_elevation.tools.query import register_query_tools


class _MiniMCP:
    """Minimal MCP server that captures tools registered via @mcp.tool."""

    def __init__(self) -> None:
        self._tools: dict[str, Any] = {}

    def tool(self) -> Any:
        """Decorator factory matching @mcp.tool() usage."""

        def decorator(fn: Any) -> Any:
            self._tools[fn.__name__] = fn
            return fn

        return decorator

    def get_tool(self, name: str) -> Any:
        return self._tools[name]


class ToolRunner:
    """
    Run chuk-mcp-elevation MCP tools directly from Python.

    All query and discovery tools are registered and callable via
    run(tool_name, **kwargs). Returns parsed JSON by default. Use run_text()
    for human-readable output and run_raw() for CSV, GeoJSON, or NDJSON.
    """

    def __init__(self, data_path: str, **settings: Any) -> None:
        self._mcp = _MiniMCP()
        self.engine = QueryEngine(EngineSettings(data_path=data_path, **settings))
        register_query_tools(self._mcp, self.engine)
        register_discovery_tools(self._mcp, self.engine)

    @property
    def tool_names(self) -> list[str]:
        return list(self._mcp._tools.keys())

    async def run(self, tool_name: str, **kwargs: Any) -> Any:
        """Call a tool by name and return parsed JSON."""
        raw = await self.run_raw(tool_name, **kwargs)
        return json.loads(raw)

    async def run_text(self, tool_name: str, **kwargs: Any) -> str:
        """Call a tool by name with output_mode='text' and return plaintext."""
        fn = self._mcp.get_tool(tool_name)
        return await fn(output_mode="text", **kwargs)

    async def run_raw(self, tool_name: str, **kwargs: Any) -> str:
        """Call a tool by name and return its string output unparsed."""
        fn = self._mcp.get_tool(tool_name)
        return await fn(**kwargs)

    async def close(self) -> None:
        await self.engine.close()
