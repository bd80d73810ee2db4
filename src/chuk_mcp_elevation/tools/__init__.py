"""MCP tool modules for chuk-mcp-elevation."""
