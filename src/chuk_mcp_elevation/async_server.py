#!/usr/bin/env python3
"""
Async Elevation MCP Server using chuk-mcp-server

Point and batch elevation queries against a local directory of
georeferenced elevation rasters. The tile index is built on the first
query and can be refreshed with the elevation_reload tool.
"""

import logging
import os

from chuk_mcp_server import ChukMCPServer

from .config import EngineSettings
from .constants import EnvVar, ServerConfig
from .core.engine import QueryEngine
from .tools.discovery import register_discovery_tools
from .tools.query import register_query_tools

logging.basicConfig(level=os.environ.get(EnvVar.LOG_LEVEL, "INFO").upper())
logger = logging.getLogger(__name__)

# Create the MCP server instance
mcp = ChukMCPServer(ServerConfig.NAME)

# Create query engine from environment configuration
engine = QueryEngine(EngineSettings.from_env())

# Register all tool modules
register_query_tools(mcp, engine)
register_discovery_tools(mcp, engine)

# Run the server
if __name__ == "__main__":
    logger.info("Starting Elevation MCP Server...")
    logger.info(f"Data path: {engine.settings.data_path}")
    mcp.run(stdio=True)
