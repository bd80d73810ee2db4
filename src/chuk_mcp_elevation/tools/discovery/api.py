"""
Discovery tools — tile listing, index reload, status, capabilities.

These tools read or refresh the local raster index and report server
configuration; they do not sample elevations.
"""

import logging

from ...constants import (
    BATCH_FORMATS,
    DISCOVERY_TOOLS,
    QUERY_TOOLS,
    ServerConfig,
    SuccessMessages,
)
from ...models.responses import (
    CapabilitiesResponse,
    ErrorResponse,
    ReloadResponse,
    StatusResponse,
    TileInfo,
    TilesResponse,
    format_response,
)

logger = logging.getLogger(__name__)


def register_discovery_tools(mcp, engine):
    """Register discovery tools with the MCP server."""

    @mcp.tool()
    async def elevation_list_tiles(output_mode: str = "json") -> str:
        """List the raster tiles currently indexed, in resolution order.

        When tiles overlap, the first one listed that covers a coordinate is
        the one sampled.

        Args:
            output_mode: "json" for structured data, "text" for human-readable summary

        Returns:
            Tile filenames with bounds, pixel size, raster size, and no-data value
        """
        try:
            tiles = [TileInfo(**t) for t in await engine.list_tiles()]
            response = TilesResponse(
                tiles=tiles,
                message=SuccessMessages.TILES_LIST.format(len(tiles)),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"elevation_list_tiles failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def elevation_reload(output_mode: str = "json") -> str:
        """Rescan the raster directory and replace the tile index.

        Queries already running finish against the previous index.

        Args:
            output_mode: "json" for structured data, "text" for human-readable summary

        Returns:
            Number of tiles indexed after the reload
        """
        try:
            count = await engine.reload()
            response = ReloadResponse(
                tile_count=count,
                message=SuccessMessages.RELOAD_COMPLETE.format(count),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"elevation_reload failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def elevation_status(output_mode: str = "json") -> str:
        """Get server status: engine state, tile count, data path, and batch limits.

        Args:
            output_mode: "json" for structured data, "text" for human-readable summary

        Returns:
            Server status information
        """
        try:
            response = StatusResponse(
                server=ServerConfig.NAME,
                version=ServerConfig.VERSION,
                **engine.status(),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"elevation_status failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def elevation_capabilities(output_mode: str = "json") -> str:
        """Get full server capabilities including tools, batch formats, and limits.

        Args:
            output_mode: "json" for structured data, "text" for human-readable summary

        Returns:
            Complete server capabilities
        """
        try:
            await engine.wait_ready()
            response = CapabilitiesResponse(
                server=ServerConfig.NAME,
                version=ServerConfig.VERSION,
                query_tools=QUERY_TOOLS,
                discovery_tools=DISCOVERY_TOOLS,
                batch_formats=BATCH_FORMATS,
                max_batch_size=engine.settings.max_batch_size,
                tile_count=engine.tile_count,
                llm_guidance=(
                    "Use elevation_point for one coordinate. "
                    "Use elevation_batch for up to max_batch_size coordinates "
                    "(format json, csv, or geojson). "
                    "Use elevation_batch_stream for large batches to receive per-chunk progress. "
                    "Use elevation_list_tiles to see which areas have data; points outside "
                    "every tile return a null elevation. "
                    "Call elevation_reload after adding raster files to the data directory."
                ),
                message=f"{ServerConfig.NAME} v{ServerConfig.VERSION} capabilities",
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"elevation_capabilities failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)
