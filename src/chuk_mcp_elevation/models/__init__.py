"""Response models for chuk-mcp-elevation."""

from .responses import (
    BatchElevationResponse,
    CapabilitiesResponse,
    ElevationPointInfo,
    ErrorResponse,
    PointElevationResponse,
    QueryMetadata,
    ReloadResponse,
    StatusResponse,
    TemplateResponse,
    TileBounds,
    TileInfo,
    TilesResponse,
    format_response,
)

__all__ = [
    "ErrorResponse",
    "ElevationPointInfo",
    "QueryMetadata",
    "PointElevationResponse",
    "BatchElevationResponse",
    "TileBounds",
    "TileInfo",
    "TilesResponse",
    "ReloadResponse",
    "TemplateResponse",
    "StatusResponse",
    "CapabilitiesResponse",
    "format_response",
]
