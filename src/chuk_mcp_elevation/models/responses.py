"""
Response models for chuk-mcp-elevation tools.

All tool responses are Pydantic models for type safety and consistent API.
"""

from pydantic import BaseModel, ConfigDict, Field


def format_response(model: BaseModel, output_mode: str = "json") -> str:
    """Format a response model as JSON or human-readable text.

    Args:
        model: Pydantic response model instance
        output_mode: "json" (default) or "text"

    Returns:
        Formatted string
    """
    if output_mode == "text" and hasattr(model, "to_text"):
        return str(model.to_text())
    return str(model.model_dump_json())


class ErrorResponse(BaseModel):
    """Error response model for tool failures."""

    model_config = ConfigDict(extra="forbid")

    error: str = Field(..., description="Error message describing what went wrong")

    def to_text(self) -> str:
        return f"Error: {self.error}"


class ElevationPointInfo(BaseModel):
    """Elevation result for one coordinate."""

    model_config = ConfigDict(extra="forbid")

    longitude: float = Field(..., description="Longitude")
    latitude: float = Field(..., description="Latitude")
    elevation: float | None = Field(None, description="Elevation in metres, null if unavailable")
    error: str | None = Field(None, description="Why elevation is null")

    def to_text(self) -> str:
        where = f"({self.longitude:.6f}, {self.latitude:.6f})"
        if self.elevation is None:
            return f"{where}: no data ({self.error})"
        return f"{where}: {self.elevation:.0f}m"


class QueryMetadata(BaseModel):
    """Aggregate statistics for a query."""

    model_config = ConfigDict(extra="forbid")

    total_points: int = Field(..., description="Points queried", ge=0)
    valid_points: int = Field(..., description="Points with an elevation", ge=0)
    processing_time_ms: int = Field(..., description="Engine processing time", ge=0)
    data_source: str = Field(..., description="Elevation data source label")


class PointElevationResponse(BaseModel):
    """Response model for a single-point elevation query."""

    model_config = ConfigDict(extra="forbid")

    data: list[ElevationPointInfo] = Field(..., description="Exactly one point result")
    metadata: QueryMetadata = Field(..., description="Query statistics")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [self.message]
        lines.extend(p.to_text() for p in self.data)
        lines.append(f"Source: {self.metadata.data_source}")
        return "\n".join(lines)


class BatchElevationResponse(BaseModel):
    """Response model for a bulk batch elevation query."""

    model_config = ConfigDict(extra="forbid")

    data: list[ElevationPointInfo] = Field(..., description="Point results in input order")
    metadata: QueryMetadata = Field(..., description="Query statistics")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        m = self.metadata
        lines = [
            self.message,
            f"Valid: {m.valid_points}/{m.total_points} "
            f"({m.processing_time_ms} ms, {m.data_source})",
            "",
        ]
        for p in self.data:
            lines.append(f"  {p.to_text()}")
        return "\n".join(lines)


class TileBounds(BaseModel):
    """Geographic bounds of a tile."""

    model_config = ConfigDict(extra="forbid")

    west: float
    east: float
    south: float
    north: float


class TileInfo(BaseModel):
    """Description of one indexed raster tile."""

    model_config = ConfigDict(extra="forbid")

    filename: str = Field(..., description="Raster file name")
    bounds: TileBounds = Field(..., description="Geographic bounds")
    pixel_size: list[float] = Field(..., description="[x, y] pixel size in degrees")
    raster_size: list[int] = Field(..., description="[width, height] in pixels")
    nodata: float | None = Field(None, description="No-data sentinel, if any")

    def to_text(self) -> str:
        b = self.bounds
        return (
            f"{self.filename}: W{b.west:g} E{b.east:g} S{b.south:g} N{b.north:g}, "
            f"{self.raster_size[0]}x{self.raster_size[1]} px, "
            f"pixel {self.pixel_size[0]:g}x{self.pixel_size[1]:g}, nodata {self.nodata}"
        )


class TilesResponse(BaseModel):
    """Response model for listing indexed tiles."""

    model_config = ConfigDict(extra="forbid")

    tiles: list[TileInfo] = Field(..., description="Indexed tiles in resolution order")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [self.message, ""]
        for t in self.tiles:
            lines.append(f"  {t.to_text()}")
        return "\n".join(lines)


class ReloadResponse(BaseModel):
    """Response model for reloading the tile index."""

    model_config = ConfigDict(extra="forbid")

    tile_count: int = Field(..., description="Tiles indexed after reload", ge=0)
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        return self.message


class TemplateResponse(BaseModel):
    """Response model for an input template."""

    model_config = ConfigDict(extra="forbid")

    format: str = Field(..., description="Template format (csv or json)")
    content: str = Field(..., description="Template file content")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        return self.content


class StatusResponse(BaseModel):
    """Response model for server status."""

    model_config = ConfigDict(extra="forbid")

    server: str = Field(..., description="Server name")
    version: str = Field(..., description="Server version")
    state: str = Field(..., description="Engine state (initializing or ready)")
    tile_count: int = Field(..., description="Indexed tiles", ge=0)
    data_path: str = Field(..., description="Raster directory")
    batch_chunk_size: int = Field(..., description="Default chunk size", ge=1)
    max_batch_size: int = Field(..., description="Maximum points per batch", ge=1)
    data_source: str = Field(..., description="Elevation data source label")

    def to_text(self) -> str:
        lines = [
            f"{self.server} v{self.version}",
            f"State: {self.state}",
            f"Tiles: {self.tile_count} in {self.data_path}",
            f"Batch: chunk {self.batch_chunk_size}, max {self.max_batch_size}",
            f"Source: {self.data_source}",
        ]
        return "\n".join(lines)


class CapabilitiesResponse(BaseModel):
    """Response model for server capabilities."""

    model_config = ConfigDict(extra="forbid")

    server: str = Field(..., description="Server name")
    version: str = Field(..., description="Server version")
    query_tools: list[str] = Field(..., description="Elevation query tools")
    discovery_tools: list[str] = Field(..., description="Index and status tools")
    batch_formats: list[str] = Field(..., description="Batch output formats")
    max_batch_size: int = Field(..., description="Maximum points per batch", ge=1)
    tile_count: int = Field(..., description="Indexed tiles", ge=0)
    llm_guidance: str = Field(..., description="LLM-friendly usage guidance")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [
            f"{self.server} v{self.version}",
            f"Query tools: {', '.join(self.query_tools)}",
            f"Discovery tools: {', '.join(self.discovery_tools)}",
            f"Batch formats: {', '.join(self.batch_formats)} (max {self.max_batch_size} points)",
            f"Tiles indexed: {self.tile_count}",
            "",
            f"Guidance: {self.llm_guidance}",
        ]
        return "\n".join(lines)
