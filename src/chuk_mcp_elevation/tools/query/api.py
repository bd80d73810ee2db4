"""
Query tools — single-point, batch, and streamed elevation lookups.

Coordinates are validated here (range, batch size, chunk size) before they
reach the engine, which trusts its inputs.
"""

import csv
import io
import json
import logging
import time
from typing import Any

from ...constants import (
    BATCH_FORMATS,
    CSV_HEADER,
    LAT_MAX,
    LAT_MIN,
    LON_MAX,
    LON_MIN,
    TEMPLATE_COORDINATES,
    TEMPLATE_CSV_HEADER,
    TEMPLATE_FORMATS,
    ErrorMessages,
    SuccessMessages,
)
from ...core.results import Coordinate, ElevationPoint, ErrorEvent, count_valid
from ...models.responses import (
    BatchElevationResponse,
    ElevationPointInfo,
    ErrorResponse,
    PointElevationResponse,
    QueryMetadata,
    TemplateResponse,
    format_response,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_coordinate(longitude: float, latitude: float) -> Coordinate:
    lon = float(longitude)
    lat = float(latitude)
    if not LON_MIN <= lon <= LON_MAX:
        raise ValueError(ErrorMessages.INVALID_LONGITUDE.format(longitude))
    if not LAT_MIN <= lat <= LAT_MAX:
        raise ValueError(ErrorMessages.INVALID_LATITUDE.format(latitude))
    return Coordinate(longitude=lon, latitude=lat)


def parse_coordinates(raw: list[Any], max_batch_size: int) -> list[Coordinate]:
    """
    Validate a batch of coordinates.

    Accepts ``[lon, lat]`` pairs or ``{"longitude": .., "latitude": ..}``
    objects, in any mix.
    """
    if not raw:
        raise ValueError(ErrorMessages.EMPTY_BATCH)
    if len(raw) > max_batch_size:
        raise ValueError(ErrorMessages.BATCH_TOO_LARGE.format(len(raw), max_batch_size))

    coords = []
    for i, item in enumerate(raw):
        try:
            if isinstance(item, dict):
                lon, lat = item["longitude"], item["latitude"]
            else:
                lon, lat = item
            lon, lat = float(lon), float(lat)
        except (KeyError, TypeError, ValueError):
            raise ValueError(ErrorMessages.INVALID_COORDINATE.format(i)) from None
        coords.append(validate_coordinate(lon, lat))
    return coords


def validate_chunk_size(chunk_size: int | None, max_batch_size: int) -> None:
    if chunk_size is None:
        return
    if not 1 <= chunk_size <= max_batch_size:
        raise ValueError(ErrorMessages.INVALID_CHUNK_SIZE.format(max_batch_size, chunk_size))


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def to_point_info(point: ElevationPoint) -> ElevationPointInfo:
    return ElevationPointInfo(
        longitude=point.longitude,
        latitude=point.latitude,
        elevation=point.elevation,
        error=point.error,
    )


def format_csv(points: list[ElevationPoint]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    buf.write(CSV_HEADER + "\n")
    for p in points:
        elevation = "" if p.elevation is None else f"{p.elevation:.0f}"
        writer.writerow([p.longitude, p.latitude, elevation, p.error or ""])
    return buf.getvalue()


def format_geojson(points: list[ElevationPoint]) -> str:
    collection = {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "geometry": {"type": "Point", "coordinates": [p.longitude, p.latitude]},
                "properties": {"elevation": p.elevation, "error": p.error},
            }
            for p in points
        ],
    }
    return json.dumps(collection)


def format_template(fmt: str) -> str:
    if fmt == "json":
        rows = [{"longitude": lon, "latitude": lat} for lon, lat in TEMPLATE_COORDINATES]
        return json.dumps(rows, indent=2)
    lines = [TEMPLATE_CSV_HEADER] + [f"{lon},{lat}" for lon, lat in TEMPLATE_COORDINATES]
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


def register_query_tools(mcp, engine):
    """Register elevation query tools with the MCP server."""

    @mcp.tool()
    async def elevation_point(
        longitude: float,
        latitude: float,
        output_mode: str = "json",
    ) -> str:
        """Get the ground elevation at a single coordinate.

        Uses the nearest raster cell of the first tile (by filename) covering
        the point. Points outside every tile, or on no-data cells, return a
        null elevation with an explanation.

        Args:
            longitude: Longitude (-180 to 180)
            latitude: Latitude (-90 to 90)
            output_mode: "json" or "text"

        Returns:
            Elevation in metres (or null with error) plus query metadata
        """
        try:
            coord = validate_coordinate(longitude, latitude)

            started = time.perf_counter()
            point = await engine.get_elevation(coord)
            stats = engine.aggregate(1, count_valid([point]), started)

            if point.elevation is not None:
                message = SuccessMessages.POINT_ELEVATION.format(point.elevation)
            else:
                message = SuccessMessages.POINT_NO_DATA.format(point.error)

            response = PointElevationResponse(
                data=[to_point_info(point)],
                metadata=QueryMetadata(**vars(stats)),
                message=message,
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"elevation_point failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def elevation_batch(
        coordinates: list[Any],
        format: str = "json",
        chunk_size: int | None = None,
        output_mode: str = "json",
    ) -> str:
        """Get elevations for many coordinates in one call.

        Points are processed in chunks; results keep input order.

        Args:
            coordinates: List of [longitude, latitude] pairs or
                {"longitude": ..., "latitude": ...} objects
            format: "json" (default), "csv", or "geojson"
            chunk_size: Points per processing chunk (default from server config)
            output_mode: "json" or "text" (applies to format="json")

        Returns:
            Per-point elevations with aggregate statistics, or CSV / GeoJSON text
        """
        try:
            if format not in BATCH_FORMATS:
                raise ValueError(
                    ErrorMessages.INVALID_FORMAT.format(format, ", ".join(BATCH_FORMATS))
                )
            max_batch = engine.settings.max_batch_size
            coords = parse_coordinates(coordinates, max_batch)
            validate_chunk_size(chunk_size, max_batch)

            started = time.perf_counter()
            points = await engine.get_batch_elevation(coords, chunk_size=chunk_size)
            valid = count_valid(points)
            stats = engine.aggregate(len(points), valid, started)

            if format == "csv":
                return format_csv(points)
            if format == "geojson":
                return format_geojson(points)

            response = BatchElevationResponse(
                data=[to_point_info(p) for p in points],
                metadata=QueryMetadata(**vars(stats)),
                message=SuccessMessages.BATCH_ELEVATION.format(valid, len(points)),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"elevation_batch failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def elevation_batch_stream(
        coordinates: list[Any],
        chunk_size: int | None = None,
    ) -> str:
        """Get elevations for many coordinates as newline-delimited stream events.

        Each line is a JSON object: one {"type": "chunk", ...} per processed
        chunk with progress, then {"type": "complete", "metadata": ...}. A
        failure mid-stream ends with {"type": "error", ...}.

        Args:
            coordinates: List of [longitude, latitude] pairs or
                {"longitude": ..., "latitude": ...} objects
            chunk_size: Points per chunk (default from server config)

        Returns:
            NDJSON text, one event per line
        """
        try:
            max_batch = engine.settings.max_batch_size
            coords = parse_coordinates(coordinates, max_batch)
            validate_chunk_size(chunk_size, max_batch)
        except Exception as e:
            logger.error(f"elevation_batch_stream failed: {e}")
            return json.dumps(ErrorEvent(error=str(e)).to_dict()) + "\n"

        lines: list[str] = []
        try:
            async for event in engine.stream_batch_elevation(coords, chunk_size=chunk_size):
                lines.append(json.dumps(event.to_dict()))
        except Exception as e:
            logger.error(f"elevation_batch_stream failed: {e}")
            lines.append(json.dumps(ErrorEvent(error=ErrorMessages.STREAM_FAILED).to_dict()))
        return "\n".join(lines) + "\n"

    @mcp.tool()
    async def elevation_template(format: str = "csv", output_mode: str = "json") -> str:
        """Get an input template for batch queries.

        Args:
            format: "csv" (header longitude,latitude) or "json" (list of objects)
            output_mode: "json" wraps the template in a response; "text" returns it raw

        Returns:
            Template with three sample coordinates
        """
        try:
            if format not in TEMPLATE_FORMATS:
                raise ValueError(
                    ErrorMessages.INVALID_FORMAT.format(format, ", ".join(TEMPLATE_FORMATS))
                )
            response = TemplateResponse(
                format=format,
                content=format_template(format),
                message=SuccessMessages.TEMPLATE.format(format, len(TEMPLATE_COORDINATES)),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"elevation_template failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)
