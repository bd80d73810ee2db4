"""
Pixel sampling — turns a covered coordinate into an elevation value.

Nearest-cell only: exactly one cell is read per query, no interpolation.
Every failure is reported as a no-data result with a reason; nothing raised
by the raster source escapes sample().
"""

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..constants import ErrorMessages
from .results import Coordinate

if TYPE_CHECKING:
    from .tile_index import RasterTile

logger = logging.getLogger(__name__)


@dataclass
class SampleResult:
    """Outcome of sampling one cell."""

    value: float | None
    reason: str | None = None


def pixel_coordinates(tile: "RasterTile", coord: Coordinate) -> tuple[int, int] | None:
    """
    Column/row of the cell containing a coordinate.

    Returns None when the tile's pixel size is not strictly positive.
    """
    if not tile.samplable:
        return None
    col = math.floor((coord.longitude - tile.bounds.west) / tile.pixel_size_x)
    row = math.floor((tile.bounds.north - coord.latitude) / tile.pixel_size_y)
    return col, row


def in_raster(tile: "RasterTile", col: int, row: int) -> bool:
    return 0 <= col < tile.width and 0 <= row < tile.height


def round_elevation(value: float) -> float:
    """Round half up to whole metres."""
    return float(math.floor(value + 0.5))


def sample(tile: "RasterTile", coord: Coordinate) -> SampleResult:
    """
    Sample the elevation of the cell under ``coord``.

    Args:
        tile: Tile known to cover the coordinate
        coord: Query coordinate

    Returns:
        SampleResult with a rounded value, or value=None and a reason
    """
    pixel = pixel_coordinates(tile, coord)
    if pixel is None:
        return SampleResult(None, ErrorMessages.UNSAMPLABLE_TILE.format(tile.filename))

    col, row = pixel
    if not in_raster(tile, col, row):
        return SampleResult(None, ErrorMessages.OUT_OF_RASTER)

    try:
        value = float(tile.handle.read_cell(col, row))
    except Exception as e:
        logger.warning(f"Read failed for {tile.filename} at col={col} row={row}: {e}")
        return SampleResult(None, ErrorMessages.READ_FAILED.format(e))

    if not math.isfinite(value):
        return SampleResult(None, ErrorMessages.NODATA_CELL)
    if tile.nodata is not None and value == tile.nodata:
        return SampleResult(None, ErrorMessages.NODATA_CELL)

    return SampleResult(round_elevation(value))
