"""Elevation raster query engine."""

from .engine import QueryEngine
from .results import (
    AggregateStats,
    BatchProgress,
    ChunkEvent,
    CompleteEvent,
    Coordinate,
    ElevationPoint,
    ErrorEvent,
)
from .tile_index import RasterTile, TileIndex

__all__ = [
    "QueryEngine",
    "TileIndex",
    "RasterTile",
    "Coordinate",
    "ElevationPoint",
    "BatchProgress",
    "AggregateStats",
    "ChunkEvent",
    "CompleteEvent",
    "ErrorEvent",
]
