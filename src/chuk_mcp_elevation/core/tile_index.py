"""
Tile index — the set of raster tiles on disk and coordinate-to-tile lookup.

The active tile set is immutable. load()/reload() build a replacement off to
the side and swap it in with a single reference assignment, so a reader
holding a snapshot always sees a complete set. Retired sets close their
raster handles once the last reader releases them.
"""

import logging
import os
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..constants import RASTER_EXTENSIONS, ErrorMessages
from . import raster_io
from .results import Coordinate
from .sampler import in_raster, pixel_coordinates

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Bounds:
    """Geographic extent of a tile."""

    west: float
    east: float
    south: float
    north: float

    def contains(self, lon: float, lat: float) -> bool:
        # Inclusive west and north edges, exclusive east and south edges
        return self.west <= lon < self.east and self.south < lat <= self.north


@dataclass(frozen=True)
class RasterTile:
    """One opened raster plus its georeferencing."""

    filename: str
    bounds: Bounds
    pixel_size_x: float
    pixel_size_y: float
    width: int
    height: int
    nodata: float | None
    handle: Any = field(default=None, compare=False, repr=False)

    @property
    def samplable(self) -> bool:
        return self.pixel_size_x > 0 and self.pixel_size_y > 0

    def to_dict(self) -> dict:
        return {
            "filename": self.filename,
            "bounds": {
                "west": self.bounds.west,
                "east": self.bounds.east,
                "south": self.bounds.south,
                "north": self.bounds.north,
            },
            "pixel_size": [self.pixel_size_x, self.pixel_size_y],
            "raster_size": [self.width, self.height],
            "nodata": self.nodata,
        }


# ---------------------------------------------------------------------------
# Per-file load outcomes
# ---------------------------------------------------------------------------


@dataclass
class Loaded:
    tile: RasterTile


@dataclass
class Failed:
    filename: str
    reason: str


LoadOutcome = Loaded | Failed


def is_raster_file(name: str) -> bool:
    return name.lower().endswith(RASTER_EXTENSIONS)


def load_tile(path: Path, opener: Any = raster_io.open_raster) -> LoadOutcome:
    """Open one raster file and describe it. Never raises."""
    try:
        source = opener(str(path))
    except Exception as e:
        return Failed(path.name, str(e))

    try:
        west, east, south, north = source.bounds()
        dimensions = source.dimensions()
        px, py = raster_io.resolve_pixel_size(
            source.pixel_size(), (west, east, south, north), dimensions
        )
        nodata = source.nodata()
    except Exception as e:
        source.close()
        return Failed(path.name, str(e))

    tile = RasterTile(
        filename=path.name,
        bounds=Bounds(west=west, east=east, south=south, north=north),
        pixel_size_x=px,
        pixel_size_y=py,
        width=dimensions[0],
        height=dimensions[1],
        nodata=nodata,
        handle=source,
    )
    return Loaded(tile)


def scan_directory(
    directory: str | Path, opener: Any = raster_io.open_raster
) -> list[LoadOutcome]:
    """Load every recognised raster in ``directory`` (non-recursive)."""
    root = Path(directory)
    names = sorted(name for name in os.listdir(root) if is_raster_file(name))
    return [load_tile(root / name, opener) for name in names]


# ---------------------------------------------------------------------------
# Tile set snapshot
# ---------------------------------------------------------------------------


class TileSet:
    """An immutable, filename-ordered collection of tiles with reader counting."""

    def __init__(self, tiles: list[RasterTile] | None = None) -> None:
        self.tiles: tuple[RasterTile, ...] = tuple(
            sorted(tiles or [], key=lambda t: t.filename)
        )
        self._lock = threading.Lock()
        self._readers = 0
        self._retired = False
        self._closed = False

    def __len__(self) -> int:
        return len(self.tiles)

    def __iter__(self) -> Iterator[RasterTile]:
        return iter(self.tiles)

    @property
    def closed(self) -> bool:
        return self._closed

    def acquire(self) -> "TileSet":
        with self._lock:
            self._readers += 1
        return self

    def release(self) -> None:
        with self._lock:
            self._readers -= 1
            should_close = self._retired and self._readers == 0
        if should_close:
            self._close()

    def retire(self) -> None:
        """Mark as replaced; handles close once no reader holds the set."""
        with self._lock:
            self._retired = True
            should_close = self._readers == 0
        if should_close:
            self._close()

    def _close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        for tile in self.tiles:
            if tile.handle is None:
                continue
            try:
                tile.handle.close()
            except Exception as e:
                logger.warning(f"Failed to close raster {tile.filename}: {e}")

    def lookup(self, coord: Coordinate) -> tuple[RasterTile | None, bool]:
        """
        First tile (in filename order) covering ``coord``.

        Returns (tile, inside_bounds). ``inside_bounds`` is True when some
        tile's bounding box contained the point even if its pixel grid did
        not, which distinguishes an out-of-raster point from a coverage miss.
        """
        inside_bounds = False
        for tile in self.tiles:
            if not tile.bounds.contains(coord.longitude, coord.latitude):
                continue
            inside_bounds = True
            pixel = pixel_coordinates(tile, coord)
            if pixel is None:
                # Unsamplable: matched on bounds alone, sampler reports no data
                return tile, True
            if in_raster(tile, *pixel):
                return tile, True
        return None, inside_bounds


def build_tile_set(directory: str | Path, opener: Any = raster_io.open_raster) -> TileSet:
    """Scan a directory into a new TileSet, skipping files that fail to open."""
    try:
        outcomes = scan_directory(directory, opener)
    except OSError as e:
        logger.error(ErrorMessages.DATA_PATH_UNREADABLE.format(directory, e))
        return TileSet()

    tiles: list[RasterTile] = []
    for outcome in outcomes:
        if isinstance(outcome, Loaded):
            tiles.append(outcome.tile)
        else:
            logger.warning(ErrorMessages.TILE_OPEN_FAILED.format(outcome.filename, outcome.reason))

    failed = len(outcomes) - len(tiles)
    logger.info(f"Indexed {len(tiles)} raster tiles from {directory} ({failed} failed)")
    return TileSet(tiles)


# ---------------------------------------------------------------------------
# Index
# ---------------------------------------------------------------------------


class TileIndex:
    """Owns the active TileSet for a raster directory."""

    def __init__(self, directory: str | Path, opener: Any = raster_io.open_raster) -> None:
        self.directory = Path(directory)
        self._opener = opener
        self._active = TileSet()
        # _write_lock: one load at a time; _swap_lock: swap vs. snapshot acquire
        self._write_lock = threading.Lock()
        self._swap_lock = threading.Lock()

    @property
    def tiles(self) -> tuple[RasterTile, ...]:
        return self._active.tiles

    def __len__(self) -> int:
        return len(self._active)

    def load(self, directory: str | Path | None = None) -> int:
        """
        Build a tile set from ``directory`` and make it active.

        Returns:
            Number of tiles now indexed
        """
        with self._write_lock:
            if directory is not None:
                self.directory = Path(directory)
            new_set = build_tile_set(self.directory, self._opener)
            self._swap(new_set)
            return len(new_set)

    def reload(self) -> int:
        return self.load()

    def _swap(self, new_set: TileSet) -> None:
        with self._swap_lock:
            old_set, self._active = self._active, new_set
        old_set.retire()

    def acquire(self) -> TileSet:
        """
        Register a reader on the active tile set and return it.

        The caller must call release() on the returned set. Releasing the
        last reader of a retired set closes its raster handles, so async
        callers release from a worker thread.
        """
        with self._swap_lock:
            return self._active.acquire()

    @contextmanager
    def snapshot(self) -> Iterator[TileSet]:
        """Hold the current tile set open for the duration of a query."""
        tile_set = self.acquire()
        try:
            yield tile_set
        finally:
            tile_set.release()

    def resolve(self, coord: Coordinate) -> RasterTile | None:
        tile, _ = self._active.lookup(coord)
        return tile

    def lookup(self, coord: Coordinate) -> tuple[RasterTile | None, bool]:
        return self._active.lookup(coord)

    def list_tiles(self) -> list[dict]:
        return [tile.to_dict() for tile in self._active.tiles]

    def close(self) -> None:
        with self._write_lock:
            self._swap(TileSet())
