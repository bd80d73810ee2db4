"""
Query engine — facade over the tile index, sampler, and batch streamer.

States: INITIALIZING while the first directory scan runs, READY afterwards
(possibly with zero tiles). Queries issued while initializing wait for the
scan. All blocking rasterio work runs via asyncio.to_thread().
"""

import asyncio
import inspect
import logging
import time
from collections.abc import AsyncIterator, Callable, Sequence
from contextlib import asynccontextmanager
from typing import Any

from ..config import EngineSettings
from ..constants import EngineState, ErrorMessages
from . import raster_io, sampler
from .batch import BatchStreamer, resolve_chunk_size
from .results import (
    AggregateStats,
    BatchProgress,
    ChunkEvent,
    CompleteEvent,
    Coordinate,
    ElevationPoint,
    ErrorEvent,
    StreamEvent,
    count_valid,
)
from .tile_index import TileIndex, TileSet

logger = logging.getLogger(__name__)


class QueryEngine:
    """Elevation lookups against a directory of raster tiles."""

    def __init__(
        self,
        settings: EngineSettings | None = None,
        progress_callback: Callable[[BatchProgress], Any] | None = None,
        opener: Any = raster_io.open_raster,
    ) -> None:
        self.settings = settings or EngineSettings()
        self.progress_callback = progress_callback

        self._index = TileIndex(self.settings.data_path, opener)
        self._state = EngineState.INITIALIZING
        self._ready: asyncio.Event | None = None
        self._init_task: asyncio.Task | None = None
        self._reload_task: asyncio.Task | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def state(self) -> str:
        return self._state

    @property
    def tile_count(self) -> int:
        return len(self._index)

    @property
    def index(self) -> TileIndex:
        return self._index

    def start(self) -> None:
        """Schedule the initial directory scan (idempotent, needs a running loop)."""
        if self._init_task is not None or self._state == EngineState.READY:
            return
        self._ready = asyncio.Event()
        self._init_task = asyncio.create_task(self._initialize())

    async def _initialize(self) -> None:
        try:
            count = await asyncio.to_thread(self._index.load)
            logger.info(f"Elevation engine ready with {count} tiles")
        except Exception as e:
            logger.error(f"Tile index initialization failed, continuing with no tiles: {e}")
        finally:
            self._state = EngineState.READY
            if self._ready is not None:
                self._ready.set()

    async def wait_ready(self) -> None:
        """Block until the initial scan has finished."""
        if self._state == EngineState.READY:
            return
        self.start()
        if self._ready is not None:
            await self._ready.wait()

    async def reload(self) -> int:
        """
        Rescan the data directory and swap in the new tile set.

        Concurrent callers share one in-flight reload. Queries already running
        finish against the tile set they started with.

        Returns:
            Number of tiles indexed after the reload
        """
        await self.wait_ready()
        if self._reload_task is None or self._reload_task.done():
            self._reload_task = asyncio.create_task(asyncio.to_thread(self._index.reload))
        count = await asyncio.shield(self._reload_task)
        logger.info(f"Reloaded tile index: {count} tiles")
        return count

    async def close(self) -> None:
        await asyncio.to_thread(self._index.close)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def list_tiles(self) -> list[dict]:
        await self.wait_ready()
        return self._index.list_tiles()

    async def get_elevation(self, coord: Coordinate) -> ElevationPoint:
        """Elevation at a single coordinate."""
        await self.wait_ready()
        async with self._snapshot() as tiles:
            return await self._sample(tiles, coord)

    async def get_batch_elevation(
        self,
        coordinates: Sequence[Coordinate],
        chunk_size: int | None = None,
    ) -> list[ElevationPoint]:
        """Elevations for every coordinate, in input order."""
        await self.wait_ready()
        async with self._snapshot() as tiles:
            streamer = self._streamer(tiles, coordinates, chunk_size)
            return await streamer.collect()

    async def stream_batch_elevation(
        self,
        coordinates: Sequence[Coordinate],
        chunk_size: int | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """
        Progressive batch query.

        Yields one ChunkEvent per chunk, then a single CompleteEvent. An
        unexpected fault ends the stream with a single ErrorEvent instead.
        Closing the iterator early stops sampling and releases the tile set.
        """
        await self.wait_ready()
        started = time.perf_counter()
        total = len(coordinates)
        processed = 0
        valid = 0

        async with self._snapshot() as tiles:
            streamer = self._streamer(tiles, coordinates, chunk_size)
            try:
                async for chunk in streamer:
                    processed += len(chunk)
                    valid += count_valid(chunk)
                    progress = BatchProgress(
                        chunk_index=streamer.chunk_index - 1,
                        processed_points=processed,
                        total_points=total,
                        progress=processed / total if total else 1.0,
                    )
                    await self._report_progress(progress)
                    yield ChunkEvent(progress=progress, data=chunk)
            except Exception as e:
                logger.error(f"Batch stream failed after {processed}/{total} points: {e}")
                yield ErrorEvent(error=ErrorMessages.STREAM_FAILED)
                return
            finally:
                await streamer.aclose()

        yield CompleteEvent(
            metadata=self.aggregate(total, valid, started),
        )

    def aggregate(self, total: int, valid: int, started: float) -> AggregateStats:
        """Summary stats for a query that began at ``started`` (perf_counter)."""
        return AggregateStats(
            total_points=total,
            valid_points=valid,
            processing_time_ms=int((time.perf_counter() - started) * 1000),
            data_source=self.settings.data_source,
        )

    def status(self) -> dict:
        return {
            "state": self._state,
            "tile_count": self.tile_count,
            "data_path": str(self._index.directory),
            "batch_chunk_size": self.settings.batch_chunk_size,
            "max_batch_size": self.settings.max_batch_size,
            "data_source": self.settings.data_source,
        }

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _snapshot(self) -> AsyncIterator[TileSet]:
        """Hold the active tile set for a query.

        The last release of a retired set closes its raster handles, so the
        release runs in a worker thread.
        """
        tiles = self._index.acquire()
        try:
            yield tiles
        finally:
            await asyncio.to_thread(tiles.release)

    def _streamer(
        self,
        tiles: TileSet,
        coordinates: Sequence[Coordinate],
        chunk_size: int | None,
    ) -> BatchStreamer:
        size = resolve_chunk_size(
            chunk_size, self.settings.batch_chunk_size, self.settings.max_batch_size
        )

        async def sample_one(coord: Coordinate) -> ElevationPoint:
            return await self._sample(tiles, coord)

        return BatchStreamer(coordinates, size, sample_one)

    async def _sample(self, tiles: TileSet, coord: Coordinate) -> ElevationPoint:
        tile, inside_bounds = tiles.lookup(coord)
        if tile is None:
            reason = ErrorMessages.OUT_OF_RASTER if inside_bounds else ErrorMessages.NO_COVERAGE
            return ElevationPoint(coord.longitude, coord.latitude, None, reason)

        result = await asyncio.to_thread(sampler.sample, tile, coord)
        return ElevationPoint(coord.longitude, coord.latitude, result.value, result.reason)

    async def _report_progress(self, progress: BatchProgress) -> None:
        if self.progress_callback is None:
            return
        try:
            outcome = self.progress_callback(progress)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            logger.warning(f"Progress callback failed: {e}")
