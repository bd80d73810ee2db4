"""
Chunked batch processing.

A BatchStreamer is a forward-only async cursor over a coordinate list. Each
step samples one chunk concurrently and returns its points in input order.
Before every chunk after the first it yields to the event loop once, so a
batch of tens of thousands of points cannot starve other requests.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

from .results import Coordinate, ElevationPoint

logger = logging.getLogger(__name__)

SampleFn = Callable[[Coordinate], Awaitable[ElevationPoint]]


def resolve_chunk_size(requested: int | None, default: int, max_batch_size: int) -> int:
    """clamp(requested or default, 1, max_batch_size)."""
    size = requested if requested else default
    return max(1, min(int(size), max_batch_size))


def chunk_count(total_points: int, chunk_size: int) -> int:
    return -(-total_points // chunk_size)


class BatchStreamer:
    """
    Async iterator producing one ``list[ElevationPoint]`` per chunk.

    Holds (coordinates, position, chunk_size). Not restartable: once
    exhausted or closed it stays exhausted.
    """

    def __init__(
        self,
        coordinates: Sequence[Coordinate],
        chunk_size: int,
        sample_one: SampleFn,
    ) -> None:
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
        self._coordinates = coordinates
        self._chunk_size = chunk_size
        self._sample_one = sample_one
        self._position = 0
        self._chunk_index = 0
        self._closed = False

    @property
    def total_points(self) -> int:
        return len(self._coordinates)

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def position(self) -> int:
        return self._position

    @property
    def chunk_index(self) -> int:
        """Index of the next chunk to be produced."""
        return self._chunk_index

    @property
    def exhausted(self) -> bool:
        return self._closed or self._position >= len(self._coordinates)

    def __aiter__(self) -> "BatchStreamer":
        return self

    async def __anext__(self) -> list[ElevationPoint]:
        if self.exhausted:
            raise StopAsyncIteration

        if self._position > 0:
            await asyncio.sleep(0)
            if self._closed:
                raise StopAsyncIteration

        start = self._position
        end = min(start + self._chunk_size, len(self._coordinates))
        chunk = self._coordinates[start:end]

        # gather preserves argument order regardless of completion order
        points = await asyncio.gather(*(self._sample_one(c) for c in chunk))

        self._position = end
        self._chunk_index += 1
        return list(points)

    async def collect(self) -> list[ElevationPoint]:
        """Drain the remaining chunks into one list."""
        results: list[ElevationPoint] = []
        async for chunk in self:
            results.extend(chunk)
        return results

    async def aclose(self) -> None:
        self._closed = True
