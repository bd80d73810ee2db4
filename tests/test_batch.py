"""Tests for chuk_mcp_elevation.core.batch."""

import asyncio
import random
from unittest.mock import AsyncMock, patch

import pytest

from chuk_mcp_elevation.core.batch import BatchStreamer, chunk_count, resolve_chunk_size
from chuk_mcp_elevation.core.results import Coordinate, ElevationPoint


def _coords(n):
    return [Coordinate(float(i), 0.0) for i in range(n)]


async def _echo(coord):
    return ElevationPoint(coord.longitude, coord.latitude, coord.longitude)


class TestResolveChunkSize:
    def test_requested_used(self):
        assert resolve_chunk_size(50, 500, 20000) == 50

    def test_none_uses_default(self):
        assert resolve_chunk_size(None, 500, 20000) == 500

    def test_zero_uses_default(self):
        assert resolve_chunk_size(0, 500, 20000) == 500

    def test_clamped_to_max(self):
        assert resolve_chunk_size(50000, 500, 20000) == 20000

    def test_negative_clamped_to_one(self):
        assert resolve_chunk_size(-5, 500, 20000) == 1


class TestChunkCount:
    @pytest.mark.parametrize(
        "total,size,expected",
        [(0, 500, 0), (1, 500, 1), (500, 500, 1), (501, 500, 2), (1000, 3, 334)],
    )
    def test_ceiling(self, total, size, expected):
        assert chunk_count(total, size) == expected


class TestBatchStreamer:
    def test_rejects_zero_chunk_size(self):
        with pytest.raises(ValueError):
            BatchStreamer(_coords(3), 0, _echo)

    @pytest.mark.asyncio
    async def test_chunks_partition_input(self):
        streamer = BatchStreamer(_coords(7), 3, _echo)
        chunks = [chunk async for chunk in streamer]
        assert [len(c) for c in chunks] == [3, 3, 1]
        assert [p.elevation for c in chunks for p in c] == [float(i) for i in range(7)]

    @pytest.mark.asyncio
    async def test_order_preserved_under_random_completion(self):
        rng = random.Random(42)

        async def jittery(coord):
            await asyncio.sleep(rng.random() / 1000)
            return await _echo(coord)

        points = await BatchStreamer(_coords(40), 16, jittery).collect()
        assert [p.longitude for p in points] == [float(i) for i in range(40)]

    @pytest.mark.asyncio
    async def test_position_and_chunk_index_advance(self):
        streamer = BatchStreamer(_coords(5), 2, _echo)
        assert (streamer.position, streamer.chunk_index) == (0, 0)
        await streamer.__anext__()
        assert (streamer.position, streamer.chunk_index) == (2, 1)
        await streamer.__anext__()
        await streamer.__anext__()
        assert streamer.position == 5
        assert streamer.exhausted

    @pytest.mark.asyncio
    async def test_yields_between_chunks_only(self):
        sleep = AsyncMock()
        with patch("chuk_mcp_elevation.core.batch.asyncio.sleep", sleep):
            await BatchStreamer(_coords(6), 2, _echo).collect()
        # three chunks, two gaps between them
        assert sleep.await_count == 2
        sleep.assert_awaited_with(0)

    @pytest.mark.asyncio
    async def test_single_chunk_never_yields(self):
        sleep = AsyncMock()
        with patch("chuk_mcp_elevation.core.batch.asyncio.sleep", sleep):
            await BatchStreamer(_coords(3), 10, _echo).collect()
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_not_restartable(self):
        streamer = BatchStreamer(_coords(3), 2, _echo)
        assert len(await streamer.collect()) == 3
        assert await streamer.collect() == []

    @pytest.mark.asyncio
    async def test_empty_input(self):
        streamer = BatchStreamer([], 5, _echo)
        assert streamer.exhausted
        assert await streamer.collect() == []

    @pytest.mark.asyncio
    async def test_aclose_stops_iteration(self):
        sample_one = AsyncMock(side_effect=_echo)
        streamer = BatchStreamer(_coords(6), 2, sample_one)

        await streamer.__anext__()
        await streamer.aclose()

        with pytest.raises(StopAsyncIteration):
            await streamer.__anext__()
        assert sample_one.await_count == 2

    @pytest.mark.asyncio
    async def test_sampler_exception_propagates(self):
        async def broken(coord):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            await BatchStreamer(_coords(2), 2, broken).collect()
