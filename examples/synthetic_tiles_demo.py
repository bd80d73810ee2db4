#!/usr/bin/env python3
"""
Synthetic Tiles Demo -- chuk-mcp-elevation

Writes two small SRTM-style GeoTIFF tiles into a temporary directory and
queries them through the MCP tools: tile listing, single points, a CSV
batch, a streamed batch, and a reload after adding a third tile.
No network access or real elevation data is needed.

Usage:
    python examples/synthetic_tiles_demo.py
"""

import asyncio
import json
import tempfile
from pathlib import Path

import numpy as np
import rasterio
from rasterio.transform import from_origin

from tool_runner import ToolRunner

NODATA = -32768


def write_tile(directory: Path, name: str, west: float, north: float, base: int) -> None:
    """A 5x5 degree tile of 0.05 degree cells sloping up towards the north-east."""
    size = 100
    cols, rows = np.meshgrid(np.arange(size), np.arange(size))
    values = (base + cols * 3 + (size - rows) * 2).astype("int16")
    values[50, 50] = NODATA

    with rasterio.open(
        directory / name,
        "w",
        driver="GTiff",
        height=size,
        width=size,
        count=1,
        dtype="int16",
        crs="EPSG:4326",
        transform=from_origin(west, north, 0.05, 0.05),
        nodata=NODATA,
    ) as dst:
        dst.write(values, 1)


async def main() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        data = Path(tmp)
        write_tile(data, "srtm_60_06.tif", 115.0, 35.0, base=100)
        write_tile(data, "srtm_61_06.tif", 120.0, 35.0, base=800)

        runner = ToolRunner(str(data), batch_chunk_size=3)

        print("=" * 60)
        print("chuk-mcp-elevation -- Synthetic Tiles")
        print("=" * 60)

        print("\nelevation_list_tiles (output_mode='text'):")
        print(await runner.run_text("elevation_list_tiles"))

        print("\nSingle points:")
        for lon, lat in [(116.0, 34.0), (121.0, 33.0), (117.525, 32.475), (0.0, 0.0)]:
            result = await runner.run("elevation_point", longitude=lon, latitude=lat)
            point = result["data"][0]
            shown = point["elevation"] if point["elevation"] is not None else point["error"]
            print(f"  ({lon:8.3f}, {lat:7.3f}) -> {shown}")

        coordinates = [[115.0 + i * 0.7, 34.9 - i * 0.4] for i in range(10)]

        print("\nelevation_batch (format='csv'):")
        print(await runner.run_raw("elevation_batch", coordinates=coordinates, format="csv"))

        print("elevation_batch_stream (chunk_size=4):")
        stream = await runner.run_raw(
            "elevation_batch_stream", coordinates=coordinates, chunk_size=4
        )
        for line in stream.splitlines():
            event = json.loads(line)
            if event["type"] == "chunk":
                print(
                    f"  chunk {event['chunk_index']}: "
                    f"{event['processed_points']}/{event['total_points']} "
                    f"({event['progress']:.0%})"
                )
            else:
                print(f"  {event['type']}: {event.get('metadata') or event.get('error')}")

        print("\nAdding a third tile and reloading:")
        write_tile(data, "srtm_60_07.tif", 115.0, 30.0, base=1500)
        print(await runner.run_text("elevation_reload"))
        result = await runner.run("elevation_point", longitude=116.0, latitude=29.0)
        print(f"  (116.000, 29.000) -> {result['data'][0]['elevation']}")

        print("\nelevation_status (output_mode='text'):")
        print(await runner.run_text("elevation_status"))

        await runner.close()


if __name__ == "__main__":
    asyncio.run(main())
