"""Shared test fixtures for chuk-mcp-elevation."""

from pathlib import Path
from unittest.mock import MagicMock

import numpy as np
import pytest

from chuk_mcp_elevation.config import EngineSettings
from chuk_mcp_elevation.core.engine import QueryEngine

from .fakes import FakeOpener, example_source, make_tile, populate


@pytest.fixture
def example_tile():
    return make_tile(example_source(), "srtm_60_06.tif")


@pytest.fixture
def data_dir(tmp_path):
    return populate(tmp_path / "data", ["srtm_60_06.tif"])


@pytest.fixture
def example_opener():
    return FakeOpener({"srtm_60_06.tif": example_source()})


@pytest.fixture
def settings(data_dir):
    return EngineSettings(data_path=str(data_dir), batch_chunk_size=2, max_batch_size=100)


@pytest.fixture
def engine(settings, example_opener):
    """QueryEngine over the example tile (fake raster source)."""
    return QueryEngine(settings, opener=example_opener)


@pytest.fixture
def write_geotiff(tmp_path):
    """Write a north-up EPSG:4326 GeoTIFF and return its path."""

    def _write(
        name: str,
        values,
        west: float,
        north: float,
        pixel_size: float,
        nodata: float | None = None,
        dtype: str = "int16",
        directory: Path | None = None,
    ) -> Path:
        import rasterio
        from rasterio.transform import from_origin

        arr = np.asarray(values, dtype=dtype)
        target = (directory or tmp_path) / name
        target.parent.mkdir(parents=True, exist_ok=True)
        with rasterio.open(
            target,
            "w",
            driver="GTiff",
            height=arr.shape[0],
            width=arr.shape[1],
            count=1,
            dtype=dtype,
            crs="EPSG:4326",
            transform=from_origin(west, north, pixel_size, pixel_size),
            nodata=nodata,
        ) as dst:
            dst.write(arr, 1)
        return target

    return _write


@pytest.fixture
def capture_tools():
    """Register tools on a capturing mcp and return the {name: fn} mapping."""

    def _capture(register, engine):
        tools = {}
        mcp = MagicMock()

        def capture_tool(**kwargs):
            def decorator(fn):
                tools[fn.__name__] = fn
                return fn

            return decorator

        mcp.tool = capture_tool
        register(mcp, engine)
        return tools

    return _capture
