"""
Raster source access for elevation tiles.

All functions and methods are synchronous; callers wrap them in
asyncio.to_thread(). The engine never parses raster bytes itself; it only
talks to the RasterSource capability defined here.
"""

import logging
import math
import threading
from typing import Any, Protocol

import numpy as np
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..constants import NODATA_TAG_KEYS, RETRY_ATTEMPTS, RETRY_WAIT_MAX, RETRY_WAIT_MIN

logger = logging.getLogger(__name__)

# (west, east, south, north)
BoundsTuple = tuple[float, float, float, float]


# ---------------------------------------------------------------------------
# Retry decorator for opening rasters
# ---------------------------------------------------------------------------

_retry_io = retry(
    stop=stop_after_attempt(RETRY_ATTEMPTS),
    wait=wait_exponential(multiplier=RETRY_WAIT_MIN, min=RETRY_WAIT_MIN, max=RETRY_WAIT_MAX),
    retry=retry_if_exception_type(OSError),
    reraise=True,
)


class RasterSource(Protocol):
    """Capability the tile index and sampler need from an opened raster."""

    def bounds(self) -> BoundsTuple: ...

    def pixel_size(self) -> tuple[float, float]: ...

    def dimensions(self) -> tuple[int, int]: ...

    def nodata(self) -> float | None: ...

    def read_cell(self, col: int, row: int) -> float: ...

    def close(self) -> None: ...


# ---------------------------------------------------------------------------
# rasterio-backed source
# ---------------------------------------------------------------------------


class RasterioSource:
    """
    An open rasterio dataset exposed as a RasterSource.

    The dataset stays open for the lifetime of the tile that owns it. GDAL
    dataset handles are not safe for concurrent reads, so cell reads are
    serialised on a per-source lock.
    """

    def __init__(self, dataset: Any, path: str) -> None:
        self._dataset = dataset
        self._path = path
        self._lock = threading.Lock()
        self._closed = False

    @property
    def path(self) -> str:
        return self._path

    @property
    def closed(self) -> bool:
        return self._closed

    def bounds(self) -> BoundsTuple:
        b = self._dataset.bounds
        west, east = sorted((float(b.left), float(b.right)))
        south, north = sorted((float(b.bottom), float(b.top)))
        return west, east, south, north

    def pixel_size(self) -> tuple[float, float]:
        # Signed: a bottom-up raster (positive e term) yields a negative y size
        transform = self._dataset.transform
        return float(transform.a), float(-transform.e)

    def dimensions(self) -> tuple[int, int]:
        return int(self._dataset.width), int(self._dataset.height)

    def nodata(self) -> float | None:
        return read_nodata(self._dataset)

    def read_cell(self, col: int, row: int) -> float:
        """
        Read exactly one cell of band 1 (1x1 window).

        Not retried; a failed read raises immediately.
        """
        from rasterio.windows import Window

        with self._lock:
            if self._closed:
                raise RuntimeError(f"Raster {self._path} is closed")
            data = self._dataset.read(1, window=Window(col, row, 1, 1))
        return float(np.asarray(data).reshape(-1)[0])

    def close(self) -> None:
        with self._lock:
            if not self._closed:
                self._dataset.close()
                self._closed = True


@_retry_io
def _open_dataset(path: str) -> Any:
    import rasterio

    return rasterio.open(path)


def open_raster(path: str) -> RasterioSource:
    """
    Open a raster file as a RasterSource.

    Args:
        path: Local file path

    Returns:
        An open RasterioSource (caller owns it and must close() it)
    """
    dataset = _open_dataset(path)
    return RasterioSource(dataset, path)


# ---------------------------------------------------------------------------
# Metadata helpers
# ---------------------------------------------------------------------------


def read_nodata(dataset: Any) -> float | None:
    """
    Find the no-data sentinel of a dataset.

    GDAL's own no-data value wins; otherwise the first generic metadata tag
    (band tags, then dataset tags) that parses as a number. Sources are not
    combined.
    """
    value = _to_float(getattr(dataset, "nodata", None))
    if value is not None:
        return value

    for tags in (_safe_tags(dataset, 1), _safe_tags(dataset, None)):
        for key in NODATA_TAG_KEYS:
            if key in tags:
                value = _to_float(tags[key])
                if value is not None:
                    return value
    return None


def _safe_tags(dataset: Any, bidx: int | None) -> dict:
    try:
        tags = dataset.tags(bidx) if bidx is not None else dataset.tags()
    except Exception as e:
        logger.debug(f"Could not read tags (band {bidx}): {e}")
        return {}
    return dict(tags) if isinstance(tags, dict) else {}


def _to_float(value: Any) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def resolve_pixel_size(
    pixel_size: tuple[float, float],
    bounds: BoundsTuple,
    dimensions: tuple[int, int],
) -> tuple[float, float]:
    """
    Replace degenerate (non-finite or zero) pixel sizes with span / dimension.

    Negative sizes are kept as reported; the sampler treats them as
    unsamplable.
    """
    west, east, south, north = bounds
    width, height = dimensions
    px, py = pixel_size

    if not math.isfinite(px) or px == 0:
        px = (east - west) / width if width > 0 else 0.0
    if not math.isfinite(py) or py == 0:
        py = (north - south) / height if height > 0 else 0.0
    return px, py
