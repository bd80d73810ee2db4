"""
Constants for chuk-mcp-elevation server.

All magic strings, defaults, and configuration keys live here.
"""


class ServerConfig:
    NAME = "chuk-mcp-elevation"
    VERSION = "0.1.0"
    DESCRIPTION = "Elevation Raster Query MCP Server"


class EnvVar:
    DATA_PATH = "ELEVATION_DATA_PATH"
    BATCH_CHUNK_SIZE = "ELEVATION_BATCH_CHUNK_SIZE"
    MAX_BATCH_SIZE = "ELEVATION_MAX_BATCH_SIZE"
    DATA_SOURCE = "ELEVATION_DATA_SOURCE"
    LOG_LEVEL = "LOG_LEVEL"
    MCP_STDIO = "MCP_STDIO"


class EngineState:
    INITIALIZING = "initializing"
    READY = "ready"


class StreamEventType:
    CHUNK = "chunk"
    COMPLETE = "complete"
    ERROR = "error"


# Engine defaults
DEFAULT_DATA_PATH = "./data"
DEFAULT_BATCH_CHUNK_SIZE = 500
DEFAULT_MAX_BATCH_SIZE = 20000
DEFAULT_DATA_SOURCE = "SRTM"
DEFAULT_HTTP_PORT = 8004

# Recognised raster files (compared lower-case)
RASTER_EXTENSIONS = (".tif", ".tiff", ".hgt", ".img", ".asc")

# Generic metadata keys that may carry a no-data sentinel, checked in order
# after the GDAL no-data value
NODATA_TAG_KEYS = ("NODATA", "nodata", "NoData", "_FillValue", "missing_value")

# Coordinate ranges accepted at the tool boundary
LON_MIN, LON_MAX = -180.0, 180.0
LAT_MIN, LAT_MAX = -90.0, 90.0

# Output formats for batch queries
BATCH_FORMATS = ["json", "csv", "geojson"]
TEMPLATE_FORMATS = ["csv", "json"]

CSV_HEADER = "longitude,latitude,elevation,error"
TEMPLATE_CSV_HEADER = "longitude,latitude"
TEMPLATE_COORDINATES = [
    (116.3974, 39.9093),
    (121.4737, 31.2304),
    (113.2644, 23.1291),
]

QUERY_TOOLS = [
    "elevation_point",
    "elevation_batch",
    "elevation_batch_stream",
    "elevation_template",
]
DISCOVERY_TOOLS = [
    "elevation_list_tiles",
    "elevation_reload",
    "elevation_status",
    "elevation_capabilities",
]

# Retry (raster open / cell read)
RETRY_ATTEMPTS = 3
RETRY_WAIT_MIN = 0.1
RETRY_WAIT_MAX = 2


class ErrorMessages:
    # Per-point reasons (elevation is None)
    NO_COVERAGE = "No data available for this coordinate"
    OUT_OF_RASTER = "Coordinate falls outside the raster grid"
    NODATA_CELL = "No elevation value at this coordinate (no-data cell)"
    UNSAMPLABLE_TILE = "Tile {} has a non-positive pixel size and cannot be sampled"
    READ_FAILED = "Error processing elevation data: {}"

    # Boundary validation
    INVALID_LONGITUDE = "longitude must be between -180 and 180, got {}"
    INVALID_LATITUDE = "latitude must be between -90 and 90, got {}"
    INVALID_COORDINATE = (
        "Invalid coordinate at index {}: expected [longitude, latitude] or "
        "{{'longitude': ..., 'latitude': ...}}"
    )
    EMPTY_BATCH = "coordinates must contain at least 1 point"
    BATCH_TOO_LARGE = "coordinates contains {} points, maximum is {}"
    INVALID_CHUNK_SIZE = "chunk_size must be between 1 and {}, got {}"
    INVALID_FORMAT = "Invalid format '{}'. Available: {}"
    STREAM_FAILED = "Internal error while streaming batch elevation"

    # Index
    DATA_PATH_UNREADABLE = "Cannot read raster directory {}: {}"
    TILE_OPEN_FAILED = "Failed to open raster {}: {}"


class SuccessMessages:
    POINT_ELEVATION = "Elevation at point: {:.0f}m"
    POINT_NO_DATA = "No elevation available at point: {}"
    BATCH_ELEVATION = "Retrieved elevation for {} of {} points"
    TILES_LIST = "{} raster tiles indexed"
    RELOAD_COMPLETE = "Reloaded raster index: {} tiles"
    TEMPLATE = "Input template ({} format, {} sample points)"
