"""
chuk-mcp-elevation: Elevation Raster Query MCP Server

Answers point and batch elevation queries against a directory of
georeferenced elevation rasters (GeoTIFF, HGT, ...), with chunked batch
processing and progressive streaming for large requests.
"""
