"""
GeoQuery I/O Module

COG tile reading and GeoTIFF / PNG encoding of query results.
"""

from geoquery.io.base import TileFetcher
from geoquery.io.cog import COGReader, RasterioTileFetcher
from geoquery.io.colorizer import Breakpoint, Colorizer, RgbaColor
from geoquery.io.geotiff import GEOTIFF_DATA_TYPES, raster_stream_to_geotiff_bytes
from geoquery.io.png import to_png

__all__ = [
    "Breakpoint",
    "COGReader",
    "Colorizer",
    "GEOTIFF_DATA_TYPES",
    "RasterioTileFetcher",
    "RgbaColor",
    "TileFetcher",
    "raster_stream_to_geotiff_bytes",
    "to_png",
]
