"""
GeoQuery Raster Module

Pixel types, geo-transforms, tiling and raster tiles.
"""

from geoquery.raster.data_type import RasterDataType
from geoquery.raster.geo_transform import GeoTransform
from geoquery.raster.tile import RasterTile2D
from geoquery.raster.tiling import TileInformation, TilingSpecification, TilingStrategy

__all__ = [
    "GeoTransform",
    "RasterDataType",
    "RasterTile2D",
    "TileInformation",
    "TilingSpecification",
    "TilingStrategy",
]
