"""
GeoTIFF encoding

Collects the tiles of a raster query and writes them into an in-memory
GeoTIFF with one band per time step.
"""

import asyncio
import logging
from contextlib import aclosing
from typing import Any

import numpy as np
from numpy.typing import NDArray
from rasterio.io import MemoryFile

from geoquery.core.exceptions import TileLimitExceededError
from geoquery.core.primitives import SpatialReference, TimeInterval
from geoquery.grid.shape import GridBoundingBox2D
from geoquery.operators.engine import QueryContext, RasterQueryRectangle
from geoquery.operators.processors import RasterQueryProcessor
from geoquery.raster.data_type import RasterDataType
from geoquery.raster.geo_transform import GeoTransform
from geoquery.raster.mosaic import mosaic_tiles
from geoquery.raster.tile import RasterTile2D

logger = logging.getLogger(__name__)

# GDAL's GTiff driver has no signed 8 bit type
GEOTIFF_DATA_TYPES = (
    RasterDataType.U8,
    RasterDataType.U16,
    RasterDataType.U32,
    RasterDataType.I16,
    RasterDataType.I32,
    RasterDataType.F32,
    RasterDataType.F64,
)


async def collect_tiles(
    processor: RasterQueryProcessor,
    query: RasterQueryRectangle,
    query_ctx: QueryContext,
    tile_limit: int | None = None,
) -> list[RasterTile2D]:
    """
    Drain a raster query into a list

    Raises:
        TileLimitExceededError: If the stream yields more than ``tile_limit`` tiles
    """
    tiles = []
    async with aclosing(processor.query(query, query_ctx)) as stream:
        async for tile in stream:
            tiles.append(tile)
            if tile_limit is not None and len(tiles) > tile_limit:
                raise TileLimitExceededError(tile_limit)
    return tiles


def _output_placement(
    tiles: list[RasterTile2D], query: RasterQueryRectangle
) -> tuple[GeoTransform, GridBoundingBox2D]:
    """Geo-transform and global pixel bounds of the image covering the query"""
    if tiles:
        global_transform = tiles[0].global_geo_transform
    else:
        global_transform = GeoTransform.from_resolution(
            query.spatial_bounds.upper_left, query.spatial_resolution.x, query.spatial_resolution.y
        )
    pixel_bounds = global_transform.spatial_to_grid_bounds(query.spatial_bounds)
    return global_transform.shifted_to(pixel_bounds.min_index()), pixel_bounds


def _bands(
    tiles: list[RasterTile2D],
    pixel_bounds: GridBoundingBox2D,
    dtype: np.dtype,
    fill_value: Any,
) -> tuple[list[TimeInterval], NDArray]:
    by_time: dict[TimeInterval, list[RasterTile2D]] = {}
    for tile in tiles:
        by_time.setdefault(tile.time, []).append(tile)
    times = sorted(by_time, key=lambda t: (t.start, t.end))
    if not times:
        return [], np.full((1, *pixel_bounds.axis_size()), fill_value, dtype=dtype)
    stack = np.stack([mosaic_tiles(by_time[t], pixel_bounds, dtype, fill_value) for t in times])
    return times, stack


def _write_geotiff(
    stack: NDArray,
    times: list[TimeInterval],
    geo_transform: GeoTransform,
    spatial_reference: SpatialReference,
    no_data_value: float | None,
) -> bytes:
    count, height, width = stack.shape
    profile = {
        "driver": "GTiff",
        "height": height,
        "width": width,
        "count": count,
        "dtype": stack.dtype.name,
        "crs": spatial_reference.to_rasterio(),
        "transform": geo_transform.to_affine(),
        "nodata": no_data_value,
        "compress": "deflate",
    }
    with MemoryFile() as memfile:
        with memfile.open(**profile) as dst:
            dst.write(stack)
            for band, time in enumerate(times, start=1):
                dst.update_tags(band, time=str(time))
        return memfile.read()


async def raster_stream_to_geotiff_bytes(
    processor: RasterQueryProcessor,
    query: RasterQueryRectangle,
    query_ctx: QueryContext,
    no_data_value: float | None,
    spatial_reference: SpatialReference,
    tile_limit: int | None = None,
) -> bytes:
    """
    Render a raster query as a GeoTIFF

    Every distinct tile time becomes one band, ordered by time. Pixels not
    covered by any tile hold ``no_data_value`` (0 if there is none).

    Args:
        processor: Processor to query, of a type in ``GEOTIFF_DATA_TYPES``
        query: Area, time and resolution of the image
        query_ctx: Query context passed to the processor
        no_data_value: No-data value written into the file
        spatial_reference: CRS written into the file
        tile_limit: Maximum number of tiles the query may produce

    Returns:
        GeoTIFF file bytes

    Raises:
        TileLimitExceededError: If the query produces too many tiles
    """
    tiles = await collect_tiles(processor, query, query_ctx, tile_limit)
    dtype = processor.data_type.numpy_dtype
    fill_value = no_data_value if no_data_value is not None else 0

    geo_transform, pixel_bounds = _output_placement(tiles, query)
    times, stack = _bands(tiles, pixel_bounds, dtype, fill_value)
    logger.info(
        "Writing GeoTIFF: %d tiles, %d band(s) of %dx%d %s",
        len(tiles), stack.shape[0], stack.shape[2], stack.shape[1], dtype,
    )
    return await asyncio.to_thread(
        _write_geotiff, stack, times, geo_transform, spatial_reference, no_data_value
    )
