"""
Tile mosaicking

Assembles tiles that share a global geo-transform into one contiguous array.
"""

from typing import Any, Iterable

import numpy as np
from numpy.typing import NDArray

from geoquery.grid.shape import GridBoundingBox2D
from geoquery.raster.tile import RasterTile2D


def tiles_pixel_bounds(tiles: Iterable[RasterTile2D]) -> GridBoundingBox2D | None:
    """Union of the global pixel bounds of ``tiles``"""
    bounds = [tile.tile_information().global_pixel_bounds() for tile in tiles]
    if not bounds:
        return None
    min_y = min(b.min_index()[0] for b in bounds)
    min_x = min(b.min_index()[1] for b in bounds)
    max_y = max(b.max_index()[0] for b in bounds)
    max_x = max(b.max_index()[1] for b in bounds)
    return GridBoundingBox2D((min_y, min_x), (max_y, max_x))


def mosaic_tiles(
    tiles: Iterable[RasterTile2D],
    pixel_bounds: GridBoundingBox2D,
    dtype,
    fill_value: Any,
) -> NDArray:
    """
    Copy the tiles into one array covering ``pixel_bounds``

    Pixels not covered by a non-empty tile keep ``fill_value``. Tiles are
    written in order, so later tiles overwrite earlier ones.

    Args:
        tiles: Tiles in one global pixel grid
        pixel_bounds: Global pixel bounds of the output array
        dtype: numpy dtype of the output
        fill_value: Value of uncovered pixels

    Returns:
        Array with shape ``pixel_bounds.axis_size()``
    """
    out = np.full(pixel_bounds.axis_size(), fill_value, dtype=dtype)
    out_min = pixel_bounds.min_index()
    for tile in tiles:
        if tile.is_empty():
            continue
        tile_bounds = tile.tile_information().global_pixel_bounds()
        overlap = tile_bounds.intersection(pixel_bounds)
        if overlap is None:
            continue
        src_min = overlap.min_index() - tile_bounds.min_index()
        dst_min = overlap.min_index() - out_min
        rows, cols = overlap.axis_size()
        out[dst_min[0]:dst_min[0] + rows, dst_min[1]:dst_min[1] + cols] = tile.grid_array.data[
            src_min[0]:src_min[0] + rows, src_min[1]:src_min[1] + cols
        ]
    return out
