"""
Tests for tile mosaicking
"""

import numpy as np

from geoquery.core.primitives import Coordinate2D
from geoquery.grid.no_data_grid import NoDataGrid
from geoquery.grid.shape import GridBoundingBox2D, GridIdx, GridShape2D
from geoquery.raster.geo_transform import GeoTransform
from geoquery.raster.mosaic import mosaic_tiles, tiles_pixel_bounds
from geoquery.raster.tile import RasterTile2D


class TestMosaic:
    """Test assembling tiles into one array"""

    def test_pixel_bounds(self, tile_factory):
        tiles = [tile_factory((0, 0), [[1, 2], [3, 4]]), tile_factory((1, 1), [[5, 6], [7, 8]])]

        assert tiles_pixel_bounds(tiles) == GridBoundingBox2D((0, 0), (3, 3))
        assert tiles_pixel_bounds([]) is None

    def test_fill_uncovered(self, tile_factory):
        tiles = [tile_factory((0, 0), [[1, 2], [3, 4]]), tile_factory((1, 1), [[5, 6], [7, 8]])]

        out = mosaic_tiles(tiles, GridBoundingBox2D((0, 0), (3, 3)), "uint8", 0)

        np.testing.assert_array_equal(
            out,
            [[1, 2, 0, 0], [3, 4, 0, 0], [0, 0, 5, 6], [0, 0, 7, 8]],
        )

    def test_clips_to_bounds(self, tile_factory):
        tiles = [tile_factory((0, 0), [[1, 2], [3, 4]])]

        out = mosaic_tiles(tiles, GridBoundingBox2D((1, 1), (2, 2)), "uint8", 9)

        np.testing.assert_array_equal(out, [[4, 9], [9, 9]])

    def test_empty_tiles_keep_fill(self, time_0_10):
        empty = RasterTile2D(
            time_0_10,
            GridIdx((0, 0)),
            GeoTransform(Coordinate2D(0.0, 0.0), 1.0, -1.0),
            NoDataGrid(GridShape2D((2, 2)), 3, dtype="uint8"),
        )

        out = mosaic_tiles([empty], GridBoundingBox2D((0, 0), (1, 1)), "uint8", 7)

        assert (out == 7).all()
