"""
Tests for tiling, tiles and pixel data types
"""

import numpy as np
import pytest

from geoquery.core.primitives import Coordinate2D, SpatialPartition2D, SpatialResolution
from geoquery.grid.no_data_grid import NoDataGrid
from geoquery.grid.shape import GridBoundingBox2D, GridIdx, GridShape2D
from geoquery.raster.data_type import RasterDataType
from geoquery.raster.geo_transform import GeoTransform
from geoquery.raster.tile import RasterTile2D
from geoquery.raster.tiling import TileInformation, TilingSpecification, TilingStrategy


class TestTilingStrategy:
    """Test tile enumeration"""

    def test_row_major_order(self, small_tiling):
        strategy = small_tiling.strategy(SpatialResolution.one())
        partition = SpatialPartition2D.from_bounds(0.0, -4.0, 4.0, 0.0)

        positions = [info.global_tile_position for info in strategy.tile_information_iter(partition)]

        assert positions == [GridIdx((0, 0)), GridIdx((0, 1)), GridIdx((1, 0)), GridIdx((1, 1))]

    def test_partial_tiles_are_included(self, small_tiling):
        strategy = small_tiling.strategy(SpatialResolution.one())
        partition = SpatialPartition2D.from_bounds(1.0, -3.0, 3.0, -1.0)

        assert len(list(strategy.tile_idx_iter(partition))) == 4

    def test_negative_tile_positions(self, small_tiling):
        strategy = small_tiling.strategy(SpatialResolution.one())
        partition = SpatialPartition2D.from_bounds(-1.0, -1.0, 1.0, 1.0)

        assert strategy.tile_grid_box(partition) == GridBoundingBox2D((-1, -1), (0, 0))

    def test_strategy_resolution(self):
        spec = TilingSpecification(Coordinate2D(0.0, 0.0), GridShape2D((512, 512)))

        strategy = spec.strategy(SpatialResolution(10.0, 10.0))

        assert strategy.geo_transform == GeoTransform(Coordinate2D(0.0, 0.0), 10.0, -10.0)

    def test_default_tile_size(self):
        assert TilingSpecification().tile_size_in_pixels == GridShape2D((512, 512))


class TestTileInformation:
    """Test tile geometry"""

    def test_pixel_bounds_and_partition(self):
        info = TileInformation(
            GridIdx((1, 2)),
            GridShape2D((2, 2)),
            GeoTransform(Coordinate2D(0.0, 0.0), 1.0, -1.0),
        )

        assert info.global_pixel_bounds() == GridBoundingBox2D((2, 4), (3, 5))
        assert info.spatial_partition() == SpatialPartition2D.from_bounds(4.0, -4.0, 6.0, -2.0)
        assert info.tile_geo_transform().origin_coordinate == Coordinate2D(4.0, -2.0)

    def test_strategy_tiles_cover_partition(self):
        strategy = TilingStrategy(GridShape2D((3, 3)), GeoTransform(Coordinate2D(0.0, 0.0), 1.0, -1.0))
        partition = SpatialPartition2D.from_bounds(0.0, -5.0, 5.0, 0.0)

        tiles = list(strategy.tile_information_iter(partition))

        assert all(t.spatial_partition().intersects(partition) for t in tiles)
        assert len(tiles) == 4


class TestRasterTile:
    """Test raster tiles"""

    def test_data_type(self, tile_factory):
        tile = tile_factory((0, 0), [[1, 2], [3, 4]], dtype="int16")

        assert tile.data_type == RasterDataType.I16
        assert tile.get_at_grid_index((1, 0)) == 3
        assert not tile.is_empty()

    def test_empty_tile_materializes(self, time_0_10):
        tile = RasterTile2D(
            time_0_10,
            GridIdx((0, 0)),
            GeoTransform(Coordinate2D(0.0, 0.0), 1.0, -1.0),
            NoDataGrid(GridShape2D((2, 2)), 0, dtype="uint8"),
        )

        assert tile.is_empty()
        assert tile.materialize().data.tolist() == [[0, 0], [0, 0]]

    def test_convert_dtype(self, tile_factory):
        tile = tile_factory((0, 0), [[1, 2], [3, 4]]).convert_dtype("float32")

        assert tile.data_type == RasterDataType.F32


class TestRasterDataType:
    """Test pixel types"""

    @pytest.mark.parametrize("member", list(RasterDataType))
    def test_numpy_round_trip(self, member):
        assert RasterDataType.from_numpy(member.numpy_dtype) is member

    def test_unsupported_numpy(self):
        with pytest.raises(ValueError):
            RasterDataType.from_numpy(np.complex64)

    def test_is_valid(self):
        assert RasterDataType.U8.is_valid(255)
        assert not RasterDataType.U8.is_valid(256)
        assert not RasterDataType.I16.is_valid(1.5)
        assert RasterDataType.F32.is_valid(float("nan"))
