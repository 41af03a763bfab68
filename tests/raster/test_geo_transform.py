"""
Tests for GeoTransform
"""

import pytest

from geoquery.core.primitives import Coordinate2D, SpatialPartition2D
from geoquery.grid.shape import GridBoundingBox2D, GridIdx
from geoquery.raster.geo_transform import GeoTransform


@pytest.fixture
def utm_transform():
    """60 m Sentinel-2 B01 transform"""
    return GeoTransform(Coordinate2D(600000.0, 3400020.0), 60.0, -60.0)


class TestGeoTransform:
    """Test pixel / coordinate conversions"""

    def test_upper_left_coordinate(self, utm_transform):
        assert utm_transform.grid_idx_to_upper_left_coordinate_2d((1, 2)) == Coordinate2D(600120.0, 3399960.0)

    def test_center_coordinate(self, utm_transform):
        assert utm_transform.grid_idx_to_center_coordinate_2d((0, 0)) == Coordinate2D(600030.0, 3399990.0)

    def test_coordinate_to_index(self, utm_transform):
        assert utm_transform.coordinate_to_grid_idx_2d(Coordinate2D(600059.0, 3399961.0)) == GridIdx((0, 0))
        assert utm_transform.coordinate_to_grid_idx_2d(Coordinate2D(600060.0, 3399960.0)) == GridIdx((1, 1))

    def test_coordinate_left_of_origin(self, utm_transform):
        assert utm_transform.coordinate_to_grid_idx_2d(Coordinate2D(599999.0, 3400021.0)) == GridIdx((-1, -1))

    def test_spatial_to_grid_bounds_exclusive_edge(self):
        gt = GeoTransform(Coordinate2D(0.0, 0.0), 1.0, -1.0)

        bounds = gt.spatial_to_grid_bounds(SpatialPartition2D.from_bounds(0.0, -4.0, 4.0, 0.0))

        assert bounds == GridBoundingBox2D((0, 0), (3, 3))

    def test_spatial_to_grid_bounds_partial_pixels(self):
        gt = GeoTransform(Coordinate2D(0.0, 0.0), 1.0, -1.0)

        bounds = gt.spatial_to_grid_bounds(SpatialPartition2D.from_bounds(0.5, -2.5, 2.5, -0.5))

        assert bounds == GridBoundingBox2D((0, 0), (2, 2))

    def test_grid_to_spatial_bounds(self):
        gt = GeoTransform(Coordinate2D(10.0, 20.0), 2.0, -2.0)

        partition = gt.grid_to_spatial_bounds(GridBoundingBox2D((0, 0), (1, 2)))

        assert partition == SpatialPartition2D.from_bounds(10.0, 16.0, 16.0, 20.0)

    def test_gdal_round_trip(self, utm_transform):
        assert GeoTransform.from_gdal(utm_transform.to_gdal()) == utm_transform

    def test_affine(self, utm_transform):
        affine = utm_transform.to_affine()

        assert affine * (1, 2) == (600060.0, 3399900.0)

    def test_shifted_to(self, utm_transform):
        shifted = utm_transform.shifted_to((10, 10))

        assert shifted.origin_coordinate == Coordinate2D(600600.0, 3399420.0)
        assert shifted.y_pixel_size == -60.0
