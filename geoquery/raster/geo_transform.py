"""
Geo-transform between pixel indices and CRS coordinates
"""

import math
from dataclasses import dataclass

from affine import Affine

from geoquery.core.primitives import Coordinate2D, SpatialPartition2D
from geoquery.grid.shape import GridBoundingBox2D, GridIdx, as_grid_idx

# Tolerance for pixel boundaries hit by floating point coordinates
_EPSILON = 1e-9


@dataclass(frozen=True)
class GeoTransform:
    """
    North-up geo-transform

    Attributes:
        origin_coordinate: Upper-left corner of pixel (0, 0)
        x_pixel_size: Pixel width in CRS units (positive)
        y_pixel_size: Pixel height in CRS units (negative for north-up rasters)

    Grid indices are (y, x).

    Examples:
        >>> gt = GeoTransform(Coordinate2D(600000.0, 3400020.0), 60.0, -60.0)
        >>> gt.grid_idx_to_upper_left_coordinate_2d((1, 2))
        Coordinate2D(x=600120.0, y=3399960.0)
    """

    origin_coordinate: Coordinate2D
    x_pixel_size: float
    y_pixel_size: float

    @classmethod
    def from_gdal(cls, gdal_transform) -> "GeoTransform":
        """Build from a GDAL 6-tuple (ox, xsize, xrot, oy, yrot, ysize)"""
        origin_x, x_size, _, origin_y, _, y_size = gdal_transform
        return cls(Coordinate2D(float(origin_x), float(origin_y)), float(x_size), float(y_size))

    @classmethod
    def from_resolution(cls, origin: Coordinate2D, x_res: float, y_res: float) -> "GeoTransform":
        return cls(origin, abs(x_res), -abs(y_res))

    def to_gdal(self) -> tuple[float, float, float, float, float, float]:
        return (
            self.origin_coordinate.x,
            self.x_pixel_size,
            0.0,
            self.origin_coordinate.y,
            0.0,
            self.y_pixel_size,
        )

    def to_affine(self) -> Affine:
        return Affine(
            self.x_pixel_size, 0.0, self.origin_coordinate.x,
            0.0, self.y_pixel_size, self.origin_coordinate.y,
        )

    def _fractional_idx(self, coordinate: Coordinate2D) -> tuple[float, float]:
        return (
            (coordinate.y - self.origin_coordinate.y) / self.y_pixel_size,
            (coordinate.x - self.origin_coordinate.x) / self.x_pixel_size,
        )

    def coordinate_to_grid_idx_2d(self, coordinate: Coordinate2D) -> GridIdx:
        """Index of the pixel containing ``coordinate``"""
        fy, fx = self._fractional_idx(coordinate)
        return GridIdx((math.floor(fy + _EPSILON), math.floor(fx + _EPSILON)))

    def grid_idx_to_upper_left_coordinate_2d(self, index) -> Coordinate2D:
        y, x = as_grid_idx(index)
        return Coordinate2D(
            self.origin_coordinate.x + x * self.x_pixel_size,
            self.origin_coordinate.y + y * self.y_pixel_size,
        )

    def grid_idx_to_center_coordinate_2d(self, index) -> Coordinate2D:
        y, x = as_grid_idx(index)
        return Coordinate2D(
            self.origin_coordinate.x + (x + 0.5) * self.x_pixel_size,
            self.origin_coordinate.y + (y + 0.5) * self.y_pixel_size,
        )

    def spatial_to_grid_bounds(self, partition: SpatialPartition2D) -> GridBoundingBox2D:
        """Pixel bounds covering ``partition``; the lower/right edge is exclusive"""
        ul = self.coordinate_to_grid_idx_2d(partition.upper_left)
        fy, fx = self._fractional_idx(partition.lower_right)
        lr = GridIdx((
            max(math.ceil(fy - _EPSILON) - 1, ul[0]),
            max(math.ceil(fx - _EPSILON) - 1, ul[1]),
        ))
        return GridBoundingBox2D(ul, lr)

    def grid_to_spatial_bounds(self, bounds: GridBoundingBox2D) -> SpatialPartition2D:
        upper_left = self.grid_idx_to_upper_left_coordinate_2d(bounds.min_index())
        lower_right = self.grid_idx_to_upper_left_coordinate_2d(bounds.max_index() + (1, 1))
        return SpatialPartition2D(upper_left, lower_right)

    def shifted_to(self, index) -> "GeoTransform":
        """Same pixel size with the origin moved onto pixel ``index``"""
        return GeoTransform(
            self.grid_idx_to_upper_left_coordinate_2d(index),
            self.x_pixel_size,
            self.y_pixel_size,
        )
