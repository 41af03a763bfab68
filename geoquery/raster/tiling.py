"""
Tiling Implementation

Splits the pixel space of a query into fixed-size tiles anchored at a
global origin, so every processor produces tiles on the same grid.
"""

from dataclasses import dataclass, field
from typing import Iterator

from geoquery.core.primitives import Coordinate2D, SpatialPartition2D, SpatialResolution
from geoquery.grid.shape import GridBoundingBox2D, GridIdx, GridShape2D
from geoquery.raster.geo_transform import GeoTransform

DEFAULT_TILE_SIZE_PX = 512


@dataclass(frozen=True)
class TileInformation:
    """
    Position of one tile in the global tile grid

    Attributes:
        global_tile_position: (y, x) index of the tile in tile units
        tile_size_in_pixels: Pixel extent of the tile
        global_geo_transform: Geo-transform of the global pixel grid
    """

    global_tile_position: GridIdx
    tile_size_in_pixels: GridShape2D
    global_geo_transform: GeoTransform

    def global_upper_left_pixel_idx(self) -> GridIdx:
        ty, tx = self.global_tile_position
        sy, sx = self.tile_size_in_pixels.axis_size()
        return GridIdx((ty * sy, tx * sx))

    def global_pixel_bounds(self) -> GridBoundingBox2D:
        ul = self.global_upper_left_pixel_idx()
        sy, sx = self.tile_size_in_pixels.axis_size()
        return GridBoundingBox2D(ul, ul + (sy - 1, sx - 1))

    def tile_geo_transform(self) -> GeoTransform:
        """Geo-transform whose origin is this tile's upper-left corner"""
        return self.global_geo_transform.shifted_to(self.global_upper_left_pixel_idx())

    def spatial_partition(self) -> SpatialPartition2D:
        return self.global_geo_transform.grid_to_spatial_bounds(self.global_pixel_bounds())


@dataclass(frozen=True)
class TilingStrategy:
    """
    Fixed-size tiling of a global pixel grid

    Examples:
        >>> strategy = TilingStrategy(
        ...     GridShape2D((2, 2)),
        ...     GeoTransform(Coordinate2D(0.0, 0.0), 1.0, -1.0),
        ... )
        >>> partition = SpatialPartition2D.from_bounds(0.0, -4.0, 4.0, 0.0)
        >>> [t.global_tile_position for t in strategy.tile_information_iter(partition)]
        [GridIdx((0, 0)), GridIdx((0, 1)), GridIdx((1, 0)), GridIdx((1, 1))]
    """

    tile_size_in_pixels: GridShape2D
    geo_transform: GeoTransform

    def pixel_bounds(self, partition: SpatialPartition2D) -> GridBoundingBox2D:
        return self.geo_transform.spatial_to_grid_bounds(partition)

    def tile_grid_box(self, partition: SpatialPartition2D) -> GridBoundingBox2D:
        """Range of tile positions intersecting ``partition``"""
        pixels = self.pixel_bounds(partition)
        sy, sx = self.tile_size_in_pixels.axis_size()
        (min_y, min_x), (max_y, max_x) = pixels.min_index(), pixels.max_index()
        return GridBoundingBox2D((min_y // sy, min_x // sx), (max_y // sy, max_x // sx))

    def tile_idx_iter(self, partition: SpatialPartition2D) -> Iterator[GridIdx]:
        """Tile positions in row-major order (top row first)"""
        return self.tile_grid_box(partition).iter_indices()

    def tile_information_iter(self, partition: SpatialPartition2D) -> Iterator[TileInformation]:
        for position in self.tile_idx_iter(partition):
            yield TileInformation(position, self.tile_size_in_pixels, self.geo_transform)


@dataclass(frozen=True)
class TilingSpecification:
    """
    Global tiling parameters

    Attributes:
        origin_coordinate: Coordinate all tile grids are anchored at
        tile_size_in_pixels: Pixel extent of every tile
    """

    origin_coordinate: Coordinate2D = Coordinate2D(0.0, 0.0)
    tile_size_in_pixels: GridShape2D = field(
        default_factory=lambda: GridShape2D((DEFAULT_TILE_SIZE_PX, DEFAULT_TILE_SIZE_PX))
    )

    def strategy(self, resolution: SpatialResolution) -> TilingStrategy:
        """Tiling strategy for a given pixel resolution"""
        return TilingStrategy(
            self.tile_size_in_pixels,
            GeoTransform.from_resolution(self.origin_coordinate, resolution.x, resolution.y),
        )
