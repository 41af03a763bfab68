"""
Raster tiles

The unit of lazy raster production: a 2D grid (dense or no-data) placed in
the global tile grid at a time interval.
"""

from dataclasses import dataclass, field
from typing import Any

from geoquery.core.primitives import SpatialPartition2D, TimeInterval
from geoquery.grid.grid import Grid
from geoquery.grid.no_data_grid import GridOrEmpty, NoDataGrid
from geoquery.grid.shape import GridIdx, GridShape2D
from geoquery.raster.data_type import RasterDataType
from geoquery.raster.geo_transform import GeoTransform
from geoquery.raster.tiling import TileInformation


@dataclass
class RasterTile2D:
    """
    A bounded spatial and temporal slice of a raster result

    Attributes:
        time: Validity of the tile
        tile_position: (y, x) position in the global tile grid
        global_geo_transform: Geo-transform of the global pixel grid
        grid_array: Pixel values, indexed from (0, 0)
        properties: Free-form metadata (scale, offset, ...)
    """

    time: TimeInterval
    tile_position: GridIdx
    global_geo_transform: GeoTransform
    grid_array: GridOrEmpty
    properties: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_tile_info(
        cls,
        time: TimeInterval,
        tile_info: TileInformation,
        grid_array: GridOrEmpty,
    ) -> "RasterTile2D":
        return cls(time, tile_info.global_tile_position, tile_info.global_geo_transform, grid_array)

    @property
    def data_type(self) -> RasterDataType:
        return RasterDataType.from_numpy(self.grid_array.dtype)

    def grid_shape(self) -> GridShape2D:
        return GridShape2D(self.grid_array.axis_size())

    def tile_information(self) -> TileInformation:
        return TileInformation(self.tile_position, self.grid_shape(), self.global_geo_transform)

    def tile_geo_transform(self) -> GeoTransform:
        return self.tile_information().tile_geo_transform()

    def spatial_partition(self) -> SpatialPartition2D:
        return self.tile_information().spatial_partition()

    def is_empty(self) -> bool:
        return isinstance(self.grid_array, NoDataGrid)

    def get_at_grid_index(self, index) -> Any:
        return self.grid_array.get_at_grid_index(index)

    def materialize(self) -> Grid:
        """Dense grid of this tile, allocating if the tile is empty"""
        if isinstance(self.grid_array, NoDataGrid):
            return self.grid_array.into_materialized_grid()
        return self.grid_array

    def convert_dtype(self, dtype) -> "RasterTile2D":
        return RasterTile2D(
            self.time,
            self.tile_position,
            self.global_geo_transform,
            self.grid_array.convert_dtype(dtype),
            dict(self.properties),
        )
