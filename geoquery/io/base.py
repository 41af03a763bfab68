"""
Tile Fetching Protocol

Capability raster sources use to turn a load instruction into tile pixels.
"""

from typing import Protocol

from geoquery.grid.no_data_grid import GridOrEmpty
from geoquery.operators.metadata import DatasetParameters
from geoquery.raster.data_type import RasterDataType
from geoquery.raster.tiling import TileInformation


class TileFetcher(Protocol):
    """
    Reads the pixels of one tile from a dataset file

    Implementations must return a grid with the tile's pixel shape. Pixels
    the file does not cover carry the dataset's no-data value.
    """

    async def fetch(
        self,
        params: DatasetParameters,
        tile_info: TileInformation,
        data_type: RasterDataType,
    ) -> GridOrEmpty:
        """
        Fetch one tile

        Args:
            params: Load instruction (file, band, placement)
            tile_info: Target tile in the global tile grid
            data_type: Pixel type of the produced grid

        Returns:
            Dense Grid, or NoDataGrid if the tile holds no data

        Raises:
            TileFetchError: If the file cannot be read and the load
                instruction does not allow treating it as no-data
        """
        ...
