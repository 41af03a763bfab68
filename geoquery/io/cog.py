"""
Cloud-Optimized GeoTIFF (COG) reading using Rasterio
"""

import asyncio
import logging
from typing import Any

import rasterio
from numpy.typing import NDArray
from rasterio.enums import Resampling
from rasterio.errors import RasterioIOError
from rasterio.windows import Window, from_bounds

from geoquery.core.exceptions import TileFetchError
from geoquery.grid.grid import Grid
from geoquery.grid.no_data_grid import GridOrEmpty, NoDataGrid
from geoquery.grid.shape import GridBoundingBox2D
from geoquery.operators.metadata import DatasetParameters, FileNotFoundHandling
from geoquery.raster.data_type import RasterDataType
from geoquery.raster.tiling import TileInformation

logger = logging.getLogger(__name__)


class COGReader:
    """
    Cloud-Optimized GeoTIFF reader using Rasterio

    Works on local paths as well as GDAL virtual paths such as
    ``/vsicurl/https://...``.

    Attributes:
        file_path: Path to the COG file
        dataset: Rasterio dataset handle

    Examples:
        >>> with COGReader("/vsicurl/https://example.com/B01.tif") as reader:
        ...     data = reader.read_window(Window(0, 0, 256, 256), band_index=1)
    """

    def __init__(self, file_path: str):
        """
        Open COG file with Rasterio

        Raises:
            rasterio.errors.RasterioIOError: If the file can't be opened
        """
        self.file_path = file_path
        self.dataset = rasterio.open(file_path, "r")

    def read_window(
        self,
        window: Window,
        band_index: int,
        out_shape: tuple[int, int] | None = None,
        fill_value: Any | None = None,
    ) -> NDArray:
        """
        Read a window of one band

        Args:
            window: Rasterio Window, may extend beyond the file
            band_index: Band index (1-based)
            out_shape: Resample the window to this (rows, cols) shape
            fill_value: Value for pixels outside the file

        Returns:
            NumPy array with the windowed data
        """
        return self.dataset.read(
            band_index,
            window=window,
            out_shape=out_shape,
            boundless=True,
            fill_value=fill_value,
            resampling=Resampling.nearest,
        )

    def get_metadata(self) -> dict[str, Any]:
        return {
            "crs": self.dataset.crs,
            "transform": self.dataset.transform,
            "bounds": self.dataset.bounds,
            "width": self.dataset.width,
            "height": self.dataset.height,
            "count": self.dataset.count,
            "dtype": self.dataset.dtypes[0],
            "nodata": self.dataset.nodata,
        }

    def close(self):
        if self.dataset is not None:
            self.dataset.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self) -> str:
        if self.dataset.closed:
            return f"<COGReader (closed): {self.file_path}>"
        return (
            f"<COGReader: {self.file_path}>\n"
            f"  Size: {self.dataset.width} x {self.dataset.height}\n"
            f"  Bands: {self.dataset.count}\n"
            f"  CRS: {self.dataset.crs}"
        )


class RasterioTileFetcher:
    """
    TileFetcher reading tile windows with rasterio

    Reads run in a worker thread so the event loop is never blocked by
    GDAL I/O. Tiles that do not overlap the file are answered without
    opening it.
    """

    async def fetch(
        self,
        params: DatasetParameters,
        tile_info: TileInformation,
        data_type: RasterDataType,
    ) -> GridOrEmpty:
        return await asyncio.to_thread(self._fetch_sync, params, tile_info, data_type)

    def _fetch_sync(
        self,
        params: DatasetParameters,
        tile_info: TileInformation,
        data_type: RasterDataType,
    ) -> GridOrEmpty:
        shape = tile_info.tile_size_in_pixels
        dtype = data_type.numpy_dtype
        no_data = params.no_data_value if params.no_data_value is not None else 0

        file_bounds = GridBoundingBox2D((0, 0), (params.height - 1, params.width - 1))
        file_partition = params.geo_transform.grid_to_spatial_bounds(file_bounds)
        tile_partition = tile_info.spatial_partition()
        if not tile_partition.intersects(file_partition):
            return NoDataGrid(shape, no_data, dtype=dtype)

        window = from_bounds(*tile_partition.bounds, transform=params.geo_transform.to_affine())
        try:
            with COGReader(params.file_path) as reader:
                data = reader.read_window(
                    window,
                    params.rasterband_channel,
                    out_shape=shape.axis_size(),
                    fill_value=no_data,
                )
        except RasterioIOError as e:
            if params.file_not_found_handling == FileNotFoundHandling.NO_DATA:
                logger.debug("Treating unreadable %s as no-data: %s", params.file_path, e)
                return NoDataGrid(shape, no_data, dtype=dtype)
            raise TileFetchError(params.file_path, str(e)) from e

        return Grid(shape, data.astype(dtype, copy=False), no_data)
